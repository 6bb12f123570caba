import logging

import numpy as np

from tensoralg.errors import RankError, ShapeMismatch
from tensoralg.tensor import Tensor

logger = logging.getLogger(__name__)


def _require_matrix_rank(t: Tensor, op: str) -> None:
    if t.ndim < 2:
        raise RankError(f"{op} requires a tensor of rank >= 2, got rank {t.ndim}")


def transpose_2d(t: Tensor) -> Tensor:
    """
    Swap the last two axes of a tensor.

    Parameters
    ----------
    t : Tensor
        Tensor of rank >= 2 and shape ``(..., m, n)``.

    Returns
    -------
    Tensor
        New tensor of the same type and shape ``(..., n, m)`` with
        ``out[..., j, i] == t[..., i, j]``. The data is copied into the new
        row-major layout; the result does not share storage with ``t``.

    Raises
    ------
    RankError
        If ``t`` has fewer than two axes.

    Examples
    --------
    >>> m = Tensor[int, 2](2, 3)
    >>> m[1, 0] = 99
    >>> mt = transpose_2d(m)
    >>> mt.shape, mt[0, 1]
    ((3, 2), 99)
    """
    _require_matrix_rank(t, "transpose_2d")
    logger.debug("transpose_2d %s", t.shape)
    return type(t).from_numpy(np.swapaxes(t.numpy(), -1, -2))


def matmul(a: Tensor, b: Tensor) -> Tensor:
    """
    Batched matrix product over the last two axes.

    Computes ``(..., m, k) @ (..., k, n) -> (..., m, n)``. Each output
    element is ``sum_k a[..., i, k] * b[..., k, j]`` accumulated from the
    element type's zero.

    Parameters
    ----------
    a : Tensor
        Left operand, rank >= 2.
    b : Tensor
        Right operand, same rank as ``a``.

    Returns
    -------
    Tensor
        New tensor of ``type(a)``.

    Raises
    ------
    RankError
        If either operand has fewer than two axes.
    ShapeMismatch
        If the ranks differ, if ``a.shape[-1] != b.shape[-2]`` (inner
        dimensions), or if any leading batch axis differs. Batch axes must
        match exactly; they are never broadcast.

    Examples
    --------
    >>> a = Tensor[int, 2].from_values([1, 2, 3, 4, 5, 6], (2, 3))
    >>> b = Tensor[int, 2].ones(3, 4)
    >>> matmul(a, b).tolist()
    [6, 6, 6, 6, 15, 15, 15, 15]
    """
    _require_matrix_rank(a, "matmul")
    _require_matrix_rank(b, "matmul")
    if a.ndim != b.ndim:
        raise ShapeMismatch(f"matmul: rank mismatch, {a.ndim} vs {b.ndim}")

    sa, sb = a.shape, b.shape
    if sa[-1] != sb[-2]:
        raise ShapeMismatch(
            f"matmul: inner dimensions incompatible, {sa} @ {sb} (k={sa[-1]} vs {sb[-2]})"
        )
    if sa[:-2] != sb[:-2]:
        raise ShapeMismatch(
            f"matmul: batch dimensions incompatible, {sa[:-2]} vs {sb[:-2]}"
        )

    logger.debug("matmul %s @ %s", sa, sb)
    lhs = a.numpy()
    rhs = b.numpy().astype(a.dtype, copy=False)
    return type(a).from_numpy(np.matmul(lhs, rhs))
