import math
from typing import Sequence, Tuple

from tensoralg.errors import ShapeMismatch, TensorIndexError

Shape = Tuple[int, ...]
Index = Tuple[int, ...]


def element_count(shape: Sequence[int]) -> int:
    """Total number of elements described by ``shape`` (1 for an empty shape)."""
    return math.prod(int(dim) for dim in shape)


def row_major_strides(shape: Sequence[int]) -> Shape:
    """
    Element strides of a row-major layout.

    ``stride[-1] == 1`` and ``stride[a] == stride[a + 1] * shape[a + 1]``.

    Examples
    --------
    >>> row_major_strides((2, 3, 4))
    (12, 4, 1)
    """
    strides = [1] * len(shape)
    for axis in range(len(shape) - 2, -1, -1):
        strides[axis] = strides[axis + 1] * int(shape[axis + 1])
    return tuple(strides)


def flat_offset(index: Sequence[int], shape: Sequence[int]) -> int:
    """
    Convert a multi-axis index into a flat row-major offset.

    Every component is validated against its axis before the offset is
    computed.

    Parameters
    ----------
    index : sequence of int
        One coordinate per axis.
    shape : sequence of int
        Axis sizes.

    Returns
    -------
    int
        ``sum(index[a] * stride[a])``.

    Raises
    ------
    TensorIndexError
        If ``len(index) != len(shape)`` or any coordinate is outside
        ``[0, shape[a])``.
    """
    if len(index) != len(shape):
        raise TensorIndexError(
            f"Expected {len(shape)} indices for shape {tuple(shape)}, got {len(index)}"
        )
    for axis, (i, dim) in enumerate(zip(index, shape)):
        if not 0 <= i < dim:
            raise TensorIndexError(
                f"Index {i} out of range for axis {axis} with size {dim}"
            )

    offset = 0
    for i, stride in zip(index, row_major_strides(shape)):
        offset += int(i) * stride
    return offset


def unravel_offset(offset: int, shape: Sequence[int]) -> Index:
    """
    Inverse of :func:`flat_offset`: the multi-axis index of a flat offset.

    Walks the row-major layout that ``Tensor`` storage and numpy share.
    """
    if not 0 <= offset < element_count(shape):
        raise TensorIndexError(f"Offset {offset} out of range for shape {tuple(shape)}")
    index = [0] * len(shape)
    cur = offset
    for axis in range(len(shape) - 1, -1, -1):
        index[axis] = cur % shape[axis]
        cur //= shape[axis]
    return tuple(index)


def broadcast_compatible(sa: Sequence[int], sb: Sequence[int]) -> bool:
    """
    Whether two equal-rank shapes can be combined elementwise.

    Each axis must agree or one side must be 1. Shapes of different rank are
    never compatible; no leading axes are prepended.
    """
    if len(sa) != len(sb):
        return False
    return all(a == b or a == 1 or b == 1 for a, b in zip(sa, sb))


def broadcast_shape(sa: Sequence[int], sb: Sequence[int]) -> Shape:
    """
    Result shape of an elementwise operation between ``sa`` and ``sb``.

    Raises
    ------
    ShapeMismatch
        If the shapes are not :func:`broadcast_compatible`.
    """
    if not broadcast_compatible(sa, sb):
        raise ShapeMismatch(
            f"Shapes {tuple(sa)} and {tuple(sb)} are not compatible for broadcasting"
        )
    return tuple(max(a, b) for a, b in zip(sa, sb))


def broadcast_index(index: Sequence[int], shape: Sequence[int]) -> Index:
    """
    Map an output index into an operand of ``shape``: size-1 axes read position 0.

    This is the per-element mapping numpy broadcasting applies in
    ``Tensor._binary``.
    """
    return tuple(0 if dim == 1 else i for i, dim in zip(index, shape))
