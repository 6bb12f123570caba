from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from tensoralg.tensor import Tensor


def render(tensor: "Tensor", prefix: str = "") -> str:
    """
    Render a tensor as nested bracket text for debugging.

    Uses numpy's array printer: rank-1 tensors print as a flat list, rank-2
    tensors print one row per line, and higher ranks peel the leading axis
    recursively, separating blocks with blank lines. Large tensors are
    summarized the way numpy summarizes them. The output is diagnostic only
    and is not meant to be parsed back.

    Parameters
    ----------
    tensor : Tensor
        Tensor to render.
    prefix : str, default ""
        Text that will precede the rendering on its first line; continuation
        lines are indented by its length.

    Returns
    -------
    str
        The bracketed text.

    Examples
    --------
    >>> t = Tensor[int, 2].from_values([1, 2, 3, 4, 5, 6], (2, 3))
    >>> print(render(t))
    [[1, 2, 3],
     [4, 5, 6]]
    """
    return np.array2string(tensor.numpy(), separator=", ", prefix=prefix)
