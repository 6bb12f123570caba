from tensoralg.errors import (
    ConstructionError,
    RankError,
    ShapeMismatch,
    SizeMismatch,
    TensorError,
    TensorIndexError,
)
from tensoralg.ops import matmul, transpose_2d
from tensoralg.printing import render
from tensoralg.tensor import Tensor

__version__ = "0.1.0"

__all__ = [
    "ConstructionError",
    "RankError",
    "ShapeMismatch",
    "SizeMismatch",
    "Tensor",
    "TensorError",
    "TensorIndexError",
    "matmul",
    "render",
    "transpose_2d",
]
