class TensorError(Exception):
    """Base class for every contract violation raised by :mod:`tensoralg`."""


class ConstructionError(TensorError, ValueError):
    """Wrong number of dimensions (or an invalid dimension) given to a rank-fixed constructor."""


class TensorIndexError(TensorError, IndexError):
    """A per-axis index fell outside ``[0, shape[axis])``."""


class SizeMismatch(TensorError, ValueError):
    """A flat literal assignment whose length differs from the element count."""


class ShapeMismatch(TensorError, ValueError):
    """
    Shapes that cannot be combined.

    Raised by ``reshape`` when the element count would change, by the
    elementwise binary operations when the operands are not broadcast
    compatible, and by ``matmul`` when inner or batch dimensions disagree.
    """


class RankError(TensorError, ValueError):
    """An operation that needs at least two axes was given fewer."""
