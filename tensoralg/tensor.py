import copy
import logging
import numbers
from typing import Any, Callable, ClassVar, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Type, Union

import numpy as np

from tensoralg.errors import (
    ConstructionError,
    ShapeMismatch,
    SizeMismatch,
    TensorError,
    TensorIndexError,
)
from tensoralg.printing import render
from tensoralg.shape import Shape, broadcast_shape, element_count, flat_offset, row_major_strides

logger = logging.getLogger(__name__)

_Scalar = Union[numbers.Number, np.generic]
_IndexArg = Union[int, Tuple[int, ...]]


def _is_integer(x: Any) -> bool:
    return isinstance(x, (int, np.integer)) and not isinstance(x, (bool, np.bool_))


def _is_scalar(x: Any) -> bool:
    return isinstance(x, (numbers.Number, np.generic))


def _is_shape_sequence(x: Any) -> bool:
    return isinstance(x, (list, tuple, np.ndarray))


def _truncate_divide(a: np.ndarray, b: Any) -> np.ndarray:
    """Integer division rounding toward zero, as C integer division does."""
    q = np.floor_divide(a, b)
    # floor and truncation differ only for inexact quotients of opposite sign
    inexact = (np.remainder(a, b) != 0) & ((a < 0) != (b < 0))
    return q + inexact.astype(q.dtype)


def _normalize_dims(
    dims: Sequence[Any],
    rank: int,
    error: Type[TensorError] = ConstructionError,
) -> Shape:
    """
    Validate ``dims`` as a shape of exactly ``rank`` positive integers.

    Parameters
    ----------
    dims : sequence
        Candidate axis sizes.
    rank : int
        Required number of axes.
    error : type, default ConstructionError
        Exception class raised on violation; ``reshape`` passes
        ``ShapeMismatch``.

    Returns
    -------
    tuple of int
        The normalized shape.
    """
    if len(dims) != rank:
        raise error(f"Expected {rank} dimensions, got {len(dims)}: {tuple(dims)}")
    shape = []
    for axis, dim in enumerate(dims):
        if not _is_integer(dim):
            raise error(f"Dimension {axis} must be an integer, got {dim!r}")
        if dim < 1:
            raise error(f"Dimension {axis} must be >= 1, got {dim}")
        shape.append(int(dim))
    return tuple(shape)


class Tensor:
    """
    A dense N-dimensional array whose rank is fixed by its type.

    Concrete tensor types are obtained by subscripting with an element type
    and a rank: ``Tensor[int, 2]`` is the type of integer matrices,
    ``Tensor[np.float32, 4]`` of 4-axis float32 tensors. The subscription is
    cached, so ``Tensor[int, 2] is Tensor[int, 2]``.

    Storage is a flat, row-major ``numpy.ndarray`` owned exclusively by the
    instance; ``shape`` describes how it is read.

    Notes
    -----
    - ``size == product(shape)`` and ``len(shape) == rank`` always hold.
    - Tensors are mutable values: copies are deep, ``==`` compares shape and
      content, and instances are unhashable.
    - Every operation validates its inputs fully before touching any data,
      so a failed call leaves all operands unchanged.
    - Elementwise operations broadcast size-1 axes between operands of the
      same rank. ``matmul`` does not broadcast batch axes.

    Examples
    --------
    >>> t = Tensor[int, 2](2, 3)
    >>> t.fill(7)
    >>> t[1, 2]
    7
    >>> t[1, 2] = 42
    >>> t.reshape(3, 2)[2, 1]
    42
    """

    rank: ClassVar[Optional[int]] = None
    dtype: ClassVar[np.dtype] = np.dtype(np.float64)

    _specializations: ClassVar[Dict[Tuple[np.dtype, int], type]] = {}

    # numpy scalars on the left defer to the reflected operators below
    __array_ufunc__ = None

    def __class_getitem__(cls, params: Any) -> type:
        if cls.rank is not None:
            raise TypeError(f"{cls.__name__} is already parametrized")
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError("Tensor must be parametrized as Tensor[T, Rank]")

        elem, rank = params
        if not _is_integer(rank) or rank < 1:
            raise TypeError(f"Tensor rank must be a positive integer, got {rank!r}")
        dtype = np.dtype(elem)
        key = (dtype, int(rank))

        specialized = Tensor._specializations.get(key)
        if specialized is None:
            name = f"Tensor[{dtype.name}, {int(rank)}]"
            specialized = type(
                name,
                (Tensor,),
                {"rank": int(rank), "dtype": dtype, "__module__": __name__, "__qualname__": name},
            )
            Tensor._specializations[key] = specialized
        return specialized

    def __init__(
        self,
        *dims: Any,
        shape: Optional[Sequence[int]] = None,
    ) -> None:
        """
        Allocate a zero-initialized tensor.

        Parameters
        ----------
        *dims : int or a single sequence of int
            Either ``rank`` axis sizes (``Tensor[int, 2](2, 3)``), one shape
            sequence (``Tensor[int, 2]([2, 3])``), or nothing for the
            all-ones shape with a single element.
        shape : sequence of int, optional
            Shape given by keyword; mutually exclusive with ``dims``.

        Raises
        ------
        ConstructionError
            If the type has no rank, if the number of dimensions differs
            from ``rank``, or if any dimension is not a positive integer.
        """
        cls = type(self)
        if cls.rank is None:
            raise ConstructionError("Tensor rank is not specified; use Tensor[T, Rank](...)")

        if shape is not None:
            if dims:
                raise ConstructionError("Pass either dimensions or shape=, not both")
            dims = tuple(shape)
        elif len(dims) == 1 and _is_shape_sequence(dims[0]):
            dims = tuple(dims[0])
        elif not dims:
            dims = (1,) * cls.rank

        self._shape: Shape = _normalize_dims(dims, cls.rank)
        self._data: np.ndarray = np.zeros(element_count(self._shape), dtype=cls.dtype)

    @classmethod
    def _from_flat(cls, data: np.ndarray, shape: Shape) -> "Tensor":
        """Wrap an already validated flat buffer; ``data`` must not be shared."""
        out = cls.__new__(cls)
        out._shape = tuple(shape)
        out._data = data
        return out

    @classmethod
    def zeros(cls, *shape: Any) -> "Tensor":
        """Create a tensor of ``T``'s zero value."""
        return cls(*shape)

    @classmethod
    def ones(cls, *shape: Any) -> "Tensor":
        """Create a tensor filled with ones."""
        out = cls(*shape)
        out.fill(1)
        return out

    @classmethod
    def full(cls, shape: Sequence[int], value: _Scalar) -> "Tensor":
        """Create a tensor of ``shape`` with every element set to ``value``."""
        out = cls(shape=shape)
        out.fill(value)
        return out

    @classmethod
    def from_values(cls, values: Iterable[Any], shape: Sequence[int]) -> "Tensor":
        """
        Create a tensor of ``shape`` from a flat row-major sequence.

        Raises
        ------
        ConstructionError
            If ``shape`` is invalid for this type.
        SizeMismatch
            If ``len(values)`` differs from ``product(shape)``.

        Examples
        --------
        >>> Tensor[int, 2].from_values([1, 2, 3, 4, 5, 6], (2, 3))[1, 0]
        4
        """
        out = cls(shape=shape)
        out.assign(values)
        return out

    @classmethod
    def from_numpy(cls, array: Any) -> "Tensor":
        """
        Create a tensor from an array-like whose ``ndim`` equals ``rank``.

        The data is copied and cast to this type's ``dtype``.

        Raises
        ------
        ConstructionError
            If the array's number of axes differs from ``rank`` or an axis
            is empty.
        """
        if cls.rank is None:
            raise ConstructionError("Tensor rank is not specified; use Tensor[T, Rank](...)")
        arr = np.array(array, dtype=cls.dtype, order="C")
        shape = _normalize_dims(arr.shape, cls.rank)
        return cls._from_flat(arr.reshape(-1), shape)

    @property
    def shape(self) -> Shape:
        """tuple of int: The tensor's shape."""
        return self._shape

    @property
    def size(self) -> int:
        """int: Total number of elements in the tensor."""
        return int(self._data.size)

    @property
    def ndim(self) -> int:
        """int: The number of axes, always equal to ``rank``."""
        return len(self._shape)

    @property
    def strides(self) -> Shape:
        """tuple of int: Row-major element strides for the current shape."""
        return row_major_strides(self._shape)

    def _offset(self, idx: _IndexArg) -> int:
        if not isinstance(idx, tuple):
            idx = (idx,)
        for i in idx:
            if not _is_integer(i):
                raise TensorIndexError(f"Tensor indices must be integers, got {i!r}")
        return flat_offset(tuple(int(i) for i in idx), self._shape)

    def __getitem__(self, idx: _IndexArg) -> Any:
        """
        Read one element.

        Parameters
        ----------
        idx : tuple of int, or int for rank-1 tensors
            One coordinate per axis, each within ``[0, shape[axis])``.

        Returns
        -------
        scalar
            The element as a Python scalar (or the stored object for
            ``object`` tensors).

        Raises
        ------
        TensorIndexError
            On a wrong number of indices, a non-integer index, or any
            coordinate out of range.
        """
        return self._data.item(self._offset(idx))

    def __setitem__(self, idx: _IndexArg, value: Any) -> None:
        """Write one element; validation matches :meth:`__getitem__`."""
        self._data[self._offset(idx)] = value

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the elements in row-major order."""
        return iter(self._data.tolist())

    def tolist(self) -> List[Any]:
        """Return the elements as a flat row-major list."""
        return self._data.tolist()

    def numpy(self) -> np.ndarray:
        """Return a copy of the data shaped as ``shape``."""
        return self._data.reshape(self._shape).copy()

    def fill(self, value: _Scalar) -> None:
        """Overwrite every element with ``value``."""
        self._data[...] = value

    def assign(self, values: Iterable[Any]) -> "Tensor":
        """
        Overwrite all elements from a flat row-major sequence.

        Parameters
        ----------
        values : iterable
            Exactly ``size`` values.

        Returns
        -------
        Tensor
            ``self``, to allow chaining.

        Raises
        ------
        SizeMismatch
            If the values are not a flat sequence of exactly ``size``
            elements. The tensor is left unchanged.
        """
        if isinstance(values, np.ndarray):
            converted = values.astype(self.dtype).reshape(-1)
        elif self.dtype == object:
            values = list(values)
            converted = np.empty(len(values), dtype=object)
            for i, value in enumerate(values):
                converted[i] = value
        else:
            converted = np.asarray(list(values), dtype=self.dtype)
        if converted.ndim != 1:
            raise SizeMismatch(
                f"Expected a flat sequence of values, got nested shape {converted.shape}"
            )
        if converted.size != self.size:
            raise SizeMismatch(
                f"Cannot assign {converted.size} values to a tensor of size {self.size}"
            )
        self._data[:] = converted
        return self

    def reshape(self, *shape: Any) -> "Tensor":
        """
        Reinterpret the buffer under a new shape, in place.

        The flat row-major order of elements is preserved: the element at
        flat position ``k`` stays at flat position ``k``.

        Parameters
        ----------
        *shape : int or a single sequence of int
            The new axis sizes, ``rank`` of them.

        Returns
        -------
        Tensor
            ``self``, to allow chaining.

        Raises
        ------
        ShapeMismatch
            If the new shape has the wrong number of axes, a non-positive
            axis, or a different element count. Shape and data are left
            unchanged.

        Examples
        --------
        >>> t = Tensor[int, 3](2, 2, 2)
        >>> t.reshape(2, 4, 1).shape
        (2, 4, 1)
        """
        if len(shape) == 1 and _is_shape_sequence(shape[0]):
            shape = tuple(shape[0])
        new_shape = _normalize_dims(shape, self.ndim, error=ShapeMismatch)
        if element_count(new_shape) != self.size:
            raise ShapeMismatch(
                f"Cannot reshape tensor of size {self.size} into shape {new_shape}"
            )
        logger.debug("reshape %s -> %s", self._shape, new_shape)
        self._shape = new_shape
        return self

    def copy(self) -> "Tensor":
        """Return an independent copy with its own buffer."""
        return self._from_flat(self._data.copy(), self._shape)

    def __copy__(self) -> "Tensor":
        return self.copy()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Tensor":
        return self._from_flat(copy.deepcopy(self._data, memo), self._shape)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self._shape == other._shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def _cast_scalar(self, scalar: _Scalar) -> Any:
        if not _is_scalar(scalar):
            raise TypeError(f"Expected a Tensor or a scalar, got {type(scalar).__name__}")
        if self.dtype == object:
            return scalar
        return self.dtype.type(scalar)

    def _binary(self, other: "Tensor", op: Callable[[Any, Any], Any]) -> "Tensor":
        """
        Combine ``self`` and ``other`` elementwise with broadcasting.

        Size-1 axes of either operand are stretched to the other operand's
        size. The result has ``type(self)``; ``other`` is cast to its dtype.
        """
        if other.ndim != self.ndim:
            raise ShapeMismatch(
                f"Cannot combine a rank-{self.ndim} tensor with a rank-{other.ndim} tensor"
            )
        out_shape = broadcast_shape(self._shape, other._shape)

        a = self._data.reshape(self._shape)
        b = other._data.astype(self.dtype, copy=False).reshape(other._shape)
        out = np.asarray(op(a, b)).astype(self.dtype, copy=False)
        return self._from_flat(out.reshape(-1), out_shape)

    def _with_scalar(self, scalar: _Scalar, op: Callable[[Any, Any], Any]) -> "Tensor":
        value = self._cast_scalar(scalar)
        out = np.asarray(op(self._data, value)).astype(self.dtype, copy=False)
        return self._from_flat(out, self._shape)

    def add(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        """
        Elementwise addition with broadcasting, or addition of a scalar.

        Parameters
        ----------
        other : Tensor or scalar
            A tensor of the same rank whose shape is broadcast compatible
            with ``self`` (each axis equal, or 1 on either side), or a scalar
            added to every element.

        Returns
        -------
        Tensor
            New tensor of ``type(self)``; for tensor operands its shape is
            the per-axis maximum of both shapes.

        Raises
        ------
        ShapeMismatch
            If the ranks differ or any axis is incompatible.

        Examples
        --------
        >>> a = Tensor[int, 2].from_values([1, 2, 3], (1, 3))
        >>> b = Tensor[int, 2].from_values([10, 20, 30, 40, 50, 60], (2, 3))
        >>> a.add(b).tolist()
        [11, 22, 33, 41, 52, 63]
        """
        if isinstance(other, Tensor):
            return self._binary(other, np.add)
        return self._with_scalar(other, np.add)

    def subtract(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        """Elementwise ``self - other``; same rules as :meth:`add`. Operand order is kept."""
        if isinstance(other, Tensor):
            return self._binary(other, np.subtract)
        return self._with_scalar(other, np.subtract)

    def multiply(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        """Elementwise product (Hadamard); same rules as :meth:`add`."""
        if isinstance(other, Tensor):
            return self._binary(other, np.multiply)
        return self._with_scalar(other, np.multiply)

    def scale(self, scalar: _Scalar) -> "Tensor":
        """Multiply every element by ``scalar``."""
        return self._with_scalar(scalar, np.multiply)

    def divide(self, scalar: _Scalar) -> "Tensor":
        """
        Divide every element by ``scalar``.

        Integer tensors divide truncating toward zero (``-7 / 2 == -3``),
        others use true division. Division by zero follows numpy semantics
        for the dtype.
        """
        op = _truncate_divide if self.dtype.kind in "iu" else np.true_divide
        return self._with_scalar(scalar, op)

    def transpose_2d(self) -> "Tensor":
        """Return a copy with the last two axes swapped. See :func:`tensoralg.ops.transpose_2d`."""
        from tensoralg.ops import transpose_2d
        return transpose_2d(self)

    def matmul(self, other: "Tensor") -> "Tensor":
        """Batched matrix product ``self @ other``. See :func:`tensoralg.ops.matmul`."""
        from tensoralg.ops import matmul
        return matmul(self, other)

    def __add__(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        if not isinstance(other, Tensor) and not _is_scalar(other):
            return NotImplemented
        return self.add(other)

    def __radd__(self, other: _Scalar) -> "Tensor":
        if not _is_scalar(other):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        if not isinstance(other, Tensor) and not _is_scalar(other):
            return NotImplemented
        return self.subtract(other)

    def __rsub__(self, other: _Scalar) -> "Tensor":
        """Right-hand subtraction: ``scalar - self``."""
        if not _is_scalar(other):
            return NotImplemented
        value = self._cast_scalar(other)
        out = np.asarray(np.subtract(value, self._data)).astype(self.dtype, copy=False)
        return self._from_flat(out, self._shape)

    def __mul__(self, other: Union["Tensor", _Scalar]) -> "Tensor":
        if not isinstance(other, Tensor) and not _is_scalar(other):
            return NotImplemented
        return self.multiply(other)

    def __rmul__(self, other: _Scalar) -> "Tensor":
        if not _is_scalar(other):
            return NotImplemented
        return self.scale(other)

    def __truediv__(self, other: _Scalar) -> "Tensor":
        if not _is_scalar(other):
            return NotImplemented
        return self.divide(other)

    def __matmul__(self, other: "Tensor") -> "Tensor":
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.matmul(other)

    def __neg__(self) -> "Tensor":
        """Elementwise negation (returns ``-self``)."""
        out = np.asarray(np.negative(self._data)).astype(self.dtype, copy=False)
        return self._from_flat(out, self._shape)

    def __str__(self) -> str:
        return render(self)

    def __repr__(self) -> str:
        """
        Returns a readable string representation of the tensor.

        Examples
        --------
        >>> Tensor[int, 1].from_values([1, 2, 3], (3,))
        tensor([1, 2, 3], dtype=int64, shape=(3,))
        """
        body = render(self, prefix="tensor(")
        return f"tensor({body}, dtype={self.dtype}, shape={self._shape})"
