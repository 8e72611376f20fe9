"""
Matrix Container

A dense two-dimensional container that owns a contiguous row-major buffer.
Elements are numeric (stored in an aligned ctypes buffer) or arbitrary
Python objects (dtype OBJECT).

Storage model:
    size      number of constructed elements, ``rows * columns`` or, when
              either dimension is zero, ``max(rows, columns)``
    capacity  number of allocated slots, always >= size
    slot      ``row * columns + column`` for point access

Arithmetic is elementwise and always produces a new matrix; see
``_arithmetic`` for the capability gate and promotion rules.
"""

import copy as _copy
import logging
from itertools import chain
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .._config import get_allocator, get_default_dtype
from ._allocator import Allocator
from ._arithmetic import elementwise, scalar_op
from ._buffer import Buffer
from ._compare import compare_scalar, equal, less
from ._dtypes import DType, DTypeLike, common_type, fits_int64, infer_dtype, validate_dtype
from ._errors import CapabilityError, DimensionMismatchError, OutOfRangeError
from ._iterator import NormalIterator, ReverseIterator

__all__ = ['Matrix']

logger = logging.getLogger("cortex.matrix")

_MISSING = object()

# numpy dtypes stored natively; anything else integral/floating is widened
_NUMPY_NATIVE = {
    'float32': DType.FLOAT32,
    'float64': DType.FLOAT64,
    'int32': DType.INT32,
    'int64': DType.INT64,
    'uint8': DType.UINT8,
    'bool': DType.BOOL,
}


def _slot_count(rows: int, columns: int) -> int:
    """Number of elements for a ``rows x columns`` matrix."""
    count = rows * columns
    return count if count else max(rows, columns)


def _default_factory(dtype: DType, element_type: Optional[type]) -> Callable[[], Any]:
    if dtype is not DType.OBJECT:
        value = dtype.default_value()
        return lambda: value
    if element_type is None:
        return lambda: None
    try:
        element_type()
    except TypeError as e:
        raise CapabilityError(
            f"{element_type.__name__} cannot be default-constructed; pass a fill value"
        ) from e
    return element_type


def _fill_factory(dtype: DType, value: Any) -> Callable[[], Any]:
    if dtype is DType.OBJECT:
        return lambda: _copy.copy(value)
    return lambda: value


class Matrix:
    """
    Dense row-major matrix with an owned buffer.

    Attributes:
        row_count (int): Number of rows
        column_count (int): Number of columns
        size (int): Number of live elements
        capacity (int): Number of allocated slots
        dtype (DType): Storage dtype
        element_type (type): Python class of the elements, None if mixed
        allocator (Allocator): Allocation policy of this matrix

    Example:
        >>> m = Matrix(2, 3)
        >>> m.dimensions, m.size
        ((2, 3), 6)
        >>> m[1, 2] = 5.0
        >>> m.flatten()
        [0.0, 0.0, 0.0, 0.0, 0.0, 5.0]

        >>> a = Matrix.from_nested([[1, 2], [3, 4]])
        >>> (a * 2).tolist()
        [[2, 4], [6, 8]]
        >>> (a == 2).tolist()
        [[False, True], [False, False]]
    """

    # Make numpy scalars defer to our reflected operators
    __array_ufunc__ = None

    def __init__(
        self,
        rows: int = 0,
        columns: int = 0,
        fill: Any = _MISSING,
        *,
        dtype: DTypeLike = None,
        allocator: Optional[Allocator] = None,
    ):
        """
        Create a ``rows x columns`` matrix.

        Args:
            rows: Number of rows
            columns: Number of columns
            fill: Value copied into every slot. When omitted every slot is
                value-constructed (0, 0.0, False, or ``element_type()``).
            dtype: Element dtype. Inferred from ``fill`` when omitted,
                otherwise the configured default.
            allocator: Allocation policy (default: the configured one)

        Raises:
            AllocationError: If the allocator refuses the request
            CapabilityError: If OBJECT elements of the requested class
                cannot be default-constructed
        """
        self._init_fields(allocator)
        if rows < 0 or columns < 0:
            raise ValueError(f"Dimensions must be non-negative, got {rows}x{columns}")

        if dtype is None and fill is not _MISSING:
            dtype_, element_type = infer_dtype([fill])
        else:
            dtype_, element_type = validate_dtype(dtype, get_default_dtype())
            if dtype_ is DType.OBJECT and element_type is None and fill is not _MISSING:
                element_type = type(fill)

        size = _slot_count(rows, columns)
        buffer = Buffer(size, dtype_, self._allocator)
        try:
            if size:
                if fill is _MISSING:
                    factory = _default_factory(dtype_, element_type)
                else:
                    factory = _fill_factory(dtype_, fill)
                buffer.construct_fill(size, factory)
        except BaseException:
            buffer.release()
            raise
        self._adopt(buffer, rows, columns, dtype_, element_type)

    def _init_fields(self, allocator: Optional[Allocator]) -> None:
        self._version = 0
        self._rows = 0
        self._columns = 0
        self._dtype = get_default_dtype()
        self._element_type = self._dtype.python_type
        self._allocator = allocator if allocator is not None else get_allocator()
        self._buffer = Buffer(0, self._dtype, self._allocator)

    def _adopt(
        self,
        buffer: Buffer,
        rows: int,
        columns: int,
        dtype: DType,
        element_type: Optional[type],
    ) -> None:
        self._buffer = buffer
        self._rows = rows
        self._columns = columns
        self._dtype = dtype
        self._element_type = element_type
        self._version += 1

    def _reset(self) -> None:
        self._buffer = Buffer(0, self._dtype, self._allocator)
        self._rows = 0
        self._columns = 0
        self._version += 1

    # -------------------------------------------------------------------------
    # Alternate Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_nested(
        cls,
        rows_of_values: Iterable[Sequence[Any]],
        dtype: DTypeLike = None,
        allocator: Optional[Allocator] = None,
    ) -> "Matrix":
        """
        Build a matrix from a sequence of rows.

        The number of columns is the length of the first row; every row
        must have that length. Values are stored row-major, each row
        starting at ``row * columns``.

        Args:
            rows_of_values: Sequence of equally long sequences
            dtype: Element dtype (inferred from the values when omitted)
            allocator: Allocation policy

        Raises:
            DimensionMismatchError: If a row's length differs from the first

        Example:
            >>> Matrix.from_nested([[1, 2, 3], [4, 5, 6]]).at(1, 0)
            4
        """
        m = cls.__new__(cls)
        m._init_fields(allocator)
        m._adopt(*m._build_nested(rows_of_values, dtype))
        return m

    @classmethod
    def copy_of(cls, other: "Matrix") -> "Matrix":
        """Copy-construct from ``other``."""
        return other.copy()

    @classmethod
    def take(cls, other: "Matrix") -> "Matrix":
        """
        Move-construct from ``other``.

        The new matrix takes over ``other``'s buffer without copying and
        ``other`` is left empty with no buffer.
        """
        m = cls.__new__(cls)
        m._init_fields(other._allocator)
        m.move_from(other)
        return m

    @classmethod
    def from_numpy(cls, array, allocator: Optional[Allocator] = None) -> "Matrix":
        """
        Copy a 1-D or 2-D numpy array into a new matrix.

        A 1-D array becomes a single row. float32/float64/int32/int64/uint8/
        bool keep their dtype; other integer and floating dtypes widen to
        INT64/FLOAT64, except unsigned values past the int64 range, which are
        stored as OBJECT ``int``; everything else is stored as OBJECT.
        """
        arr = np.asarray(array)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        elif arr.ndim != 2:
            raise ValueError(f"Expected a 1-D or 2-D array, got {arr.ndim}-D")

        if arr.dtype.name in _NUMPY_NATIVE:
            dtype = _NUMPY_NATIVE[arr.dtype.name]
        elif np.issubdtype(arr.dtype, np.integer):
            # uint64 values past int64 max stay exact as Python ints
            if arr.size and not fits_int64(arr.max()):
                dtype = DType.OBJECT
            else:
                dtype = DType.INT64
        elif np.issubdtype(arr.dtype, np.floating):
            dtype = DType.FLOAT64
        else:
            dtype = DType.OBJECT

        values = arr.ravel().tolist()
        element_type = common_type(values) if dtype is DType.OBJECT else dtype.python_type
        rows, columns = arr.shape
        return cls._from_flat(rows, columns, values, dtype, element_type, allocator)

    @classmethod
    def _from_flat(
        cls,
        rows: int,
        columns: int,
        values: List[Any],
        dtype: DType,
        element_type: Optional[type] = None,
        allocator: Optional[Allocator] = None,
    ) -> "Matrix":
        """Build from row-major ``values``; missing slots are value-constructed."""
        m = cls.__new__(cls)
        m._init_fields(allocator)
        size = _slot_count(rows, columns)
        buffer = Buffer(size, dtype, m._allocator)
        try:
            buffer.construct_from(values[:size])
            if buffer.live < size:
                buffer.construct_fill(size - buffer.live, _default_factory(dtype, element_type))
        except BaseException:
            buffer.release()
            raise
        m._adopt(buffer, rows, columns, dtype, element_type)
        return m

    def _build_nested(
        self, rows_of_values: Iterable[Sequence[Any]], dtype: DTypeLike
    ) -> Tuple[Buffer, int, int, DType, Optional[type]]:
        outer = list(rows_of_values)
        n_rows = len(outer)
        n_columns = len(outer[0]) if outer else 0

        flat = list(chain.from_iterable(outer))
        if dtype is None and flat:
            dtype_, element_type = infer_dtype(flat)
        else:
            dtype_, element_type = validate_dtype(dtype, get_default_dtype())

        size = _slot_count(n_rows, n_columns)
        buffer = Buffer(size, dtype_, self._allocator)
        try:
            for index, row in enumerate(outer):
                if len(row) != n_columns:
                    raise DimensionMismatchError(
                        f"row {index} has {len(row)} elements, expected {n_columns}"
                    )
                # Each row lands at index * n_columns
                buffer.construct_from(row)
            if buffer.live < size:
                buffer.construct_fill(size - buffer.live, _default_factory(dtype_, element_type))
        except BaseException:
            buffer.release()
            raise
        return buffer, n_rows, n_columns, dtype_, element_type

    # -------------------------------------------------------------------------
    # Copy / Move / Assignment
    # -------------------------------------------------------------------------

    def _clone(self, element_copy: Optional[Callable[[Any], Any]] = None) -> "Matrix":
        m = type(self).__new__(type(self))
        m._init_fields(self._allocator)
        buffer = self._buffer.copy(element_copy, allocator=self._allocator)
        m._adopt(buffer, self._rows, self._columns, self._dtype, self._element_type)
        return m

    def copy(self) -> "Matrix":
        """
        Independent copy holding exactly ``size`` slots.

        OBJECT elements are copied with ``copy.copy``.
        """
        return self._clone()

    def __copy__(self) -> "Matrix":
        return self._clone()

    def __deepcopy__(self, memo) -> "Matrix":
        return self._clone(lambda value: _copy.deepcopy(value, memo))

    def copy_from(self, other: "Matrix") -> "Matrix":
        """
        Copy-assign: replace this matrix's contents with a copy of ``other``.

        Assigning a matrix to itself does nothing. The new buffer is built
        before the old one is released, so a failed copy leaves this matrix
        unchanged.
        """
        if other is self:
            return self
        buffer = other._buffer.copy(allocator=self._allocator)
        self._buffer.release()
        self._adopt(buffer, other._rows, other._columns, other._dtype, other._element_type)
        return self

    def move_from(self, other: "Matrix") -> "Matrix":
        """
        Move-assign: take ``other``'s buffer and leave ``other`` empty.

        Never allocates. Assigning a matrix to itself does nothing.
        """
        if other is self:
            return self
        self._buffer.release()
        self._allocator = other._allocator
        self._adopt(other._buffer, other._rows, other._columns, other._dtype, other._element_type)
        other._reset()
        return self

    def assign(self, rows_of_values: Iterable[Sequence[Any]], dtype: DTypeLike = None) -> "Matrix":
        """Replace the contents with a nested sequence (see ``from_nested``)."""
        built = self._build_nested(rows_of_values, dtype)
        self._buffer.release()
        self._adopt(*built)
        return self

    # -------------------------------------------------------------------------
    # Storage Management
    # -------------------------------------------------------------------------

    def reserve(self, rows: int, columns: int) -> None:
        """
        Reshape to ``rows x columns``, growing storage if needed.

        If the new shape fits the current capacity only the dimensions
        change; elements stay in their slots. Otherwise a larger buffer is
        allocated and the live elements are moved to its front in their
        current order. ``size`` keeps the live count either way, so
        ``(row, column)`` addresses are not preserved.

        Example:
            >>> m = Matrix.from_nested([[1, 2], [3, 4]])
            >>> m.reserve(3, 3)
            >>> m.capacity, m.size, m.flatten()
            (9, 4, [1, 2, 3, 4])
        """
        if rows < 0 or columns < 0:
            raise ValueError(f"Dimensions must be non-negative, got {rows}x{columns}")

        new_capacity = _slot_count(rows, columns)
        if new_capacity > self.capacity:
            logger.debug(
                f"reserve {rows}x{columns}: relocating {self.size} elements "
                f"from {self.capacity} to {new_capacity} slots"
            )
            self._buffer = self._buffer.relocate(new_capacity)
        elif new_capacity > self.size:
            logger.warning(
                f"reserve {rows}x{columns}: shape addresses {new_capacity} cells "
                f"but only {self.size} are live"
            )
        self._rows = rows
        self._columns = columns
        self._version += 1

    def clear(self) -> None:
        """Destroy every element. Capacity and the buffer are kept."""
        self._buffer.destroy()
        self._rows = 0
        self._columns = 0
        self._version += 1

    def swap(self, other: "Matrix") -> None:
        """Exchange contents with ``other`` without allocating."""
        if other is self:
            return
        self._buffer, other._buffer = other._buffer, self._buffer
        self._rows, other._rows = other._rows, self._rows
        self._columns, other._columns = other._columns, self._columns
        self._dtype, other._dtype = other._dtype, self._dtype
        self._element_type, other._element_type = other._element_type, self._element_type
        self._allocator, other._allocator = other._allocator, self._allocator
        self._version += 1
        other._version += 1

    def release(self) -> None:
        """
        Destroy every element and return the buffer to its allocator.

        Leaves an empty matrix with no buffer. Safe to call repeatedly.
        """
        buffer = getattr(self, '_buffer', None)
        if buffer is None:
            return
        buffer.release()
        self._rows = 0
        self._columns = 0
        self._version += 1

    def __del__(self):
        self.release()

    def __enter__(self) -> "Matrix":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of live elements."""
        return self._buffer.live

    @property
    def row_count(self) -> int:
        return self._rows

    @property
    def column_count(self) -> int:
        return self._columns

    @property
    def capacity(self) -> int:
        """Number of allocated slots."""
        return self._buffer.capacity

    @property
    def dimensions(self) -> Tuple[int, int]:
        """``(rows, columns)``."""
        return (self._rows, self._columns)

    shape = dimensions

    @property
    def is_square(self) -> bool:
        return self._rows == self._columns

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def max_size(self) -> int:
        return self.size

    @property
    def data(self) -> Buffer:
        """The underlying buffer."""
        return self._buffer

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def element_type(self) -> Optional[type]:
        return self._element_type

    @property
    def allocator(self) -> Allocator:
        return self._allocator

    def __len__(self) -> int:
        return self.size

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _range_check(self, row: int, column: int) -> int:
        if not (0 <= row < self._rows and 0 <= column < self._columns):
            raise OutOfRangeError(
                f"index ({row}, {column}) out of range for a "
                f"{self._rows}x{self._columns} matrix"
            )
        return row * self._columns + column

    def __getitem__(self, key):
        """
        ``m[offset]`` reads a slot without bounds checking;
        ``m[row, column]`` is range checked like ``at``.
        """
        if isinstance(key, tuple):
            return self.at(*key)
        return self._buffer[key]

    def __setitem__(self, key, value) -> None:
        if isinstance(key, tuple):
            self.set_at(key[0], key[1], value)
        else:
            self._buffer[key] = value

    def at(self, row: int, column: int) -> Any:
        """
        Element at ``(row, column)``.

        Raises:
            OutOfRangeError: If ``row >= row_count`` or ``column >= column_count``
        """
        return self._buffer[self._range_check(row, column)]

    __call__ = at

    def set_at(self, row: int, column: int, value: Any) -> None:
        """Overwrite the element at ``(row, column)`` (range checked)."""
        self._buffer[self._range_check(row, column)] = value

    def front(self) -> Any:
        """First element. Undefined on an empty matrix."""
        return self._buffer[0]

    def back(self) -> Any:
        """Last element. Undefined on an empty matrix."""
        return self._buffer[self.size - 1]

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def flatten(self) -> List[Any]:
        """New list of the live elements in row-major order."""
        return self._buffer.tolist()

    def tolist(self) -> List[List[Any]]:
        """
        Elements as a list of rows.

        A matrix with a zero dimension is returned as a single row.
        """
        flat = self.flatten()
        if self._rows == 0 or self._columns == 0:
            return [flat] if flat else []
        cols = self._columns
        return [flat[r * cols:(r + 1) * cols] for r in range(self._rows)]

    def to_numpy(self) -> np.ndarray:
        """
        Copy into a numpy array of shape ``(rows, columns)``.

        Falls back to a flat array when the live count does not fill the
        shape (a zero dimension, or after ``reserve``).
        """
        size = self.size
        if self._rows * self._columns == size:
            shape = (self._rows, self._columns)
        else:
            shape = (size,)

        if self._dtype is DType.OBJECT:
            arr = np.empty(size, dtype=object)
            arr[:] = self.flatten()
        else:
            arr = np.frombuffer(self._buffer.tobytes(), dtype=self._dtype.numpy_name).copy()
        return arr.reshape(shape)

    # -------------------------------------------------------------------------
    # Iteration
    # -------------------------------------------------------------------------

    def begin(self) -> NormalIterator:
        return NormalIterator(self, 0)

    def end(self) -> NormalIterator:
        return NormalIterator(self, self.size)

    def cbegin(self) -> NormalIterator:
        return NormalIterator(self, 0, readonly=True)

    def cend(self) -> NormalIterator:
        return NormalIterator(self, self.size, readonly=True)

    def rbegin(self) -> ReverseIterator:
        return ReverseIterator(self.end())

    def rend(self) -> ReverseIterator:
        return ReverseIterator(self.begin())

    def crbegin(self) -> ReverseIterator:
        return ReverseIterator(self.cend())

    def crend(self) -> ReverseIterator:
        return ReverseIterator(self.cbegin())

    def __iter__(self) -> NormalIterator:
        return self.begin()

    def __reversed__(self) -> ReverseIterator:
        return self.rbegin()

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def add(self, other: "Matrix") -> "Matrix":
        """Elementwise sum with a matrix of the same dimensions."""
        if not isinstance(other, Matrix):
            raise CapabilityError(f"add: no scalar form, got {type(other).__name__}")
        return elementwise('add', self, other)

    def sub(self, other: "Matrix") -> "Matrix":
        """Elementwise difference with a matrix of the same dimensions."""
        if not isinstance(other, Matrix):
            raise CapabilityError(f"sub: no scalar form, got {type(other).__name__}")
        return elementwise('sub', self, other)

    def mul(self, other: Any) -> "Matrix":
        """
        Elementwise product with a matrix, or product with a scalar.

        Raises:
            EmptyOperandError: Scalar form on an empty matrix
        """
        if isinstance(other, Matrix):
            return elementwise('mul', self, other)
        return scalar_op('mul', self, other)

    def div(self, other: Any) -> "Matrix":
        """
        Elementwise quotient with a matrix, or quotient by a scalar.

        Integral operands divide with truncation toward zero.

        Raises:
            EmptyOperandError: Scalar form on an empty matrix
            DivideByZeroError: Divisor (or a divisor element) equal to zero
        """
        if isinstance(other, Matrix):
            return elementwise('div', self, other)
        return scalar_op('div', self, other)

    def __add__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return elementwise('add', self, other)

    def __sub__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return elementwise('sub', self, other)

    def __mul__(self, other):
        return self.mul(other)

    def __rmul__(self, other):
        return scalar_op('mul', self, other, reflected=True)

    def __truediv__(self, other):
        return self.div(other)

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def __eq__(self, other):
        if isinstance(other, Matrix):
            return equal(self, other)
        return compare_scalar('eq', self, other)

    def __ne__(self, other):
        if isinstance(other, Matrix):
            return not equal(self, other)
        return compare_scalar('ne', self, other)

    def __lt__(self, other):
        if isinstance(other, Matrix):
            return less(self, other)
        return compare_scalar('lt', self, other)

    def __gt__(self, other):
        if isinstance(other, Matrix):
            return less(other, self)
        return compare_scalar('gt', self, other)

    def __le__(self, other):
        if isinstance(other, Matrix):
            return not less(other, self)
        return compare_scalar('le', self, other)

    def __ge__(self, other):
        if isinstance(other, Matrix):
            return not less(self, other)
        return compare_scalar('ge', self, other)

    __hash__ = None

    def __repr__(self) -> str:
        if self.size <= 36:
            body = repr(self.tolist())
        else:
            body = "..."
        return (f"Matrix({body}, shape={self._rows}x{self._columns}, "
                f"dtype={self._dtype.type_name})")
