"""
Owned Slot Buffer

A fixed-capacity block of slots obtained from an allocator, with an
explicit count of live (constructed) elements. Slots ``[0, live)`` hold
values; slots ``[live, capacity)`` are allocated but not constructed.
The buffer returns its block to the allocator exactly once.
"""

import copy as _copy
import ctypes
from typing import Any, Callable, Iterable, List, Optional

from .._config import get_allocator
from ._allocator import Allocator, Block
from ._dtypes import DType
from ._errors import CORTEX_ERROR_INTERNAL, MatrixError

__all__ = ['Buffer']


class Buffer:
    """
    Owned contiguous storage with live-count tracking.

    Numeric dtypes live in an aligned ctypes array, OBJECT in a list.
    Construction always appends at the end of the live range, so a
    partially built buffer can be released without touching unconstructed
    slots.

    Attributes:
        dtype (DType): Element dtype
        capacity (int): Number of allocated slots
        live (int): Number of constructed elements
        ptr (int): Address of slot 0 (0 for OBJECT or empty buffers)

    Example:
        >>> buf = Buffer(4, DType.INT64)
        >>> buf.construct_from([1, 2, 3])
        >>> buf.live, buf.capacity
        (3, 4)
        >>> buf.release()
    """

    def __init__(
        self,
        capacity: int,
        dtype: DType = DType.FLOAT64,
        allocator: Optional[Allocator] = None,
    ):
        """
        Allocate ``capacity`` unconstructed slots.

        Args:
            capacity: Number of slots; 0 allocates nothing
            dtype: Element dtype
            allocator: Allocation policy (default: the configured one)

        Raises:
            AllocationError: If the allocator refuses the request
        """
        if capacity < 0:
            raise ValueError(f"Buffer capacity must be non-negative, got {capacity}")

        self._dtype = dtype
        self._allocator = allocator if allocator is not None else get_allocator()
        self._live = 0
        self._block: Optional[Block] = None
        if capacity > 0:
            self._block = self._allocator.allocate(capacity, dtype)

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def capacity(self) -> int:
        """Number of allocated slots."""
        return self._block.capacity if self._block is not None else 0

    @property
    def live(self) -> int:
        """Number of constructed elements."""
        return self._live

    @property
    def allocator(self) -> Allocator:
        return self._allocator

    @property
    def is_null(self) -> bool:
        """True when no block is held."""
        return self._block is None

    @property
    def itemsize(self) -> int:
        return self._dtype.itemsize

    @property
    def nbytes(self) -> int:
        """Bytes occupied by the live range (0 for OBJECT)."""
        return self._live * self._dtype.itemsize

    @property
    def ptr(self) -> int:
        """Address of slot 0 (read-only)."""
        if self._block is None:
            return 0
        return self._block.address

    # -------------------------------------------------------------------------
    # Raw Slot Access
    # -------------------------------------------------------------------------

    def __getitem__(self, offset: int) -> Any:
        """Read slot ``offset``. Not checked against the live range."""
        if self._block is None:
            raise IndexError("Empty buffer")
        return self._block.data[offset]

    def __setitem__(self, offset: int, value: Any) -> None:
        """Overwrite slot ``offset``. Not checked against the live range."""
        if self._block is None:
            raise IndexError("Empty buffer")
        self._block.data[offset] = value

    def __len__(self) -> int:
        return self._live

    # -------------------------------------------------------------------------
    # Construction / Destruction
    # -------------------------------------------------------------------------

    def construct(self, value: Any) -> None:
        """Construct ``value`` in the first unconstructed slot."""
        if self._live >= self.capacity:
            raise MatrixError(
                f"construct past capacity ({self._live} >= {self.capacity})",
                CORTEX_ERROR_INTERNAL,
            )
        self._block.data[self._live] = value
        self._live += 1

    def construct_from(self, values: Iterable[Any]) -> None:
        """Construct each value of ``values`` in order."""
        for value in values:
            self.construct(value)

    def construct_fill(self, count: int, factory: Callable[[], Any]) -> None:
        """Construct ``count`` elements, each produced by ``factory()``."""
        for _ in range(count):
            self.construct(factory())

    def destroy(self) -> None:
        """Destroy every live element. The block stays allocated."""
        if self._block is None or self._live == 0:
            self._live = 0
            return
        if self._dtype is DType.OBJECT:
            data = self._block.data
            for i in range(self._live):
                data[i] = None
        else:
            ctypes.memset(self.ptr, 0, self.nbytes)
        self._live = 0

    def release(self) -> None:
        """Destroy live elements and return the block. Idempotent."""
        if self._block is None:
            self._live = 0
            return
        self.destroy()
        block, self._block = self._block, None
        self._allocator.deallocate(block)

    # -------------------------------------------------------------------------
    # Relocation / Copy
    # -------------------------------------------------------------------------

    def relocate(self, new_capacity: int) -> "Buffer":
        """
        Move the live elements to a new buffer of ``new_capacity`` slots.

        Elements keep their order and are packed at the front of the new
        buffer. This buffer is released afterwards.

        Raises:
            AllocationError: If the new block cannot be allocated; this
                buffer is left untouched in that case.
        """
        if new_capacity < self._live:
            raise ValueError(f"Cannot relocate {self._live} elements into {new_capacity} slots")

        new = Buffer(new_capacity, self._dtype, self._allocator)
        if self._live:
            if self._dtype is DType.OBJECT:
                new._block.data[:self._live] = self._block.data[:self._live]
            else:
                ctypes.memmove(new.ptr, self.ptr, self.nbytes)
            new._live = self._live
        self.release()
        return new

    def copy(
        self,
        element_copy: Optional[Callable[[Any], Any]] = None,
        allocator: Optional[Allocator] = None,
    ) -> "Buffer":
        """
        Copy the live range into a new buffer with capacity == live.

        Args:
            element_copy: How OBJECT elements are copied (default
                ``copy.copy``). Ignored for numeric dtypes.
            allocator: Allocator of the new buffer (default: this one's)
        """
        new = Buffer(self._live, self._dtype, allocator or self._allocator)
        if not self._live:
            return new
        if self._dtype is DType.OBJECT:
            element_copy = element_copy or _copy.copy
            new.construct_from(element_copy(v) for v in self._block.data[:self._live])
        else:
            ctypes.memmove(new.ptr, self.ptr, self.nbytes)
            new._live = self._live
        return new

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def tolist(self) -> List[Any]:
        """Live elements as a Python list."""
        if self._block is None:
            return []
        return list(self._block.data[:self._live])

    def tobytes(self) -> bytes:
        """Raw bytes of the live range (numeric dtypes only)."""
        if self._dtype is DType.OBJECT:
            raise TypeError("OBJECT buffers have no byte representation")
        if self._block is None or self._live == 0:
            return b''
        return ctypes.string_at(self.ptr, self.nbytes)

    def __repr__(self) -> str:
        return (f"Buffer(dtype={self._dtype.type_name}, live={self._live}, "
                f"capacity={self.capacity})")
