"""Allocation Policy.

Matrix buffers never allocate memory themselves; they ask an ``Allocator``
for a ``Block`` of slots and hand it back exactly once when done. Swapping
the allocator lets callers cap memory use or simulate allocation failure.

Allocators:
    - DefaultAllocator: aligned ctypes arrays for numeric dtypes, Python
      lists for OBJECT. Optional slot cap.
    - CountingAllocator: wraps another allocator and records traffic.

Example:
    >>> from cortex.matrix import Matrix, DefaultAllocator
    >>> small = DefaultAllocator(max_slots=4)
    >>> Matrix(3, 3, allocator=small)
    Traceback (most recent call last):
        ...
    AllocationError: Matrix Error 3: requested 9 slots of float64, limit is 4
"""

import ctypes
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ._dtypes import DType
from ._errors import AllocationError, CORTEX_ERROR_DOUBLE_FREE, check_error

__all__ = [
    'Block',
    'Allocator',
    'DefaultAllocator',
    'CountingAllocator',
]

logger = logging.getLogger("cortex.allocator")


# =============================================================================
# Block
# =============================================================================

@dataclass
class Block:
    """One allocation handed out by an allocator.

    Attributes:
        data: Indexable slot storage (ctypes array or list).
        capacity: Number of slots.
        dtype: Element dtype the slots were laid out for.
        owner: Object keeping the raw memory alive.
        released: Set once the block has been deallocated.
    """
    data: Any
    capacity: int
    dtype: DType
    owner: Any = None
    released: bool = False
    block_id: int = field(default=0, compare=False)

    @property
    def address(self) -> int:
        """Address of slot 0 (0 for list-backed or released blocks)."""
        if self.released or self.data is None or self.dtype is DType.OBJECT:
            return 0
        return ctypes.addressof(self.data)


# =============================================================================
# Allocator Interface
# =============================================================================

class Allocator(ABC):
    """Allocation policy for matrix buffers."""

    @abstractmethod
    def allocate(self, n: int, dtype: DType) -> Block:
        """Allocate ``n`` uninitialised slots for ``dtype``.

        Raises:
            AllocationError: If the request cannot be satisfied.
        """

    @abstractmethod
    def deallocate(self, block: Block) -> None:
        """Return ``block``. Each block is deallocated exactly once."""


# =============================================================================
# Default Allocator
# =============================================================================

class DefaultAllocator(Allocator):
    """
    Allocates aligned ctypes arrays (numeric) or Python lists (OBJECT).

    Numeric blocks over-allocate by ``align`` bytes and place the typed
    array at the first aligned address inside the raw buffer; the raw
    buffer is kept as the block's owner.

    Attributes:
        align: Byte alignment of numeric blocks.
        max_slots: Largest accepted request, or None for no limit.
    """

    def __init__(self, align: int = 64, max_slots: Optional[int] = None):
        if align <= 0 or align & (align - 1):
            raise ValueError(f"Alignment must be a positive power of two, got {align}")
        self.align = align
        self.max_slots = max_slots
        self._next_id = 1

    def allocate(self, n: int, dtype: DType) -> Block:
        if n < 0:
            raise ValueError(f"Allocation size must be non-negative, got {n}")
        if self.max_slots is not None and n > self.max_slots:
            raise AllocationError(
                f"requested {n} slots of {dtype.type_name}, limit is {self.max_slots}"
            )

        try:
            if dtype is DType.OBJECT:
                data = [None] * n
                owner = data
            else:
                nbytes = n * dtype.itemsize
                raw = (ctypes.c_uint8 * (nbytes + self.align))()

                addr = ctypes.addressof(raw)
                aligned_addr = (addr + self.align - 1) & ~(self.align - 1)

                data = (dtype.ctype * n).from_address(aligned_addr)
                owner = raw  # Keep reference to prevent GC
        except (MemoryError, OverflowError) as e:
            raise AllocationError(
                f"cannot allocate {n} slots of {dtype.type_name}: {e}"
            ) from e

        block = Block(data=data, capacity=n, dtype=dtype, owner=owner, block_id=self._next_id)
        self._next_id += 1
        logger.debug(f"allocate block #{block.block_id}: {n} x {dtype.type_name}")
        return block

    def deallocate(self, block: Block) -> None:
        if block.released:
            check_error(CORTEX_ERROR_DOUBLE_FREE, f"deallocate block #{block.block_id}")
        logger.debug(f"deallocate block #{block.block_id}: {block.capacity} x {block.dtype.type_name}")
        block.data = None
        block.owner = None
        block.released = True

    def __repr__(self) -> str:
        return f"DefaultAllocator(align={self.align}, max_slots={self.max_slots})"


# =============================================================================
# Counting Allocator
# =============================================================================

class CountingAllocator(Allocator):
    """
    Wraps another allocator and counts allocations and deallocations.

    Attributes:
        allocations: Number of successful allocate() calls.
        deallocations: Number of deallocate() calls.
        history: ``(operation, capacity, dtype)`` tuples in call order.

    Example:
        >>> counting = CountingAllocator()
        >>> m = Matrix(2, 2, allocator=counting)
        >>> m.release()
        >>> counting.outstanding
        0
    """

    def __init__(self, inner: Optional[Allocator] = None):
        self.inner = inner if inner is not None else DefaultAllocator()
        self.allocations = 0
        self.deallocations = 0
        self.history: List[Tuple[str, int, DType]] = []

    @property
    def outstanding(self) -> int:
        """Blocks allocated but not yet returned."""
        return self.allocations - self.deallocations

    def allocate(self, n: int, dtype: DType) -> Block:
        block = self.inner.allocate(n, dtype)
        self.allocations += 1
        self.history.append(('allocate', n, dtype))
        return block

    def deallocate(self, block: Block) -> None:
        capacity = block.capacity
        self.inner.deallocate(block)
        self.deallocations += 1
        self.history.append(('deallocate', capacity, block.dtype))

    def reset(self) -> None:
        """Zero the counters."""
        self.allocations = 0
        self.deallocations = 0
        self.history.clear()

    def __repr__(self) -> str:
        return (f"CountingAllocator(allocations={self.allocations}, "
                f"deallocations={self.deallocations})")
