"""Cursor Adapters.

Random-access cursors over a matrix's live range, in two flavours:

    NormalIterator   forward cursor bound to (matrix, offset)
    ReverseIterator  wraps a forward cursor; dereferences the slot before it

A cursor remembers the version of the matrix it was issued from. Any
operation that reallocates, reshapes, clears, swaps, assigns or releases
the matrix bumps the version, and touching an older cursor afterwards
raises ``IteratorInvalidatedError``.

Both cursors also implement the Python iterator protocol, so
``for x in m.begin()`` walks from the cursor to the end of the live range.

Example:
    >>> m = Matrix.from_nested([[1, 2], [3, 4]])
    >>> it = m.begin()
    >>> it.value
    1
    >>> (it + 3).value
    4
    >>> m.end() - m.begin()
    4
    >>> [x for x in m.rbegin()]
    [4, 3, 2, 1]
"""

from functools import total_ordering
from typing import TYPE_CHECKING, Any, Union

from ._errors import IteratorInvalidatedError

if TYPE_CHECKING:
    from ._matrix import Matrix

__all__ = ['NormalIterator', 'ReverseIterator']


# =============================================================================
# Forward Cursor
# =============================================================================

@total_ordering
class NormalIterator:
    """
    Forward random-access cursor.

    Attributes:
        offset (int): Slot index the cursor points at
        readonly (bool): True for cursors from cbegin()/cend()
    """

    __slots__ = ('_owner', '_offset', '_version', '_readonly')

    def __init__(self, owner: "Matrix", offset: int = 0, readonly: bool = False):
        self._owner = owner
        self._offset = offset
        self._version = owner._version
        self._readonly = readonly

    def _copy_at(self, offset: int) -> "NormalIterator":
        it = NormalIterator.__new__(NormalIterator)
        it._owner = self._owner
        it._offset = offset
        it._version = self._version
        it._readonly = self._readonly
        return it

    def _check(self) -> None:
        if self._owner._version != self._version:
            raise IteratorInvalidatedError(
                f"cursor at offset {self._offset} was issued before the matrix was modified"
            )

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def owner(self) -> "Matrix":
        return self._owner

    # -------------------------------------------------------------------------
    # Dereference
    # -------------------------------------------------------------------------

    @property
    def value(self) -> Any:
        """Element at the cursor. Undefined outside the live range."""
        self._check()
        return self._owner._buffer[self._offset]

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._readonly:
            raise TypeError("Cannot assign through a read-only cursor")
        self._check()
        self._owner._buffer[self._offset] = new_value

    def __getitem__(self, n: int) -> Any:
        """Element ``n`` slots after the cursor."""
        return self._copy_at(self._offset + n).value

    def __setitem__(self, n: int, new_value: Any) -> None:
        self._copy_at(self._offset + n).value = new_value

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def increment(self) -> "NormalIterator":
        """Advance one slot in place (``++it``)."""
        self._offset += 1
        return self

    def decrement(self) -> "NormalIterator":
        """Step back one slot in place (``--it``)."""
        self._offset -= 1
        return self

    def __add__(self, n: int) -> "NormalIterator":
        if not isinstance(n, int):
            return NotImplemented
        return self._copy_at(self._offset + n)

    __radd__ = __add__

    def __iadd__(self, n: int) -> "NormalIterator":
        self._offset += n
        return self

    def __sub__(self, other: Union[int, "NormalIterator"]):
        if isinstance(other, NormalIterator):
            if other._owner is not self._owner:
                raise ValueError("Cursors belong to different matrices")
            return self._offset - other._offset
        if isinstance(other, int):
            return self._copy_at(self._offset - other)
        return NotImplemented

    def __isub__(self, n: int) -> "NormalIterator":
        self._offset -= n
        return self

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NormalIterator):
            return NotImplemented
        return self._owner is other._owner and self._offset == other._offset

    def __lt__(self, other: "NormalIterator") -> bool:
        if not isinstance(other, NormalIterator):
            return NotImplemented
        if other._owner is not self._owner:
            raise ValueError("Cursors belong to different matrices")
        return self._offset < other._offset

    __hash__ = None

    # -------------------------------------------------------------------------
    # Python Iterator Protocol
    # -------------------------------------------------------------------------

    def __iter__(self) -> "NormalIterator":
        return self

    def __next__(self) -> Any:
        self._check()
        if self._offset >= self._owner.size:
            raise StopIteration
        value = self._owner._buffer[self._offset]
        self._offset += 1
        return value

    def __repr__(self) -> str:
        kind = "const " if self._readonly else ""
        return f"<{kind}NormalIterator offset={self._offset}>"


# =============================================================================
# Reverse Cursor
# =============================================================================

@total_ordering
class ReverseIterator:
    """
    Reverse cursor built from a forward one.

    Dereferencing yields the element just before the wrapped cursor, so
    ``ReverseIterator(m.end())`` points at the last element and
    ``ReverseIterator(m.begin())`` is one past the first.
    """

    __slots__ = ('_base',)

    def __init__(self, base: NormalIterator):
        self._base = base._copy_at(base.offset)

    def base(self) -> NormalIterator:
        """Copy of the wrapped forward cursor."""
        return self._base._copy_at(self._base.offset)

    @property
    def readonly(self) -> bool:
        return self._base.readonly

    @property
    def value(self) -> Any:
        return (self._base - 1).value

    @value.setter
    def value(self, new_value: Any) -> None:
        (self._base - 1).value = new_value

    def __getitem__(self, n: int) -> Any:
        return (self + n).value

    def __setitem__(self, n: int, new_value: Any) -> None:
        (self + n).value = new_value

    def increment(self) -> "ReverseIterator":
        self._base.decrement()
        return self

    def decrement(self) -> "ReverseIterator":
        self._base.increment()
        return self

    def __add__(self, n: int) -> "ReverseIterator":
        if not isinstance(n, int):
            return NotImplemented
        return ReverseIterator(self._base - n)

    __radd__ = __add__

    def __iadd__(self, n: int) -> "ReverseIterator":
        self._base -= n
        return self

    def __sub__(self, other: Union[int, "ReverseIterator"]):
        if isinstance(other, ReverseIterator):
            return other._base - self._base
        if isinstance(other, int):
            return ReverseIterator(self._base + other)
        return NotImplemented

    def __isub__(self, n: int) -> "ReverseIterator":
        self._base += n
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReverseIterator):
            return NotImplemented
        return self._base == other._base

    def __lt__(self, other: "ReverseIterator") -> bool:
        if not isinstance(other, ReverseIterator):
            return NotImplemented
        return other._base < self._base

    __hash__ = None

    def __iter__(self) -> "ReverseIterator":
        return self

    def __next__(self) -> Any:
        self._base._check()
        if self._base.offset <= 0:
            raise StopIteration
        self._base.decrement()
        return self._base.value

    def __repr__(self) -> str:
        return f"<ReverseIterator base={self._base.offset}>"
