"""Matrix Comparison.

Equality and lexicographic ordering between matrices, and elementwise
comparison of a matrix against a scalar (producing a BOOL matrix).
"""

import operator
from typing import TYPE_CHECKING, Any, Callable, Dict, Union

from ._dtypes import DType
from ._iterator import NormalIterator, ReverseIterator

if TYPE_CHECKING:
    from ._matrix import Matrix

__all__ = ['equal', 'lexicographical_compare', 'less', 'compare_scalar']

Cursor = Union[NormalIterator, ReverseIterator]


_COMPARATORS: Dict[str, Callable[[Any, Any], Any]] = {
    'eq': operator.eq,
    'ne': operator.ne,
    'lt': operator.lt,
    'gt': operator.gt,
    'le': operator.le,
    'ge': operator.ge,
}


def equal(lhs: "Matrix", rhs: "Matrix") -> bool:
    """
    True if both matrices have the same dimensions and equal elements.

    Stops at the first unequal pair.
    """
    if lhs.dimensions != rhs.dimensions or lhs.size != rhs.size:
        return False
    first1, last1 = lhs.cbegin(), lhs.cend()
    first2 = rhs.cbegin()
    while first1 != last1:
        if not (first1.value == first2.value):
            return False
        first1.increment()
        first2.increment()
    return True


def lexicographical_compare(first1: Cursor, last1: Cursor, first2: Cursor, last2: Cursor) -> bool:
    """
    True if ``[first1, last1)`` orders before ``[first2, last2)``.

    Elements are compared with ``<`` only; a proper prefix orders first.
    The cursors passed in are not moved.
    """
    first1, first2 = first1 + 0, first2 + 0
    while first1 != last1:
        if first2 == last2:
            return False
        a, b = first1.value, first2.value
        if a < b:
            return True
        if b < a:
            return False
        first1.increment()
        first2.increment()
    return first2 != last2


def less(lhs: "Matrix", rhs: "Matrix") -> bool:
    """Lexicographic ``lhs < rhs`` over the row-major element sequences."""
    return lexicographical_compare(lhs.cbegin(), lhs.cend(), rhs.cbegin(), rhs.cend())


def compare_scalar(op: str, mtx: "Matrix", scalar: Any) -> "Matrix":
    """
    Compare every element of ``mtx`` with ``scalar``.

    Args:
        op: 'eq', 'ne', 'lt', 'gt', 'le' or 'ge'
        mtx: Matrix to compare
        scalar: Right-hand value of every comparison

    Returns:
        BOOL matrix with the dimensions of ``mtx``

    Example:
        >>> m = Matrix.from_nested([[1, 2], [3, 4]])
        >>> compare_scalar('eq', m, 2).tolist()
        [[False, True], [False, False]]
    """
    try:
        fn = _COMPARATORS[op]
    except KeyError:
        raise ValueError(f"Unknown comparison: {op!r}") from None

    buf = mtx._buffer
    values = [bool(fn(buf[i], scalar)) for i in range(mtx.size)]
    return type(mtx)._from_flat(
        mtx.row_count,
        mtx.column_count,
        values,
        dtype=DType.BOOL,
        element_type=bool,
        allocator=mtx.allocator,
    )
