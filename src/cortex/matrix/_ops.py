"""
Matrix factory functions and free helpers.

Thin wrappers over the ``Matrix`` constructors, mirroring the array
factories of numpy (``zeros``, ``ones``, ``full``) plus numpy interop and
the free ``swap``.
"""

from typing import Any, Iterable, Optional, Sequence

import numpy as np

from ._allocator import Allocator
from ._dtypes import DTypeLike
from ._matrix import Matrix

__all__ = [
    'zeros',
    'ones',
    'full',
    'from_nested',
    'from_numpy',
    'to_numpy',
    'swap',
]


def zeros(rows: int, columns: int, dtype: DTypeLike = None,
          allocator: Optional[Allocator] = None) -> Matrix:
    """
    Create a matrix of value-constructed elements.

    Example:
        >>> zeros(2, 2, dtype='int32').tolist()
        [[0, 0], [0, 0]]
    """
    return Matrix(rows, columns, dtype=dtype, allocator=allocator)


def ones(rows: int, columns: int, dtype: DTypeLike = None,
         allocator: Optional[Allocator] = None) -> Matrix:
    """Create a matrix filled with 1 (numeric dtypes only)."""
    m = Matrix(rows, columns, dtype=dtype, allocator=allocator)
    if not m.dtype.is_numeric:
        m.release()
        raise TypeError("ones() requires a numeric dtype")
    one = m.dtype.python_type(1)
    for i in range(m.size):
        m[i] = one
    return m


def full(rows: int, columns: int, value: Any, dtype: DTypeLike = None,
         allocator: Optional[Allocator] = None) -> Matrix:
    """Create a matrix with every element a copy of ``value``."""
    return Matrix(rows, columns, value, dtype=dtype, allocator=allocator)


def from_nested(rows_of_values: Iterable[Sequence[Any]], dtype: DTypeLike = None,
                allocator: Optional[Allocator] = None) -> Matrix:
    """Create a matrix from a sequence of equally long rows."""
    return Matrix.from_nested(rows_of_values, dtype=dtype, allocator=allocator)


def from_numpy(array, allocator: Optional[Allocator] = None) -> Matrix:
    """Copy a 1-D or 2-D numpy array into a new matrix."""
    return Matrix.from_numpy(array, allocator=allocator)


def to_numpy(m: Matrix) -> np.ndarray:
    """Copy a matrix into a numpy array."""
    return m.to_numpy()


def swap(a: Matrix, b: Matrix) -> None:
    """Exchange the contents of two matrices in constant time."""
    a.swap(b)
