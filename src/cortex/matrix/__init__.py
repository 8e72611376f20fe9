"""Cortex Matrix Module.

A dense, row-major two-dimensional container that owns its storage,
with checked and unchecked element access, random-access cursors,
elementwise arithmetic gated by capability predicates, and equality /
lexicographic ordering.

Layers:

    Matrix                       # owner of dimensions + buffer
    ├── Buffer                   # fixed-capacity slots, live count
    │   └── Allocator            # DefaultAllocator, CountingAllocator
    ├── NormalIterator           # forward cursor (also ReverseIterator)
    └── capability predicates    # addable, addable_with, ...

Quick Start:
    >>> from cortex.matrix import Matrix
    >>>
    >>> a = Matrix.from_nested([[1, 2], [3, 4]])
    >>> b = Matrix.from_nested([[5, 6], [7, 8]])
    >>> (a + b).tolist()
    [[6, 8], [10, 12]]
    >>> a.at(1, 0)
    3
    >>> Matrix.from_nested([[7]]) / Matrix.from_nested([[2]]) == Matrix.from_nested([[3]])
    True
    >>> a < b
    True

Element Types:
    - Numeric dtypes (float32, float64, int32, int64, uint8, bool) are
      stored in aligned ctypes buffers
    - OBJECT stores any Python object; the capability predicates decide
      which arithmetic exists for the element class

Errors:
    All errors derive from MatrixError and from the closest builtin
    (IndexError, ValueError, TypeError, ...).
"""

# =============================================================================
# Errors
# =============================================================================
from ._errors import (
    MatrixError,
    AllocationError,
    DimensionMismatchError,
    OutOfRangeError,
    EmptyOperandError,
    DivideByZeroError,
    CapabilityError,
    IteratorInvalidatedError,
    check_error,
)

# =============================================================================
# Data Types
# =============================================================================
from ._dtypes import (
    DType,
    float32,
    float64,
    int32,
    int64,
    uint8,
    bool_,
    object_,
    validate_dtype,
    infer_dtype,
    promote_dtype,
)

# =============================================================================
# Storage
# =============================================================================
from ._allocator import (
    Block,
    Allocator,
    DefaultAllocator,
    CountingAllocator,
)

from ._buffer import Buffer

# =============================================================================
# Capabilities
# =============================================================================
from ._capabilities import (
    addable,
    subtractable,
    multiplicable,
    divisible,
    addable_with,
    subtractable_with,
    multiplicable_with,
    divisible_with,
    requirements,
)

# =============================================================================
# Matrix & Cursors
# =============================================================================
from ._iterator import (
    NormalIterator,
    ReverseIterator,
)

from ._compare import lexicographical_compare

from ._matrix import Matrix

from ._ops import (
    zeros,
    ones,
    full,
    from_nested,
    from_numpy,
    to_numpy,
    swap,
)

__all__ = [
    # ---- Container ----
    'Matrix',
    'NormalIterator',
    'ReverseIterator',
    'lexicographical_compare',

    # ---- Factories ----
    'zeros',
    'ones',
    'full',
    'from_nested',
    'from_numpy',
    'to_numpy',
    'swap',

    # ---- Storage ----
    'Buffer',
    'Block',
    'Allocator',
    'DefaultAllocator',
    'CountingAllocator',

    # ---- Capabilities ----
    'addable',
    'subtractable',
    'multiplicable',
    'divisible',
    'addable_with',
    'subtractable_with',
    'multiplicable_with',
    'divisible_with',
    'requirements',

    # ---- Data Types ----
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'bool_',
    'object_',
    'validate_dtype',
    'infer_dtype',
    'promote_dtype',

    # ---- Errors ----
    'MatrixError',
    'AllocationError',
    'DimensionMismatchError',
    'OutOfRangeError',
    'EmptyOperandError',
    'DivideByZeroError',
    'CapabilityError',
    'IteratorInvalidatedError',
    'check_error',
]
