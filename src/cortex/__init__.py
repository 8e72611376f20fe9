"""
Cortex - Dense Matrix Container

An owning, row-major matrix for Python with:
- Numeric elements in aligned ctypes storage, or arbitrary Python objects
- Range-checked point access and unchecked linear access
- Forward and reverse random-access cursors
- Elementwise arithmetic gated by element-type capabilities
- Pluggable allocation policy

Modules:
- matrix: The Matrix container and its building blocks
- config: Process-wide defaults (dtype, allocator, alignment)

Example:
    >>> import cortex
    >>> from cortex import Matrix
    >>>
    >>> m = Matrix.from_nested([[1, 2], [3, 4]])
    >>> (m * 2).tolist()
    [[2, 4], [6, 8]]
    >>>
    >>> # Track allocations
    >>> with cortex.allocator_scope(cortex.CountingAllocator()) as counting:
    ...     n = Matrix(3, 3)
    ...     n.release()
    >>> counting.outstanding
    0
"""

__version__ = '0.1.0'

# Import main modules (matrix before config: config reads matrix dtypes)
from . import matrix
from . import _config as config

from ._config import (
    get_config,
    set_default_dtype,
    get_default_dtype,
    set_allocator,
    get_allocator,
    allocator_scope,
    reset_config,
)

# Re-export common types
from .matrix import (
    # Core classes
    Matrix,
    NormalIterator,
    ReverseIterator,

    # Allocation
    Allocator,
    DefaultAllocator,
    CountingAllocator,

    # Type constants
    DType,
    float32,
    float64,
    int32,
    int64,
    uint8,
    bool_,
    object_,

    # Factories
    zeros,
    ones,
    full,
    from_nested,
    from_numpy,
    to_numpy,
    swap,

    # Errors
    MatrixError,
    AllocationError,
    DimensionMismatchError,
    OutOfRangeError,
    EmptyOperandError,
    DivideByZeroError,
    CapabilityError,
    IteratorInvalidatedError,
)

__all__ = [
    # Version
    '__version__',

    # Modules
    'matrix',
    'config',

    # Configuration
    'get_config',
    'set_default_dtype',
    'get_default_dtype',
    'set_allocator',
    'get_allocator',
    'allocator_scope',
    'reset_config',

    # Core classes
    'Matrix',
    'NormalIterator',
    'ReverseIterator',

    # Allocation
    'Allocator',
    'DefaultAllocator',
    'CountingAllocator',

    # Type constants
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'bool_',
    'object_',

    # Factories
    'zeros',
    'ones',
    'full',
    'from_nested',
    'from_numpy',
    'to_numpy',
    'swap',

    # Errors
    'MatrixError',
    'AllocationError',
    'DimensionMismatchError',
    'OutOfRangeError',
    'EmptyOperandError',
    'DivideByZeroError',
    'CapabilityError',
    'IteratorInvalidatedError',
]
