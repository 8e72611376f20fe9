"""
Error handling for cortex matrices.

Every failure the container reports carries an integer error code and a
message from the table below. Each error kind is a subclass of
``MatrixError`` that also derives from the closest builtin exception, so
callers may catch either ``OutOfRangeError`` or plain ``IndexError``.
"""

from __future__ import annotations

from typing import Dict, Optional, Type


# =============================================================================
# Error Codes
# =============================================================================

# Success
CORTEX_OK = 0

# General errors (1-9)
CORTEX_ERROR_UNKNOWN = 1
CORTEX_ERROR_INTERNAL = 2
CORTEX_ERROR_OUT_OF_MEMORY = 3

# Argument errors (10-19)
CORTEX_ERROR_INVALID_ARGUMENT = 10
CORTEX_ERROR_DIMENSION_MISMATCH = 11
CORTEX_ERROR_INDEX_OUT_OF_BOUNDS = 14
CORTEX_ERROR_EMPTY_OPERAND = 15

# Type errors (20-29)
CORTEX_ERROR_TYPE_ERROR = 20

# State errors (30-39)
CORTEX_ERROR_ITERATOR_INVALIDATED = 30
CORTEX_ERROR_DOUBLE_FREE = 31

# Numerical errors (50-59)
CORTEX_ERROR_DIVISION_BY_ZERO = 51


_ERROR_MESSAGES: Dict[int, str] = {
    CORTEX_OK: "Success",
    CORTEX_ERROR_UNKNOWN: "Unknown error",
    CORTEX_ERROR_INTERNAL: "Internal error",
    CORTEX_ERROR_OUT_OF_MEMORY: "Out of memory",
    CORTEX_ERROR_INVALID_ARGUMENT: "Invalid argument",
    CORTEX_ERROR_DIMENSION_MISMATCH: "Dimension mismatch",
    CORTEX_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
    CORTEX_ERROR_EMPTY_OPERAND: "Empty operand",
    CORTEX_ERROR_TYPE_ERROR: "Unsupported element type",
    CORTEX_ERROR_ITERATOR_INVALIDATED: "Iterator invalidated",
    CORTEX_ERROR_DOUBLE_FREE: "Block already deallocated",
    CORTEX_ERROR_DIVISION_BY_ZERO: "Division by zero",
}


# =============================================================================
# Exception Classes
# =============================================================================

class MatrixError(Exception):
    """
    Base exception for all cortex matrix errors.

    Attributes:
        code: Integer error code (one of the ``CORTEX_*`` constants)
        message: Human readable message, including call-site context
    """

    code: int = CORTEX_ERROR_UNKNOWN

    OK = CORTEX_OK
    ERROR_UNKNOWN = CORTEX_ERROR_UNKNOWN
    ERROR_INTERNAL = CORTEX_ERROR_INTERNAL
    ERROR_OUT_OF_MEMORY = CORTEX_ERROR_OUT_OF_MEMORY
    ERROR_INVALID_ARGUMENT = CORTEX_ERROR_INVALID_ARGUMENT
    ERROR_DIMENSION_MISMATCH = CORTEX_ERROR_DIMENSION_MISMATCH
    ERROR_INDEX_OUT_OF_BOUNDS = CORTEX_ERROR_INDEX_OUT_OF_BOUNDS
    ERROR_EMPTY_OPERAND = CORTEX_ERROR_EMPTY_OPERAND
    ERROR_TYPE_ERROR = CORTEX_ERROR_TYPE_ERROR
    ERROR_ITERATOR_INVALIDATED = CORTEX_ERROR_ITERATOR_INVALIDATED
    ERROR_DOUBLE_FREE = CORTEX_ERROR_DOUBLE_FREE
    ERROR_DIVISION_BY_ZERO = CORTEX_ERROR_DIVISION_BY_ZERO

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        """
        Create a matrix exception.

        Args:
            message: Optional detailed message (defaults to the table entry)
            code: Error code; subclasses supply their own
        """
        if code is not None:
            self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={self.code})")
        self.message = message
        super().__init__(f"Matrix Error {self.code}: {message}")

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "MatrixError":
        """Create the exception registered for ``code`` with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        exc_cls = _ERROR_CLASSES.get(code, cls)
        if exc_cls is MatrixError:
            return MatrixError(msg, code)
        return exc_cls(msg)


class AllocationError(MatrixError, MemoryError):
    """The allocator cannot satisfy a requested buffer size."""
    code = CORTEX_ERROR_OUT_OF_MEMORY


class DimensionMismatchError(MatrixError, ValueError):
    """Operands have unequal dimensions, or a nested row has the wrong length."""
    code = CORTEX_ERROR_DIMENSION_MISMATCH


class OutOfRangeError(MatrixError, IndexError):
    """Point access with a row or column at or beyond the bounds."""
    code = CORTEX_ERROR_INDEX_OUT_OF_BOUNDS


class EmptyOperandError(MatrixError, ValueError):
    """Scalar multiply or divide attempted on an empty matrix."""
    code = CORTEX_ERROR_EMPTY_OPERAND


class DivideByZeroError(MatrixError, ZeroDivisionError):
    """Division by a value that compares equal to zero."""
    code = CORTEX_ERROR_DIVISION_BY_ZERO


class CapabilityError(MatrixError, TypeError):
    """The element types do not support the requested operation."""
    code = CORTEX_ERROR_TYPE_ERROR


class IteratorInvalidatedError(MatrixError, RuntimeError):
    """A cursor was used after its matrix reallocated, cleared or swapped."""
    code = CORTEX_ERROR_ITERATOR_INVALIDATED


_ERROR_CLASSES: Dict[int, Type[MatrixError]] = {
    CORTEX_ERROR_OUT_OF_MEMORY: AllocationError,
    CORTEX_ERROR_DIMENSION_MISMATCH: DimensionMismatchError,
    CORTEX_ERROR_INDEX_OUT_OF_BOUNDS: OutOfRangeError,
    CORTEX_ERROR_EMPTY_OPERAND: EmptyOperandError,
    CORTEX_ERROR_DIVISION_BY_ZERO: DivideByZeroError,
    CORTEX_ERROR_TYPE_ERROR: CapabilityError,
    CORTEX_ERROR_ITERATOR_INVALIDATED: IteratorInvalidatedError,
}


def check_error(code: int, context: str = "") -> None:
    """
    Raise the exception registered for ``code`` unless it is ``CORTEX_OK``.

    Args:
        code: Error code
        context: Optional context prepended to the message

    Raises:
        MatrixError: Subclass matching ``code``
    """
    if code == CORTEX_OK:
        return
    raise MatrixError.from_code(code, context)


__all__ = [
    "MatrixError",
    "AllocationError",
    "DimensionMismatchError",
    "OutOfRangeError",
    "EmptyOperandError",
    "DivideByZeroError",
    "CapabilityError",
    "IteratorInvalidatedError",
    "check_error",
    "CORTEX_OK",
    "CORTEX_ERROR_UNKNOWN",
    "CORTEX_ERROR_INTERNAL",
    "CORTEX_ERROR_OUT_OF_MEMORY",
    "CORTEX_ERROR_INVALID_ARGUMENT",
    "CORTEX_ERROR_DIMENSION_MISMATCH",
    "CORTEX_ERROR_INDEX_OUT_OF_BOUNDS",
    "CORTEX_ERROR_EMPTY_OPERAND",
    "CORTEX_ERROR_TYPE_ERROR",
    "CORTEX_ERROR_ITERATOR_INVALIDATED",
    "CORTEX_ERROR_DOUBLE_FREE",
    "CORTEX_ERROR_DIVISION_BY_ZERO",
]
