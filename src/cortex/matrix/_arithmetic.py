"""Elementwise Arithmetic.

Implements the four arithmetic methods of ``Matrix`` against another
matrix (elementwise, same dimensions) or against a scalar. Every entry
point runs in the same order:

    1. capability gate (``CapabilityError``), before anything else
    2. runtime checks (dimensions, empty operand, zero divisor)
    3. elementwise transform into a freshly allocated result

Neither operand is modified. Integral/integral division truncates toward
zero like C integer division rather than flooring like Python's ``//``.
"""

import operator
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from ._capabilities import require
from ._dtypes import DType, common_type, promote_dtype, scalar_dtype
from ._errors import DimensionMismatchError, DivideByZeroError, EmptyOperandError

if TYPE_CHECKING:
    from ._matrix import Matrix

__all__ = ['elementwise', 'scalar_op', 'operand_type']


_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    'add': operator.add,
    'sub': operator.sub,
    'mul': operator.mul,
    'div': operator.truediv,
}


def _truncating_div(a, b):
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _operator_for(op: str, lhs: DType, rhs: DType) -> Callable[[Any, Any], Any]:
    if op == 'div' and lhs.is_integral and rhs.is_integral:
        return _truncating_div
    try:
        return _OPERATORS[op]
    except KeyError:
        raise ValueError(f"Unknown arithmetic operation: {op!r}") from None


def operand_type(m: "Matrix"):
    """Type the capability predicates see for the elements of ``m``."""
    return m.dtype if m.dtype.is_numeric else m.element_type


def _build(template: "Matrix", values: List[Any], dtype: DType) -> "Matrix":
    element_type = common_type(values) if dtype is DType.OBJECT else dtype.python_type
    return type(template)._from_flat(
        template.row_count,
        template.column_count,
        values,
        dtype=dtype,
        element_type=element_type,
        allocator=template.allocator,
    )


# =============================================================================
# Matrix / Matrix
# =============================================================================

def elementwise(op: str, lhs: "Matrix", rhs: "Matrix") -> "Matrix":
    """
    Apply ``op`` to corresponding elements of ``lhs`` and ``rhs``.

    Args:
        op: 'add', 'sub', 'mul' or 'div'
        lhs: Left operand
        rhs: Right operand, same dimensions as ``lhs``

    Returns:
        New matrix with ``lhs``'s dimensions and the promoted dtype

    Raises:
        CapabilityError: If the element types do not support ``op``
        DimensionMismatchError: If the dimensions differ
        DivideByZeroError: For 'div' when a divisor element equals zero

    Example:
        >>> a = Matrix.from_nested([[1, 2], [3, 4]])
        >>> b = Matrix.from_nested([[5, 6], [7, 8]])
        >>> elementwise('add', a, b).tolist()
        [[6, 8], [10, 12]]
    """
    require(op, operand_type(lhs), operand_type(rhs))

    if lhs.dimensions != rhs.dimensions:
        raise DimensionMismatchError(
            f"{op}: dimensions do not match, {lhs.dimensions} vs {rhs.dimensions}"
        )

    dtype = promote_dtype(lhs.dtype, rhs.dtype)
    fn = _operator_for(op, lhs.dtype, rhs.dtype)
    lbuf, rbuf = lhs._buffer, rhs._buffer

    values = []
    for i in range(min(lhs.size, rhs.size)):
        b = rbuf[i]
        if op == 'div' and b == 0:
            raise DivideByZeroError(f"div: divisor element at offset {i} is zero")
        values.append(fn(lbuf[i], b))

    return _build(lhs, values, dtype)


# =============================================================================
# Matrix / Scalar
# =============================================================================

def scalar_op(op: str, mtx: "Matrix", scalar: Any, reflected: bool = False) -> "Matrix":
    """
    Apply ``op`` to every element of ``mtx`` with ``scalar`` on the right.

    Only 'mul' and 'div' have scalar forms. With ``reflected`` the scalar is
    the left operand (``scalar * element``).

    Raises:
        CapabilityError: If the element type does not support ``op`` with
            the scalar's type
        EmptyOperandError: If ``mtx`` is empty
        DivideByZeroError: For 'div' when ``scalar == 0``
    """
    if op not in ('mul', 'div'):
        raise ValueError(f"No scalar form for {op!r}")

    s_dtype, s_type = scalar_dtype(scalar, mtx.dtype)
    require(op, operand_type(mtx), s_dtype if s_dtype.is_numeric else s_type)

    if mtx.is_empty:
        raise EmptyOperandError(f"{op}: scalar {op} of an empty matrix")
    if op == 'div' and scalar == 0:
        raise DivideByZeroError("div: scalar divisor is zero")

    dtype = promote_dtype(mtx.dtype, s_dtype)
    fn = _operator_for(op, mtx.dtype, s_dtype)
    buf = mtx._buffer
    if reflected:
        values = [fn(scalar, buf[i]) for i in range(mtx.size)]
    else:
        values = [fn(buf[i], scalar) for i in range(mtx.size)]

    return _build(mtx, values, dtype)
