"""Capability Predicates.

Checks whether an element type supports an arithmetic operator, and
whether two element types support it together. Every arithmetic method of
``Matrix`` evaluates its predicate pair before touching any data; when the
pair does not hold the operation does not exist for those element types and
``CapabilityError`` is raised.

A type argument may be:
    - a ``DType`` (numeric dtypes support every operator)
    - a Python class (support is read from its operator hooks)
    - ``None``, meaning the element type is not known; it is assumed to
      support everything and failures surface from the operator itself

Predicate pairs:
    add: addable(U)        and addable_with(T, U)
    sub: subtractable(U)   and subtractable_with(T, U)
    mul: multiplicable(U)  and multiplicable_with(T, U)
    div: divisible(U)      and divisible_with(T, U)
where T is the matrix's element type and U the operand's.
"""

import numbers
from typing import Callable, Dict, Optional, Tuple, Union

from ._dtypes import DType
from ._errors import CapabilityError

__all__ = [
    'addable',
    'subtractable',
    'multiplicable',
    'divisible',
    'addable_with',
    'subtractable_with',
    'multiplicable_with',
    'divisible_with',
    'requirements',
    'require',
    'REQUIREMENTS',
]

TypeLike = Union[DType, type, None]

# (forward hook, reflected hook) per operation
_HOOKS: Dict[str, Tuple[str, str]] = {
    'add': ('__add__', '__radd__'),
    'sub': ('__sub__', '__rsub__'),
    'mul': ('__mul__', '__rmul__'),
    'div': ('__truediv__', '__rtruediv__'),
}


def _resolve(t: TypeLike) -> Optional[type]:
    """Python class behind ``t``; None when unknown or unconstrained."""
    if isinstance(t, DType):
        return t.python_type
    return t


def _is_numeric(t: TypeLike) -> bool:
    return isinstance(t, DType) and t.is_numeric


def _unary(op: str, t: TypeLike) -> bool:
    if _is_numeric(t):
        return True
    cls = _resolve(t)
    if cls is None:
        return True
    return hasattr(cls, _HOOKS[op][0])


def _binary(op: str, t: TypeLike, u: TypeLike) -> bool:
    if _is_numeric(t) and _is_numeric(u):
        return True
    lhs, rhs = _resolve(t), _resolve(u)
    if lhs is None or rhs is None:
        return True
    forward, reflected = _HOOKS[op]
    if hasattr(lhs, forward):
        # Forward hooks of numbers only accept numeric right operands
        if issubclass(lhs, numbers.Number) and not issubclass(rhs, numbers.Number):
            return hasattr(rhs, reflected)
        return True
    if hasattr(rhs, reflected):
        # Reflected hooks of numbers only accept numeric left operands
        if issubclass(rhs, numbers.Number):
            return issubclass(lhs, numbers.Number)
        return True
    return False


# =============================================================================
# Unary Predicates
# =============================================================================

def addable(t: TypeLike) -> bool:
    """True if ``t + t`` is defined."""
    return _unary('add', t)


def subtractable(t: TypeLike) -> bool:
    """True if ``t - t`` is defined."""
    return _unary('sub', t)


def multiplicable(t: TypeLike) -> bool:
    """True if ``t * t`` is defined."""
    return _unary('mul', t)


def divisible(t: TypeLike) -> bool:
    """True if ``t / t`` is defined."""
    return _unary('div', t)


# =============================================================================
# Cross-Type Predicates
# =============================================================================

def addable_with(t: TypeLike, u: TypeLike) -> bool:
    """True if ``t + u`` is defined."""
    return _binary('add', t, u)


def subtractable_with(t: TypeLike, u: TypeLike) -> bool:
    """True if ``t - u`` is defined."""
    return _binary('sub', t, u)


def multiplicable_with(t: TypeLike, u: TypeLike) -> bool:
    """True if ``t * u`` is defined."""
    return _binary('mul', t, u)


def divisible_with(t: TypeLike, u: TypeLike) -> bool:
    """True if ``t / u`` is defined."""
    return _binary('div', t, u)


REQUIREMENTS: Dict[str, Tuple[Callable[[TypeLike], bool], Callable[[TypeLike, TypeLike], bool]]] = {
    'add': (addable, addable_with),
    'sub': (subtractable, subtractable_with),
    'mul': (multiplicable, multiplicable_with),
    'div': (divisible, divisible_with),
}


def requirements(op: str):
    """
    Predicate pair that must hold for arithmetic method ``op``.

    Returns:
        ``(unary, binary)``: ``unary(U)`` is checked on the operand element
        type, ``binary(T, U)`` on this matrix's and the operand's.
    """
    try:
        return REQUIREMENTS[op]
    except KeyError:
        raise ValueError(f"Unknown arithmetic operation: {op!r}") from None


def require(op: str, t: TypeLike, u: TypeLike) -> None:
    """
    Raise ``CapabilityError`` unless ``op`` exists for ``t`` and ``u``.

    Args:
        op: 'add', 'sub', 'mul' or 'div'
        t: Element type of the matrix
        u: Element type of the operand (matrix element or scalar)
    """
    unary, binary = requirements(op)
    if not unary(u):
        raise CapabilityError(f"{op}: operand type {_describe(u)} does not support {op}")
    if not binary(t, u):
        raise CapabilityError(
            f"{op}: {_describe(t)} does not support {op} with {_describe(u)}"
        )


def _describe(t: TypeLike) -> str:
    if isinstance(t, DType):
        return t.type_name
    if t is None:
        return 'object'
    return t.__name__
