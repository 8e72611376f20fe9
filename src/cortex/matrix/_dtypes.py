"""
Matrix DTypes - Element Type Definitions

Defines the element types a matrix can hold, their storage layout and the
promotion rules used to type the result of elementwise operations.

Numeric dtypes are stored in contiguous ctypes buffers. ``OBJECT`` holds
arbitrary Python objects and optionally remembers their class as the
matrix's ``element_type``.
"""

from __future__ import annotations

import numbers
from ctypes import c_bool, c_double, c_float, c_int32, c_int64, c_uint8
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Type, Union

import numpy as np


# =============================================================================
# Data Type Enumeration
# =============================================================================

class DType(IntEnum):
    """
    Supported element types.

    Each numeric type has a corresponding C type, size and alignment.
    ``OBJECT`` stores Python references and has no C layout.
    """
    FLOAT32 = 0    # 32-bit floating point
    FLOAT64 = 1    # 64-bit floating point (default)
    INT32 = 2      # 32-bit signed integer
    INT64 = 3      # 64-bit signed integer
    UINT8 = 4      # 8-bit unsigned integer
    BOOL = 5       # Boolean
    OBJECT = 6     # Arbitrary Python objects

    @property
    def itemsize(self) -> int:
        """Size in bytes of one element (0 for OBJECT)."""
        return _DTYPE_INFO[self]["size"]

    @property
    def ctype(self) -> Optional[Type]:
        """Corresponding ctypes type, None for OBJECT."""
        return _DTYPE_INFO[self]["ctype"]

    @property
    def type_name(self) -> str:
        """Human-readable name."""
        return _DTYPE_INFO[self]["name"]

    @property
    def alignment(self) -> int:
        """Preferred alignment in bytes."""
        return _DTYPE_INFO[self]["alignment"]

    @property
    def numpy_name(self) -> str:
        """Name of the equivalent numpy dtype."""
        return _DTYPE_INFO[self]["numpy"]

    @property
    def python_type(self) -> Optional[type]:
        """Python scalar type read back from storage."""
        return _DTYPE_INFO[self]["pytype"]

    @property
    def is_numeric(self) -> bool:
        return self is not DType.OBJECT

    @property
    def is_integral(self) -> bool:
        """True for integer and boolean dtypes."""
        return self in (DType.INT32, DType.INT64, DType.UINT8, DType.BOOL)

    @property
    def is_floating(self) -> bool:
        return self in (DType.FLOAT32, DType.FLOAT64)

    def default_value(self) -> Any:
        """Value-initialised element for this dtype."""
        pytype = self.python_type
        return pytype() if pytype is not None else None

    @classmethod
    def from_name(cls, name: str) -> "DType":
        """Get DType from string name."""
        name_lower = name.lower()
        for dtype, info in _DTYPE_INFO.items():
            if info["name"] == name_lower:
                return dtype
        aliases = {
            "double": cls.FLOAT64,
            "float": cls.FLOAT64,
            "real": cls.FLOAT64,
            "int": cls.INT64,
            "long": cls.INT64,
            "byte": cls.UINT8,
            "object": cls.OBJECT,
            "f32": cls.FLOAT32,
            "f64": cls.FLOAT64,
            "i32": cls.INT32,
            "i64": cls.INT64,
        }
        if name_lower in aliases:
            return aliases[name_lower]
        raise ValueError(f"Unknown dtype name: {name}")

    @classmethod
    def from_ctype(cls, ctype: Type) -> "DType":
        """Get DType from ctypes type."""
        for dtype, info in _DTYPE_INFO.items():
            if info["ctype"] is ctype:
                return dtype
        raise ValueError(f"Unknown ctype: {ctype}")


# Type information table
_DTYPE_INFO: Dict[DType, Dict[str, Any]] = {
    DType.FLOAT32: {
        "ctype": c_float,
        "size": 4,
        "alignment": 4,
        "name": "float32",
        "numpy": "float32",
        "pytype": float,
    },
    DType.FLOAT64: {
        "ctype": c_double,
        "size": 8,
        "alignment": 8,
        "name": "float64",
        "numpy": "float64",
        "pytype": float,
    },
    DType.INT32: {
        "ctype": c_int32,
        "size": 4,
        "alignment": 4,
        "name": "int32",
        "numpy": "int32",
        "pytype": int,
    },
    DType.INT64: {
        "ctype": c_int64,
        "size": 8,
        "alignment": 8,
        "name": "int64",
        "numpy": "int64",
        "pytype": int,
    },
    DType.UINT8: {
        "ctype": c_uint8,
        "size": 1,
        "alignment": 1,
        "name": "uint8",
        "numpy": "uint8",
        "pytype": int,
    },
    DType.BOOL: {
        "ctype": c_bool,
        "size": 1,
        "alignment": 1,
        "name": "bool",
        "numpy": "bool",
        "pytype": bool,
    },
    DType.OBJECT: {
        "ctype": None,
        "size": 0,
        "alignment": 1,
        "name": "object",
        "numpy": "object",
        "pytype": None,
    },
}


# =============================================================================
# Type Mapping (Python type -> DType)
# =============================================================================

TYPE_MAP: Dict[type, DType] = {
    float: DType.FLOAT64,
    int: DType.INT64,
    bool: DType.BOOL,
}

# Convenience constants
float32 = DType.FLOAT32
float64 = DType.FLOAT64
int32 = DType.INT32
int64 = DType.INT64
uint8 = DType.UINT8
bool_ = DType.BOOL
object_ = DType.OBJECT

DTypeLike = Union[DType, str, type, None]


# =============================================================================
# Type Validation
# =============================================================================

def validate_dtype(dtype: DTypeLike, default: DType = DType.FLOAT64) -> Tuple[DType, Optional[type]]:
    """
    Validate and normalise a dtype specification.

    Args:
        dtype: DType enum, string name, ctypes type, Python type or None.
            Any class outside the numeric map becomes OBJECT with that
            class as element type.
        default: DType used when ``dtype`` is None

    Returns:
        ``(dtype, element_type)``; element_type is the Python class of the
        elements, or None when unconstrained.
    """
    if dtype is None:
        dtype = default
    if isinstance(dtype, DType):
        return dtype, dtype.python_type
    if isinstance(dtype, str):
        resolved = DType.from_name(dtype)
        return resolved, resolved.python_type
    if dtype in TYPE_MAP:
        return TYPE_MAP[dtype], dtype
    if isinstance(dtype, type):
        try:
            resolved = DType.from_ctype(dtype)
            return resolved, resolved.python_type
        except ValueError:
            return DType.OBJECT, dtype
    raise TypeError(f"Cannot convert {dtype!r} to DType")


def infer_dtype(values) -> Tuple[DType, Optional[type]]:
    """
    Infer the dtype of a flat sequence of Python values.

    All bools -> BOOL, all integers -> INT64 (OBJECT of ``int`` when any
    value is outside the int64 range), integers mixed with floats ->
    FLOAT64, anything else -> OBJECT (with the common class, if any).
    """
    values = list(values)
    if not values:
        return DType.FLOAT64, float
    if all(isinstance(v, bool) for v in values):
        return DType.BOOL, bool
    if all(isinstance(v, numbers.Integral) and not isinstance(v, bool) for v in values):
        if all(fits_int64(v) for v in values):
            return DType.INT64, int
        return DType.OBJECT, int
    if all(isinstance(v, (numbers.Integral, float)) and not isinstance(v, bool) for v in values):
        if any(isinstance(v, float) for v in values):
            return DType.FLOAT64, float
    return DType.OBJECT, common_type(values)


INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


def fits_int64(value) -> bool:
    """True if the integer ``value`` is representable in an INT64 slot."""
    return INT64_MIN <= int(value) <= INT64_MAX


def common_type(values) -> Optional[type]:
    """Class shared by every value, or None for mixed or empty input."""
    values = list(values)
    if not values:
        return None
    first = type(values[0])
    if all(type(v) is first for v in values):
        return first
    return None


def scalar_dtype(scalar: Any, against: DType) -> Tuple[DType, Optional[type]]:
    """
    DType a Python scalar takes part in an operation with.

    Python scalars are weakly typed: an ``int`` behaves like the narrowest
    promoted integer and a ``float`` keeps a FLOAT32 operand at FLOAT32.
    """
    if isinstance(scalar, (bool, np.bool_)):
        return DType.BOOL, bool
    if isinstance(scalar, numbers.Integral):
        return DType.INT32, int
    if isinstance(scalar, (float, np.floating)):
        return (DType.FLOAT32 if against is DType.FLOAT32 else DType.FLOAT64), float
    return DType.OBJECT, type(scalar)


# =============================================================================
# Promotion
# =============================================================================

def _promote_integral(dtype: DType) -> DType:
    """Small integers and bools widen to INT32 before arithmetic."""
    if dtype in (DType.BOOL, DType.UINT8):
        return DType.INT32
    return dtype


def promote_dtype(a: DType, b: DType) -> DType:
    """
    Result dtype of an arithmetic operator applied to ``a`` and ``b``.

    Rules:
    - OBJECT on either side -> OBJECT
    - Float beats integer; FLOAT64 beats FLOAT32
    - BOOL and UINT8 widen to INT32; INT64 beats INT32
    """
    if a is DType.OBJECT or b is DType.OBJECT:
        return DType.OBJECT

    if a.is_floating or b.is_floating:
        if a is DType.FLOAT64 or b is DType.FLOAT64:
            return DType.FLOAT64
        return DType.FLOAT32

    a, b = _promote_integral(a), _promote_integral(b)
    if a is DType.INT64 or b is DType.INT64:
        return DType.INT64
    return DType.INT32


__all__ = [
    "DType",
    "DTypeLike",
    "TYPE_MAP",
    "float32",
    "float64",
    "int32",
    "int64",
    "uint8",
    "bool_",
    "object_",
    "validate_dtype",
    "infer_dtype",
    "fits_int64",
    "common_type",
    "scalar_dtype",
    "promote_dtype",
]
