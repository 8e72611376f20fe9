"""
Global configuration for cortex.

Provides:
- Default element dtype for constructors that cannot infer one
- Buffer alignment and allocation cap used by the default allocator
- The process-wide allocation policy (lazily created)

Environment variables (read once, when the module is imported):
    CORTEX_DEFAULT_DTYPE   dtype name, e.g. "float32", "int64"
    CORTEX_ALIGNMENT       byte alignment of numeric buffers (power of two)
    CORTEX_MAX_SLOTS       largest single allocation, in elements
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional, Union

from .matrix._dtypes import DType, validate_dtype

if TYPE_CHECKING:
    from .matrix._allocator import Allocator

logger = logging.getLogger("cortex.config")


DEFAULT_ALIGNMENT = 64


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer")
        return None


def _env_dtype() -> DType:
    raw = os.environ.get("CORTEX_DEFAULT_DTYPE", "").strip()
    if not raw:
        return DType.FLOAT64
    try:
        return DType.from_name(raw)
    except ValueError:
        logger.warning(f"Ignoring CORTEX_DEFAULT_DTYPE={raw!r}: unknown dtype")
        return DType.FLOAT64


# =============================================================================
# Global Configuration State
# =============================================================================

class _Config:
    """
    Global configuration singleton.

    Holds the default dtype and lazily builds the default allocator from
    the alignment and slot cap settings.
    """

    def __init__(self):
        self._default_dtype = _env_dtype()
        self._alignment = _env_int("CORTEX_ALIGNMENT") or DEFAULT_ALIGNMENT
        self._max_slots = _env_int("CORTEX_MAX_SLOTS")
        self._allocator: Optional["Allocator"] = None

    @property
    def default_dtype(self) -> DType:
        """Get default dtype."""
        return self._default_dtype

    @default_dtype.setter
    def default_dtype(self, value: Union[DType, str, type]):
        dtype, _ = validate_dtype(value)
        logger.debug(f"default dtype: {self._default_dtype.type_name} -> {dtype.type_name}")
        self._default_dtype = dtype

    @property
    def alignment(self) -> int:
        """Byte alignment of numeric buffers."""
        return self._alignment

    @alignment.setter
    def alignment(self, value: int):
        if value <= 0 or value & (value - 1):
            raise ValueError(f"Alignment must be a positive power of two, got {value}")
        self._alignment = value
        # The cached default allocator was built with the old alignment
        self._allocator = None

    @property
    def max_slots(self) -> Optional[int]:
        """Largest single allocation accepted by the default allocator."""
        return self._max_slots

    @max_slots.setter
    def max_slots(self, value: Optional[int]):
        if value is not None and value < 0:
            raise ValueError(f"max_slots must be non-negative, got {value}")
        self._max_slots = value
        self._allocator = None

    @property
    def allocator(self) -> "Allocator":
        """Get the allocation policy (lazy loaded)."""
        if self._allocator is None:
            self._allocator = self._build_allocator()
        return self._allocator

    @allocator.setter
    def allocator(self, value: Optional["Allocator"]):
        logger.debug(f"allocator set to {value!r}")
        self._allocator = value

    def _build_allocator(self) -> "Allocator":
        from .matrix._allocator import DefaultAllocator
        return DefaultAllocator(align=self._alignment, max_slots=self._max_slots)


# Global config instance
_config = _Config()


# =============================================================================
# Public API
# =============================================================================

def get_config() -> _Config:
    """Get global configuration instance."""
    return _config


def set_default_dtype(dtype: Union[DType, str, type]) -> None:
    """
    Set the dtype used when a constructor gets no dtype and no values.

    Example:
        >>> cortex.set_default_dtype('int64')
        >>> Matrix(2, 2).dtype
        <DType.INT64: 3>
    """
    _config.default_dtype = dtype


def get_default_dtype() -> DType:
    """Get current default dtype."""
    return _config.default_dtype


def set_allocator(allocator: Optional["Allocator"]) -> None:
    """
    Install the process-wide allocation policy.

    Passing None restores a DefaultAllocator built from the current
    alignment and slot cap.
    """
    _config.allocator = allocator


def get_allocator() -> "Allocator":
    """Get the current allocation policy."""
    return _config.allocator


@contextmanager
def allocator_scope(allocator: "Allocator") -> Iterator["Allocator"]:
    """
    Temporarily install ``allocator`` as the process-wide policy.

    Example:
        >>> with allocator_scope(CountingAllocator()) as counting:
        ...     m = Matrix(2, 2)
        >>> counting.allocations
        1
    """
    previous = _config._allocator
    _config.allocator = allocator
    try:
        yield allocator
    finally:
        _config.allocator = previous


def reset_config() -> None:
    """Restore every setting to its environment/default value."""
    _config.__init__()
