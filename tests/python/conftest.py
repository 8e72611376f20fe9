"""
Pytest configuration and shared fixtures for cortex tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import cortex
from cortex.matrix import (
    Matrix,
    Allocator,
    Block,
    CountingAllocator,
    AllocationError,
    DType,
)


# =============================================================================
# Helper Types
# =============================================================================

class FailingAllocator(Allocator):
    """Allocator that refuses every request after ``fail_after`` successes."""

    def __init__(self, fail_after: int = 0):
        self.inner = CountingAllocator()
        self.fail_after = fail_after

    def allocate(self, n: int, dtype: DType) -> Block:
        if self.inner.allocations >= self.fail_after:
            raise AllocationError(f"refusing {n} slots of {dtype.type_name}")
        return self.inner.allocate(n, dtype)

    def deallocate(self, block: Block) -> None:
        self.inner.deallocate(block)


class Token:
    """Element class with no arithmetic operators."""

    def __init__(self, name: str = ""):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Token) and self.name == other.name

    def __lt__(self, other):
        return self.name < other.name

    __hash__ = object.__hash__


class Vec:
    """Element class supporting + and - with itself only."""

    def __init__(self, x: int = 0):
        self.x = x

    def __add__(self, other):
        return Vec(self.x + other.x)

    def __sub__(self, other):
        return Vec(self.x - other.x)

    def __eq__(self, other):
        return isinstance(other, Vec) and self.x == other.x

    def __repr__(self):
        return f"Vec({self.x})"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config():
    """Restore process-wide configuration after every test."""
    cortex.reset_config()
    yield
    cortex.reset_config()


@pytest.fixture
def counting():
    """Counting allocator for leak / double-free checks."""
    return CountingAllocator()


@pytest.fixture
def failing():
    """Allocator that fails on the first request."""
    return FailingAllocator(fail_after=0)


@pytest.fixture
def a_matrix():
    """A = [[1, 2], [3, 4]] (int64)."""
    return Matrix.from_nested([[1, 2], [3, 4]])


@pytest.fixture
def b_matrix():
    """B = [[5, 6], [7, 8]] (int64)."""
    return Matrix.from_nested([[5, 6], [7, 8]])


@pytest.fixture
def float_matrix():
    """2x3 float64 matrix."""
    return Matrix.from_nested([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])


@pytest.fixture
def token_matrix():
    """2x2 OBJECT matrix of Token elements."""
    return Matrix.from_nested([[Token("a"), Token("b")], [Token("c"), Token("d")]])


# =============================================================================
# Helper Functions
# =============================================================================

def assert_matrix_equal(m, expected, rtol=1e-6):
    """Assert a matrix holds ``expected`` (nested list) row by row."""
    assert m.dimensions == (len(expected), len(expected[0]) if expected else 0)
    np.testing.assert_allclose(np.array(m.tolist(), dtype=float),
                               np.array(expected, dtype=float), rtol=rtol)
