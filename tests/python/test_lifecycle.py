"""
Tests for Matrix construction, assignment and storage management.
"""

import copy
import logging
from fractions import Fraction

import numpy as np
import pytest

import cortex
from cortex.matrix import (
    Matrix,
    DType,
    AllocationError,
    CapabilityError,
    DimensionMismatchError,
    swap,
)
from conftest import FailingAllocator


class TestConstruction:
    """Test the constructors."""

    def test_default(self, counting):
        """Test the default matrix is empty and allocates nothing."""
        m = Matrix(allocator=counting)
        assert m.size == 0
        assert m.row_count == 0
        assert m.column_count == 0
        assert m.capacity == 0
        assert m.data.is_null
        assert counting.allocations == 0

    @pytest.mark.parametrize("rows,cols", [(1, 1), (2, 3), (4, 2), (7, 5)])
    def test_dimensioned(self, rows, cols):
        """Test size == rows * columns for nonzero dimensions."""
        m = Matrix(rows, cols)
        assert m.size == rows * cols
        assert m.row_count == rows
        assert m.column_count == cols
        assert m.capacity == m.size
        assert all(x == 0.0 for x in m)

    @pytest.mark.parametrize("rows,cols", [(0, 5), (5, 0)])
    def test_degenerate(self, rows, cols):
        """Test a zero dimension gives size max(rows, columns)."""
        m = Matrix(rows, cols)
        assert m.size == 5
        assert m.dimensions == (rows, cols)

    def test_fill(self):
        """Test every slot copies the fill value."""
        m = Matrix(2, 2, 7)
        assert m.dtype is DType.INT64
        assert m.flatten() == [7, 7, 7, 7]

    def test_fill_objects_are_copies(self):
        """Test OBJECT fill values are copied per slot."""
        m = Matrix(1, 2, [0])
        m[0].append(1)
        assert m[1] == [0]

    def test_explicit_dtype(self):
        m = Matrix(2, 2, dtype='int32')
        assert m.dtype is DType.INT32
        assert m.flatten() == [0, 0, 0, 0]

    def test_default_dtype_from_config(self):
        """Test the configured default dtype is used."""
        cortex.set_default_dtype('uint8')
        assert Matrix(1, 1).dtype is DType.UINT8

    def test_object_default_constructed(self):
        """Test OBJECT slots hold fresh element_type() instances."""
        m = Matrix(1, 2, dtype=Fraction)
        assert m.element_type is Fraction
        assert m.flatten() == [Fraction(0), Fraction(0)]

    def test_not_default_constructible(self):
        """Test classes needing arguments are rejected without a fill."""

        class NeedsArg:
            def __init__(self, value):
                self.value = value

        with pytest.raises(CapabilityError):
            Matrix(2, 2, dtype=NeedsArg)
        m = Matrix(1, 1, NeedsArg(3))
        assert m.at(0, 0).value == 3

    def test_allocation_failure(self, failing):
        """Test refused allocations surface as AllocationError."""
        with pytest.raises(AllocationError):
            Matrix(2, 2, allocator=failing)
        with pytest.raises(MemoryError):
            Matrix(2, 2, allocator=failing)

    def test_negative_dimensions(self):
        with pytest.raises(ValueError):
            Matrix(-1, 2)


class TestNestedConstruction:
    """Test construction from nested sequences."""

    def test_two_columns(self):
        m = Matrix.from_nested([[1, 2], [3, 4]])
        assert m.dimensions == (2, 2)
        assert m.flatten() == [1, 2, 3, 4]

    def test_three_columns_row_major(self):
        """Test rows land at row * columns, not at a fixed stride of 2.

        A fixed stride of 2 per row would overlap rows whenever there are
        more than two columns, so 3x3 input catches it.
        """
        m = Matrix.from_nested([[1, 2, 3], [4, 5, 6], [7, 8, 9]])
        for row in range(3):
            for col in range(3):
                assert m.at(row, col) == row * 3 + col + 1
        assert m.flatten() == [1, 2, 3, 4, 5, 6, 7, 8, 9]

    def test_single_column(self):
        m = Matrix.from_nested([[1], [2], [3]])
        assert m.dimensions == (3, 1)
        assert m.at(2, 0) == 3

    def test_ragged_rows_fail(self, counting):
        """Test a short row raises and releases the partial buffer."""
        with pytest.raises(DimensionMismatchError):
            Matrix.from_nested([[1, 2], [3], [4, 5]], allocator=counting)
        assert counting.allocations == 1
        assert counting.outstanding == 0

    def test_ragged_is_value_error(self):
        with pytest.raises(ValueError):
            Matrix.from_nested([[1, 2, 3], [4, 5]])

    def test_degenerate_empty_row(self):
        """Test [[]] is 1x0 with one value-constructed slot."""
        m = Matrix.from_nested([[]])
        assert m.dimensions == (1, 0)
        assert m.size == 1
        assert m.capacity >= m.size

    def test_empty_outer(self):
        m = Matrix.from_nested([])
        assert m.size == 0
        assert m.is_empty

    def test_dtype_inference(self):
        assert Matrix.from_nested([[1.5, 2]]).dtype is DType.FLOAT64
        assert Matrix.from_nested([[True, False]]).dtype is DType.BOOL
        strings = Matrix.from_nested([['a', 'b']])
        assert strings.dtype is DType.OBJECT
        assert strings.element_type is str

    def test_large_ints_kept_exact(self):
        """Test ints past the int64 range are stored without truncation."""
        m = Matrix.from_nested([[2 ** 63, 1], [-2 ** 70, 3]])
        assert m.dtype is DType.OBJECT
        assert m.element_type is int
        assert m.at(0, 0) == 2 ** 63
        assert m.at(1, 0) == -2 ** 70
        assert Matrix(1, 1, 2 ** 64).at(0, 0) == 2 ** 64

    def test_large_uint64_from_numpy(self):
        """Test uint64 values past int64 max are not wrapped."""
        big = np.array([[2 ** 64 - 1, 1]], dtype=np.uint64)
        m = Matrix.from_numpy(big)
        assert m.dtype is DType.OBJECT
        assert m.flatten() == [2 ** 64 - 1, 1]
        small = Matrix.from_numpy(np.array([[7, 8]], dtype=np.uint64))
        assert small.dtype is DType.INT64
        assert small.flatten() == [7, 8]

    def test_explicit_dtype(self):
        m = Matrix.from_nested([[1, 2]], dtype='float32')
        assert m.dtype is DType.FLOAT32
        assert m.flatten() == [1.0, 2.0]


class TestCopyAndMove:
    """Test copy and move semantics."""

    def test_copy_independent(self, a_matrix):
        """Test writing a copy leaves the source unchanged."""
        dup = a_matrix.copy()
        dup[0, 0] = 99
        assert a_matrix.at(0, 0) == 1
        assert dup.at(0, 0) == 99

    def test_copy_drops_headroom(self, a_matrix):
        """Test copies allocate exactly size slots."""
        a_matrix.reserve(3, 3)
        dup = Matrix.copy_of(a_matrix)
        assert dup.capacity == dup.size == 4

    def test_copy_module(self, token_matrix):
        """Test copy.copy and copy.deepcopy."""
        shallow = copy.copy(token_matrix)
        deep = copy.deepcopy(token_matrix)
        assert shallow == token_matrix
        assert deep == token_matrix
        assert deep.at(0, 0) is not token_matrix.at(0, 0)

    def test_take_resets_source(self, a_matrix):
        """Test move construction transfers the buffer."""
        n = Matrix.take(a_matrix)
        assert a_matrix.size == 0
        assert a_matrix.capacity == 0
        assert a_matrix.dimensions == (0, 0)
        assert n.flatten() == [1, 2, 3, 4]
        assert n.dimensions == (2, 2)

    def test_copy_from(self, counting):
        """Test copy assignment releases the previous buffer."""
        target = Matrix(3, 3, allocator=counting)
        source = Matrix.from_nested([[1, 2]])
        target.copy_from(source)
        assert target.flatten() == [1, 2]
        assert target.dimensions == (1, 2)
        assert counting.deallocations == 1
        target.release()
        assert counting.outstanding == 0

    def test_copy_from_self(self, a_matrix):
        """Test self-assignment is a no-op."""
        buffer = a_matrix.data
        assert a_matrix.copy_from(a_matrix) is a_matrix
        assert a_matrix.data is buffer
        assert a_matrix.flatten() == [1, 2, 3, 4]

    def test_move_from(self, counting):
        """Test move assignment releases the target's old buffer."""
        target = Matrix(2, 2, allocator=counting)
        source = Matrix(1, 3, 5, allocator=counting)
        target.move_from(source)
        assert target.flatten() == [5, 5, 5]
        assert source.capacity == 0
        assert counting.outstanding == 1

    def test_move_from_self(self, a_matrix):
        a_matrix.move_from(a_matrix)
        assert a_matrix.flatten() == [1, 2, 3, 4]

    def test_assign_nested(self, a_matrix):
        a_matrix.assign([[9, 8, 7]])
        assert a_matrix.dimensions == (1, 3)
        assert a_matrix.flatten() == [9, 8, 7]

    def test_failed_copy_leaves_target(self, a_matrix):
        """Test a refused allocation does not disturb the target."""
        target = Matrix.from_nested([[0]])
        target._allocator = FailingAllocator()
        with pytest.raises(AllocationError):
            target.copy_from(a_matrix)
        assert target.flatten() == [0]


class TestReserve:
    """Test reserve() growth and reshaping."""

    def test_growth_packs_front(self, counting):
        """Test live elements move to the front of the new buffer."""
        m = Matrix.from_nested([[1, 2], [3, 4]], allocator=counting)
        m.reserve(3, 3)
        assert m.capacity == 9
        assert m.size == 4
        assert m.dimensions == (3, 3)
        assert m.flatten() == [1, 2, 3, 4]
        assert counting.allocations == 2
        assert counting.deallocations == 1

    def test_growth_does_not_preserve_addresses(self):
        """Test (row, column) addresses shift after growth."""
        m = Matrix.from_nested([[1, 2], [3, 4]])
        m.reserve(2, 3)
        assert m.at(1, 0) == 4

    def test_shrink_reinterprets(self, counting):
        """Test a fitting shape only changes the dimensions."""
        m = Matrix.from_nested([[1, 2, 3], [4, 5, 6]], allocator=counting)
        buffer = m.data
        m.reserve(3, 2)
        assert m.data is buffer
        assert m.dimensions == (3, 2)
        assert m.flatten() == [1, 2, 3, 4, 5, 6]
        assert counting.allocations == 1

    def test_reshape_past_live_warns(self, caplog):
        """Test a warning when the shape addresses unconstructed cells."""
        m = Matrix(2, 2)
        m.clear()
        with caplog.at_level(logging.WARNING, logger="cortex.matrix"):
            m.reserve(2, 2)
        assert "only 0 are live" in caplog.text

    def test_reserve_growth_logs(self, caplog):
        m = Matrix(1, 1)
        with caplog.at_level(logging.DEBUG, logger="cortex.matrix"):
            m.reserve(4, 4)
        assert "relocating 1 elements" in caplog.text


class TestClearSwapRelease:
    """Test clear(), swap() and release()."""

    def test_clear_keeps_capacity(self, a_matrix):
        a_matrix.clear()
        assert a_matrix.size == 0
        assert a_matrix.row_count == 0
        assert a_matrix.column_count == 0
        assert a_matrix.capacity == 4

    def test_swap(self, a_matrix, counting):
        """Test swap exchanges everything without allocating."""
        other = Matrix(1, 3, 0.5, allocator=counting)
        before = counting.allocations
        a_matrix.swap(other)
        assert a_matrix.dimensions == (1, 3)
        assert a_matrix.dtype is DType.FLOAT64
        assert other.flatten() == [1, 2, 3, 4]
        assert counting.allocations == before

    def test_free_swap(self, a_matrix, b_matrix):
        swap(a_matrix, b_matrix)
        assert a_matrix.flatten() == [5, 6, 7, 8]
        assert b_matrix.flatten() == [1, 2, 3, 4]

    def test_release_once(self, counting):
        """Test the buffer is returned exactly once."""
        m = Matrix(2, 2, allocator=counting)
        m.release()
        m.release()
        assert counting.deallocations == 1
        assert m.size == 0
        assert m.capacity == 0

    def test_context_manager(self, counting):
        with Matrix(2, 2, allocator=counting) as m:
            assert m.size == 4
        assert counting.outstanding == 0

    def test_del_releases(self, counting):
        m = Matrix(2, 2, allocator=counting)
        del m
        assert counting.outstanding == 0

    def test_every_buffer_released(self, counting):
        """Test copies, moves and growth leave no outstanding blocks."""
        with cortex.allocator_scope(counting):
            a = Matrix.from_nested([[1, 2], [3, 4]])
            b = a.copy()
            c = Matrix.take(b)
            a.reserve(4, 4)
            d = Matrix(1, 1)
            d.copy_from(c)
            for m in (a, b, c, d):
                m.release()
        assert counting.allocations > 0
        assert counting.outstanding == 0
