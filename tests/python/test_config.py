"""
Tests for process-wide configuration.
"""

import logging

import pytest

import cortex
from cortex import Matrix, DType, DefaultAllocator, CountingAllocator, AllocationError
from cortex._config import _Config


class TestDefaultDType:
    """Test the default dtype setting."""

    def test_initial(self):
        assert cortex.get_default_dtype() is DType.FLOAT64

    def test_set(self):
        cortex.set_default_dtype('int32')
        assert cortex.get_default_dtype() is DType.INT32
        assert Matrix(1, 1).dtype is DType.INT32

    def test_set_python_type(self):
        cortex.set_default_dtype(bool)
        assert Matrix(1, 1).flatten() == [False]

    def test_invalid(self):
        with pytest.raises(ValueError):
            cortex.set_default_dtype('complex64')

    def test_logs_change(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="cortex.config"):
            cortex.set_default_dtype('float32')
        assert "float64 -> float32" in caplog.text


class TestAllocatorSetting:
    """Test the process-wide allocator."""

    def test_lazy_default(self):
        alloc = cortex.get_allocator()
        assert isinstance(alloc, DefaultAllocator)
        assert alloc is cortex.get_allocator()

    def test_set_allocator(self, counting):
        cortex.set_allocator(counting)
        Matrix(2, 2)
        assert counting.allocations == 1

    def test_set_none_restores_default(self, counting):
        cortex.set_allocator(counting)
        cortex.set_allocator(None)
        assert isinstance(cortex.get_allocator(), DefaultAllocator)

    def test_scope_restores(self):
        before = cortex.get_allocator()
        with cortex.allocator_scope(CountingAllocator()) as counting:
            m = Matrix(1, 1)
            assert m.allocator is counting
        assert cortex.get_allocator() is before

    def test_scope_restores_on_error(self):
        before = cortex.get_allocator()
        with pytest.raises(RuntimeError):
            with cortex.allocator_scope(CountingAllocator()):
                raise RuntimeError("boom")
        assert cortex.get_allocator() is before

    def test_explicit_allocator_wins(self, counting):
        with cortex.allocator_scope(CountingAllocator()) as scoped:
            Matrix(1, 1, allocator=counting)
        assert counting.allocations == 1
        assert scoped.allocations == 0


class TestLimits:
    """Test alignment and allocation cap."""

    def test_alignment(self):
        config = cortex.get_config()
        config.alignment = 128
        assert cortex.get_allocator().align == 128

    def test_bad_alignment(self):
        with pytest.raises(ValueError):
            cortex.get_config().alignment = 48

    def test_max_slots(self):
        cortex.get_config().max_slots = 4
        Matrix(2, 2)
        with pytest.raises(AllocationError):
            Matrix(3, 3)

    def test_reset(self):
        cortex.set_default_dtype('int64')
        cortex.get_config().max_slots = 1
        cortex.reset_config()
        assert cortex.get_default_dtype() is DType.FLOAT64
        assert cortex.get_config().max_slots is None


class TestEnvironment:
    """Test settings read from environment variables."""

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("CORTEX_DEFAULT_DTYPE", "int32")
        monkeypatch.setenv("CORTEX_ALIGNMENT", "32")
        monkeypatch.setenv("CORTEX_MAX_SLOTS", "100")
        config = _Config()
        assert config.default_dtype is DType.INT32
        assert config.alignment == 32
        assert config.max_slots == 100

    def test_env_garbage_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("CORTEX_DEFAULT_DTYPE", "quaternion")
        monkeypatch.setenv("CORTEX_MAX_SLOTS", "lots")
        with caplog.at_level(logging.WARNING, logger="cortex.config"):
            config = _Config()
        assert config.default_dtype is DType.FLOAT64
        assert config.max_slots is None
        assert "CORTEX_MAX_SLOTS" in caplog.text
