"""
Tests for execution timing and tolerance tiers.

Validates:
    - Timer records the total and accumulates named sections
    - result() before stop() is an error
    - select_tolerance picks the tier matching a kernel's precision
"""

import pytest

from pystrided.core.compute.timing import Timer
from pystrided.core.compute.tolerances import (
    GPU_FP32,
    GPU_FP64,
    LAPACK_FP64,
    REFERENCE_FP64,
    select_tolerance,
)


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        with timer.section('copy'):
            pass
        with timer.section('copy'):
            pass
        with timer.section('getrf'):
            pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'copy', 'getrf'}
        assert result['total_seconds'] >= result['copy'] >= 0

    def test_section_recorded_on_exception(self):
        timer = Timer()
        timer.start()
        with pytest.raises(ValueError):
            with timer.section('kernel'):
                raise ValueError("boom")
        timer.stop()
        assert 'kernel' in timer.result()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()


class TestSelectTolerance:

    @pytest.mark.parametrize("name, tier", [
        ('lapack', LAPACK_FP64),
        ('reference', REFERENCE_FP64),
        ('torch_fp64', GPU_FP64),
        ('torch_fp32', GPU_FP32),
        ('gpu', GPU_FP64),
    ])
    def test_tiers(self, name, tier):
        assert select_tolerance(name) is tier

    def test_single_precision_is_looser(self):
        assert GPU_FP32.rtol > GPU_FP64.rtol
