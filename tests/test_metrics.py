"""Tests for signal quality metrics."""

import math

import numpy as np
import pytest

from vsbtools.metrics import (
    LOCKED_QUALITY,
    UNLOCKED_QUALITY,
    ResidualAccumulator,
    estimated_quality,
    mer_db,
    signal_strength,
    symbol_error_rate,
)


class TestMER:
    def test_nominal_power(self):
        residuals = np.full(100, 0.1)
        assert mer_db(residuals) == pytest.approx(10 * math.log10(21 / 0.01))

    def test_with_levels(self):
        levels = np.array([7.0, -7.0, 7.0, -7.0])
        residuals = np.array([0.7, -0.7, 0.7, -0.7])
        assert mer_db(residuals, levels) == pytest.approx(20.0)

    def test_zero_error_is_infinite(self):
        assert mer_db(np.zeros(10)) == float("inf")

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            mer_db(np.zeros(0))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="Shape mismatch"):
            mer_db(np.zeros(4), np.zeros(5))


class TestSymbolErrorRate:
    def test_rate(self):
        rx = np.array([1.0, 3.0, 5.0, 7.0])
        tx = np.array([1.0, 3.0, -5.0, 7.0])
        assert symbol_error_rate(rx, tx) == pytest.approx(0.25)

    def test_empty(self):
        assert symbol_error_rate(np.zeros(0), np.zeros(0)) == 0.0

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            symbol_error_rate(np.zeros(3), np.zeros(4))


class TestSignalStrength:
    def test_nominal_rms_is_full_scale(self):
        samples = np.full(64, math.sqrt(21) * np.exp(0.3j))
        assert signal_strength(samples) == pytest.approx(1.0)

    def test_clipped(self):
        assert signal_strength(np.full(8, 100.0 + 0j)) == 1.0

    def test_half_scale(self):
        samples = np.full(16, 0.5 * math.sqrt(21))
        assert signal_strength(samples) == pytest.approx(0.5)

    def test_silence_and_empty(self):
        assert signal_strength(np.zeros(32, dtype=complex)) == 0.0
        assert signal_strength(np.zeros(0, dtype=complex)) == 0.0


class TestEstimatedQuality:
    def test_locked(self):
        quality = estimated_quality(True)
        assert quality == LOCKED_QUALITY
        assert (quality.snr_db, quality.mer_db, quality.ber) == (18.0, 22.0, 1e-5)

    def test_unlocked(self):
        quality = estimated_quality(False)
        assert quality == UNLOCKED_QUALITY
        assert (quality.snr_db, quality.mer_db, quality.ber) == (5.0, 10.0, 0.1)


class TestResidualAccumulator:
    def test_empty_is_none(self):
        assert ResidualAccumulator().mer_db() is None

    def test_accumulates_blocks(self):
        acc = ResidualAccumulator()
        levels = np.array([7.0, -7.0, 7.0, -7.0])
        residuals = np.array([0.7, -0.7, 0.7, -0.7])
        acc.add(levels[:1], residuals[:1])
        acc.add(levels[1:], residuals[1:])
        assert acc.count == 4
        assert acc.mer_db() == pytest.approx(mer_db(residuals, levels))

    def test_perfect_decisions(self):
        acc = ResidualAccumulator()
        acc.add(np.ones(5), np.zeros(5))
        assert acc.mer_db() == float("inf")

    def test_clear(self):
        acc = ResidualAccumulator()
        acc.add(np.ones(5), np.full(5, 0.1))
        acc.clear()
        assert acc.count == 0
        assert acc.mer_db() is None
