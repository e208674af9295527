"""Tests for channel impairment models."""

import numpy as np
import pytest

from vsbtools.impairments import add_awgn, apply_carrier_offset, apply_multipath


class TestAWGN:
    def test_measured_snr(self):
        signal = np.exp(1j * np.linspace(0, 200, 200_000))
        noisy = add_awgn(signal, snr_db=10.0, seed=0)
        noise_power = np.mean(np.abs(noisy - signal) ** 2)
        assert 10 * np.log10(1.0 / noise_power) == pytest.approx(10.0, abs=0.1)

    def test_seed_reproducible(self):
        signal = np.ones(64, dtype=complex)
        np.testing.assert_array_equal(
            add_awgn(signal, 5.0, seed=42), add_awgn(signal, 5.0, seed=42)
        )

    def test_real_stays_real(self):
        noisy = add_awgn(np.ones(128), 20.0, seed=1)
        assert not np.iscomplexobj(noisy)
        assert noisy.shape == (128,)


class TestMultipath:
    def test_matches_manual_echo(self):
        x = np.random.default_rng(0).standard_normal(50)
        y = apply_multipath(x, [1.0, 0.0, 0.3])
        expected = x.copy()
        expected[2:] += 0.3 * x[:-2]
        np.testing.assert_allclose(y, expected)

    def test_identity(self):
        x = np.arange(10, dtype=complex)
        np.testing.assert_allclose(apply_multipath(x, [1.0]), x)

    @pytest.mark.parametrize("taps", [[], [[1.0, 0.5]]])
    def test_invalid_taps(self, taps):
        with pytest.raises(ValueError):
            apply_multipath(np.ones(4), taps)


class TestCarrierOffset:
    def test_magnitude_preserved(self):
        x = np.full(100, 2.0 + 0j)
        y = apply_carrier_offset(x, 1e3, 1e6, phase=0.5)
        np.testing.assert_allclose(np.abs(y), 2.0)
        assert np.angle(y[0]) == pytest.approx(0.5)

    def test_phase_progression(self):
        y = apply_carrier_offset(np.ones(10, dtype=complex), 1e3, 1e6)
        step = np.angle(y[1:] / y[:-1])
        np.testing.assert_allclose(step, 2 * np.pi * 1e3 / 1e6)

    def test_invalid_rate(self):
        with pytest.raises(ValueError, match="sample_rate"):
            apply_carrier_offset(np.ones(4), 1e3, 0.0)
