"""Tests for Gardner symbol timing recovery."""

import numpy as np
import pytest

from vsbtools.constants import SYMBOL_RATE
from vsbtools.timing import MAX_SYMBOL_PHASE, MIN_ADVANCE, TimingRecovery
from vsbtools.waveforms import upsample_symbols, vsb_segments


class TestTimingRecovery:
    def test_samples_per_symbol(self):
        ted = TimingRecovery()
        result = ted.process(np.zeros(40), 4 * SYMBOL_RATE)
        assert result.samples_per_symbol == pytest.approx(4.0)
        assert ted.samples_per_symbol == pytest.approx(4.0)

    def test_recovers_zero_stuffed_symbols(self):
        """With zero midpoints the loop stays put and symbols come out exactly."""
        symbols = vsb_segments(3, seed=5)
        samples = upsample_symbols(symbols, 2)

        ted = TimingRecovery()
        result = ted.process(samples, 2 * SYMBOL_RATE)

        np.testing.assert_array_equal(result.symbols, symbols)
        np.testing.assert_array_equal(result.positions, 2.0 * np.arange(symbols.size))
        assert ted.symbol_phase == 0.0

    def test_forward_progress(self):
        """Read position advances by at least MIN_ADVANCE per symbol."""
        rng = np.random.default_rng(11)
        ted = TimingRecovery(loop_gain=0.5)
        for _ in range(5):
            chunk = rng.normal(0, 5, 3001)
            result = ted.process(chunk, 1.05 * SYMBOL_RATE)
            assert np.all(np.diff(result.positions) >= MIN_ADVANCE - 1e-12)
            assert abs(ted.symbol_phase) <= MAX_SYMBOL_PHASE

    def test_symbol_count_tracks_rate(self):
        rng = np.random.default_rng(2)
        ted = TimingRecovery(loop_gain=0.0)
        result = ted.process(rng.normal(size=4000), 4 * SYMBOL_RATE)
        assert abs(result.symbols.size - 1000) <= 1

    def test_chunking_invariance(self):
        """Chunk boundaries neither drop nor repeat symbols."""
        rng = np.random.default_rng(21)
        samples = rng.normal(0, 3, 20000)
        rate = 2.5 * SYMBOL_RATE

        whole = TimingRecovery(loop_gain=0.05).process(samples, rate).symbols

        chunked_ted = TimingRecovery(loop_gain=0.05)
        bounds = [0, 1, 8, 9, 500, 1337, 1338, 7000, 12001, 20000]
        pieces = [
            chunked_ted.process(samples[lo:hi], rate).symbols
            for lo, hi in zip(bounds[:-1], bounds[1:])
        ]
        chunked = np.concatenate(pieces)

        assert chunked.size == whole.size
        np.testing.assert_allclose(chunked, whole, rtol=1e-9, atol=1e-9)

    def test_empty_chunk_keeps_state(self):
        ted = TimingRecovery()
        ted.process(np.random.default_rng(0).normal(size=101), 2 * SYMBOL_RATE)
        state = (
            ted.symbol_phase,
            ted.previous_sample,
            ted.previous_midpoint,
            ted._index,
            ted._tail.copy(),
        )

        result = ted.process(np.zeros(0), 2 * SYMBOL_RATE)

        assert result.symbols.size == 0
        assert ted.symbol_phase == state[0]
        assert ted.previous_sample == state[1]
        assert ted.previous_midpoint == state[2]
        assert ted._index == state[3]
        np.testing.assert_array_equal(ted._tail, state[4])

    def test_reset(self):
        ted = TimingRecovery(loop_gain=0.3)
        ted.process(np.random.default_rng(4).normal(0, 4, 999), 3 * SYMBOL_RATE)
        ted.reset()
        assert ted.symbol_phase == 0.0
        assert ted.previous_sample == 0.0
        assert ted.previous_midpoint == 0.0
        assert ted._tail.size == 0
        assert ted._index == 0.0
