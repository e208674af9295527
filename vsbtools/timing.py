"""
Symbol timing recovery for 8-VSB.

VSB energy is carried in-phase, so timing runs on the real part of the
carrier-corrected stream. :class:`TimingRecovery` walks the input with a
fractional read index, linearly interpolates the symbol sample and the
sample half a symbol earlier (the midpoint), and forms the Gardner error

    e[k] = (y[k] - y[k-1]) * m[k-1]

from the current and previous symbol samples and the previous midpoint.
A first-order loop integrates the error into a symbol-phase correction,
clamped to +-0.5 symbols. Each step advances the index by
``samples_per_symbol + symbol_phase``, never less than 0.1 samples.

The read position and the few input samples still needed for
interpolation are carried over, so chunk boundaries neither drop nor
repeat symbols.
"""

import math
from dataclasses import dataclass

import numpy as np

from .constants import SYMBOL_RATE
from .logger import get_logger

logger = get_logger(__name__)

# Floor on the per-symbol advance; guarantees termination for any chunk
MIN_ADVANCE = 0.1

# Clamp on the symbol-phase correction, in samples
MAX_SYMBOL_PHASE = 0.5


@dataclass
class TimingResult:
    """Output of one timing-recovery call.

    Attributes
    ----------
    symbols : ndarray
        Interpolated symbol samples, one per recovered symbol instant.
    samples_per_symbol : float
        Ratio used for this chunk (sample rate / symbol rate).
    positions : ndarray
        Fractional read positions of ``symbols`` relative to the first
        sample of the chunk. Positions can be negative when a symbol was
        interpolated from samples carried over from the previous chunk.
    """

    symbols: np.ndarray
    samples_per_symbol: float
    positions: np.ndarray


class TimingRecovery:
    """
    Gardner timing recovery with a first-order loop.

    Args:
        loop_gain: Gain applied to the Gardner error before it is added to
            the symbol-phase correction.
        symbol_rate: Nominal symbol rate in symbols/second.
    """

    def __init__(self, loop_gain: float = 0.01, symbol_rate: float = SYMBOL_RATE):
        self.loop_gain = loop_gain
        self.symbol_rate = symbol_rate
        self.samples_per_symbol = 1.0
        self.reset()

    def reset(self):
        """Reset timing recovery state."""
        self.symbol_phase = 0.0
        self.previous_sample = 0.0
        self.previous_midpoint = 0.0
        self.timing_error = 0.0
        self._tail = np.zeros(0, dtype=np.float64)
        self._index = 0.0

    def process(self, samples: np.ndarray, sample_rate: float) -> TimingResult:
        """
        Extract symbol samples from a real baseband chunk.

        Args:
            samples: Real-valued baseband samples.
            sample_rate: Sample rate of ``samples`` in Hz.

        Returns:
            TimingResult with the recovered symbol samples.
        """
        samples = np.asarray(samples, dtype=np.float64)
        sps = sample_rate / self.symbol_rate
        if sps != self.samples_per_symbol:
            logger.debug(f"Timing recovery at {sps:.4f} samples/symbol.")
        self.samples_per_symbol = sps

        if samples.size == 0:
            empty = np.zeros(0, dtype=np.float64)
            return TimingResult(empty, sps, empty.copy())

        carried = self._tail.size
        buffer = np.concatenate([self._tail, samples]) if carried else samples
        values = buffer.tolist()
        n = len(values)
        half = sps / 2.0

        # Local copies for speed
        index = self._index
        phase = self.symbol_phase
        previous = self.previous_sample
        previous_mid = self.previous_midpoint
        gain = self.loop_gain
        error = self.timing_error

        symbols = []
        positions = []

        while True:
            int_part = int(math.floor(index))
            if int_part >= n - 1:
                break
            frac = index - int_part
            current = values[int_part] * (1.0 - frac) + values[int_part + 1] * frac

            # Midpoint half a symbol back; zero until enough history exists
            midpoint = 0.0
            mid_index = index - half
            if mid_index >= 0.0:
                mid_int = int(math.floor(mid_index))
                if mid_int < n - 1:
                    mid_frac = mid_index - mid_int
                    midpoint = (
                        values[mid_int] * (1.0 - mid_frac)
                        + values[mid_int + 1] * mid_frac
                    )

            # Gardner TED
            error = (current - previous) * previous_mid

            phase += gain * error
            phase = max(-MAX_SYMBOL_PHASE, min(MAX_SYMBOL_PHASE, phase))

            previous = current
            previous_mid = midpoint

            symbols.append(current)
            positions.append(index - carried)

            index += max(MIN_ADVANCE, sps + phase)

        # Keep the samples the next midpoint interpolation still needs
        keep_from = min(n, max(0, int(math.floor(index - half))))
        self._tail = buffer[keep_from:].copy()
        self._index = index - keep_from

        self.symbol_phase = phase
        self.previous_sample = previous
        self.previous_midpoint = previous_mid
        self.timing_error = error

        return TimingResult(
            np.asarray(symbols, dtype=np.float64),
            sps,
            np.asarray(positions, dtype=np.float64),
        )
