"""
Streaming adaptive equalization for 8-VSB.

This module provides a symbol-spaced, decision-directed LMS equalizer
that runs one symbol at a time inside the demodulator loop:

1. :meth:`AdaptiveEqualizer.equalize` shifts the delay line, inserts the
   new symbol sample at index 0 and returns ``dot(taps, delay_line)``
   (direct-form FIR).
2. The caller slices the output to the nearest 8-VSB level
   (:func:`vsbtools.mapping.slice_symbol`).
3. :meth:`AdaptiveEqualizer.update` takes the slicing residual
   ``equalized - decided`` and moves every tap down the gradient of the
   squared residual: ``taps -= mu * e * delay_line``. The minus sign
   follows from defining the residual as output minus decision; adding
   the term instead would climb the error surface and diverge.

Tap vector and delay line are preallocated arrays of ``num_taps``
elements and never change size. The filter starts as a unit impulse at
the center tap, i.e. a pure delay of ``center_tap`` symbols.

Adaptation is held until the delay line has been filled once; before
that the output is built from a partly empty delay line and its residual
says nothing about the channel.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .logger import get_logger
from .mapping import slice_symbol

logger = get_logger(__name__)


# ============================================================================
# RESULT CONTAINER
# ============================================================================


@dataclass
class EqualizerResult:
    """Container for block equalizer outputs.

    Attributes
    ----------
    y_hat : ndarray
        Equalized (pre-decision) samples. Shape: ``(N_sym,)``.
    decisions : ndarray
        Sliced 8-VSB levels. Shape: ``(N_sym,)``.
    error : ndarray
        Slicing residual ``y_hat - decisions``. Shape: ``(N_sym,)``.
    weights : ndarray
        Tap weights after the last update. Shape: ``(num_taps,)``.
    """

    y_hat: np.ndarray
    decisions: np.ndarray
    error: np.ndarray
    weights: np.ndarray


# ============================================================================
# LMS EQUALIZER
# ============================================================================


class AdaptiveEqualizer:
    """
    Decision-directed LMS FIR equalizer.

    Parameters
    ----------
    num_taps : int, default 64
        Number of FIR taps (and delay-line length).
    step_size : float, default 0.001
        LMS step size (mu). Small values adapt slowly but stay stable;
        divergence sets in roughly when ``mu * num_taps * P_in > 2``,
        where ``P_in`` is the input power (21 for unit-spaced 8-VSB).
    center_tap : int, optional
        Index of the unity tap at startup. Defaults to ``num_taps // 2``.
    """

    def __init__(
        self,
        num_taps: int = 64,
        step_size: float = 0.001,
        center_tap: Optional[int] = None,
    ):
        if num_taps < 1:
            raise ValueError(f"num_taps must be >= 1, got {num_taps}")
        c_tap = center_tap if center_tap is not None else num_taps // 2
        if not 0 <= c_tap < num_taps:
            raise ValueError(
                f"center_tap must be in [0, {num_taps - 1}], got {center_tap}"
            )

        self.num_taps = num_taps
        self.step_size = step_size
        self.center_tap = c_tap

        self._taps = np.zeros(num_taps, dtype=np.float64)
        self._delay_line = np.zeros(num_taps, dtype=np.float64)
        self._filled = 0
        self.reset()

    def reset(self):
        """Restore the identity (unit impulse at the center tap) filter."""
        self._taps.fill(0.0)
        self._taps[self.center_tap] = 1.0
        self._delay_line.fill(0.0)
        self._filled = 0

    @property
    def taps(self) -> np.ndarray:
        """Copy of the current tap weights."""
        return self._taps.copy()

    @property
    def delay_line(self) -> np.ndarray:
        """Copy of the current delay line (index 0 is the newest sample)."""
        return self._delay_line.copy()

    @property
    def primed(self) -> bool:
        """True once the delay line has been filled and taps adapt."""
        return self._filled >= self.num_taps

    def equalize(self, sample: float) -> float:
        """
        Push one symbol sample through the FIR filter.

        Args:
            sample: Recovered (pre-decision) symbol sample.

        Returns:
            Equalized sample.
        """
        delay_line = self._delay_line
        delay_line[1:] = delay_line[:-1]
        delay_line[0] = sample
        if self._filled < self.num_taps:
            self._filled += 1
        return float(np.dot(self._taps, delay_line))

    def update(self, error: float):
        """
        LMS tap update from the slicing residual.

        Args:
            error: ``equalized - decided`` for the sample most recently
                passed to :meth:`equalize`.
        """
        if self._filled < self.num_taps:
            return
        # Gradient of error**2 w.r.t. taps is 2 * error * delay_line
        self._taps -= (self.step_size * error) * self._delay_line

    def process(self, samples: np.ndarray) -> EqualizerResult:
        """
        Equalize, slice and adapt over a block of symbol samples.

        Runs the same per-symbol loop as the demodulator, so state carries
        over between calls.

        Args:
            samples: Symbol-spaced samples.

        Returns:
            EqualizerResult with outputs, decisions, residuals and the
            final weights.
        """
        samples = np.asarray(samples, dtype=np.float64)
        n_sym = samples.size
        y_hat = np.empty(n_sym, dtype=np.float64)
        decisions = np.empty(n_sym, dtype=np.float64)
        error = np.empty(n_sym, dtype=np.float64)

        for idx, sample in enumerate(samples.tolist()):
            equalized = self.equalize(sample)
            level, residual = slice_symbol(equalized)
            self.update(residual)
            y_hat[idx] = equalized
            decisions[idx] = level
            error[idx] = residual

        if n_sym and not np.all(np.isfinite(self._taps)):
            logger.warning(
                f"Equalizer taps diverged (mu={self.step_size}, "
                f"num_taps={self.num_taps}); consider a smaller step size."
            )

        return EqualizerResult(
            y_hat=y_hat, decisions=decisions, error=error, weights=self.taps
        )
