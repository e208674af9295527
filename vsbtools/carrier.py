"""
Carrier recovery on the ATSC pilot tone.

The 8-VSB signal carries a small in-phase pilot 309.44 kHz above the
lower band edge. :class:`CarrierRecovery` runs a second-order PLL on it:
a local oscillator advances by the nominal pilot increment plus the
estimated residual frequency offset, every sample is de-rotated by the
oscillator phase, and the quadrature part of the de-rotated sample is the
phase error. The error feeds a proportional term directly into the phase
and an integral term into the frequency estimate.

The loop never fails. Without a usable pilot it simply wanders (phase
noise or false lock); detecting that is left to the sync tracker.
"""

import math

import numpy as np

from .constants import PILOT_OFFSET
from .logger import get_logger

logger = get_logger(__name__)

_TWO_PI = 2.0 * math.pi


class CarrierRecovery:
    """
    Phase-locked loop for ATSC pilot tracking.

    Args:
        pilot_offset: Pilot frequency in Hz relative to the sample stream.
        alpha: Proportional loop gain (added straight into the phase).
        beta: Integral loop gain (accumulated into the frequency estimate).
        afc_enabled: When False the frequency estimate is held and only
            the proportional path tracks the phase.
    """

    def __init__(
        self,
        pilot_offset: float = PILOT_OFFSET,
        alpha: float = 0.01,
        beta: float = 0.0001,
        afc_enabled: bool = True,
    ):
        self.pilot_offset = pilot_offset
        self.alpha = alpha
        self.beta = beta
        self.afc_enabled = afc_enabled

        # State variables
        self.phase = 0.0
        self.frequency_offset = 0.0
        self.last_error = 0.0

    def process(self, samples: np.ndarray, sample_rate: float) -> np.ndarray:
        """
        De-rotate a chunk of complex samples by the tracked carrier.

        Args:
            samples: Complex baseband samples.
            sample_rate: Sample rate of ``samples`` in Hz.

        Returns:
            Carrier-corrected samples, same length as the input.
        """
        samples = np.asarray(samples, dtype=np.complex128)
        n = samples.size
        corrected = np.empty(n, dtype=np.complex128)
        if n == 0:
            return corrected

        increment = _TWO_PI * self.pilot_offset / sample_rate

        # Local copies for speed
        phase = self.phase
        freq = self.frequency_offset
        alpha = self.alpha
        beta = self.beta if self.afc_enabled else 0.0
        error = self.last_error
        cos = math.cos
        sin = math.sin
        remainder = math.remainder
        pi = math.pi

        for i, x in enumerate(samples.tolist()):
            rotated = x * complex(cos(phase), -sin(phase))
            corrected[i] = rotated

            # Phase detector: quadrature of the de-rotated sample
            error = rotated.imag

            # Loop filter (PI controller)
            freq += beta * error
            phase += increment + freq + alpha * error

            # Wrap phase into (-pi, pi]; constant time for any step size
            phase = remainder(phase, _TWO_PI)
            if phase == -pi:
                phase = pi

        self.phase = phase
        self.frequency_offset = freq
        self.last_error = error

        return corrected

    def frequency_offset_hz(self, sample_rate: float) -> float:
        """Residual frequency estimate converted from rad/sample to Hz."""
        return self.frequency_offset * sample_rate / _TWO_PI

    def reset(self):
        """Reset PLL state."""
        logger.debug("Resetting carrier recovery.")
        self.phase = 0.0
        self.frequency_offset = 0.0
        self.last_error = 0.0
