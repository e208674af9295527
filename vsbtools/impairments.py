"""
Channel impairment models for exercising the demodulator.

Currently supported:
- **Additive White Gaussian Noise (AWGN)**: Adds random noise to the signal based on a target SNR.
- **Multipath**: FIR echo channel (direct path plus delayed, scaled copies).
- **Carrier offset**: Residual frequency and phase error of the tuner.
"""

from typing import Optional, Sequence

import numpy as np
from scipy import signal as sps

from .logger import get_logger

logger = get_logger(__name__)


def add_awgn(samples: np.ndarray, snr_db: float, seed: Optional[int] = None) -> np.ndarray:
    """
    Adds Additive White Gaussian Noise (AWGN) to achieve a target SNR.

    Args:
        samples: Input samples (real or complex).
        snr_db: The desired Signal-to-Noise Ratio (SNR) in decibels,
            relative to the measured average signal power.
        seed: Random seed.

    Returns:
        The noisy samples, same shape and kind as the input.
    """
    logger.info(f"Adding Gaussian noise (SNR target: {snr_db:.2f} dB).")
    samples = np.asarray(samples)
    rng = np.random.default_rng(seed)

    signal_power = float(np.mean(np.abs(samples) ** 2)) if samples.size else 0.0
    snr_linear = 10 ** (snr_db / 10)

    # Handle very low SNR or infinite noise case
    if snr_linear <= 1e-20:
        noise_power = signal_power / 1e-20
    else:
        noise_power = signal_power / snr_linear

    if np.iscomplexobj(samples):
        # For complex noise, power is split between real and imag
        std = np.sqrt(noise_power / 2)
        noise = rng.normal(0, std, samples.shape) + 1j * rng.normal(0, std, samples.shape)
    else:
        noise = rng.normal(0, np.sqrt(noise_power), samples.shape)

    return samples + noise


def apply_multipath(samples: np.ndarray, taps: Sequence[complex]) -> np.ndarray:
    """
    Pass samples through a causal FIR multipath channel.

    Args:
        samples: Input samples.
        taps: Channel impulse response at the sample spacing; ``taps[0]``
            is the direct path, e.g. ``[1.0, 0, 0, 0.3]`` for a -10.5 dB
            echo three samples late.

    Returns:
        Filtered samples, same length as the input.
    """
    taps = np.asarray(taps)
    if taps.ndim != 1 or taps.size == 0:
        raise ValueError("Channel taps must be a non-empty 1-D sequence")
    logger.info(f"Applying {taps.size}-tap multipath channel.")
    return sps.lfilter(taps, [1.0], np.asarray(samples))


def apply_carrier_offset(
    samples: np.ndarray,
    offset_hz: float,
    sample_rate: float,
    phase: float = 0.0,
) -> np.ndarray:
    """
    Apply a carrier frequency and phase offset.

    Args:
        samples: Complex input samples.
        offset_hz: Frequency offset in Hz.
        sample_rate: Sample rate in Hz.
        phase: Initial phase offset in radians.

    Returns:
        ``samples * exp(j*(2*pi*offset_hz*n/sample_rate + phase))``.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    samples = np.asarray(samples)
    n = np.arange(samples.shape[-1])
    return samples * np.exp(1j * (2 * np.pi * offset_hz * n / sample_rate + phase))
