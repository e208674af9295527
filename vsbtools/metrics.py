"""
Signal quality metrics for the 8-VSB demodulator.

This module provides the figures reported by the diagnostics monitor and
a few offline helpers for evaluating a decided symbol stream against a
known reference.

Functions
---------
mer_db :
    Modulation Error Ratio from slicing residuals.
symbol_error_rate :
    Fraction of decided symbols that differ from a reference.
signal_strength :
    Coarse strength estimate from the input RMS.
estimated_quality :
    Lock-state derived SNR/MER/BER placeholders.

Classes
-------
ResidualAccumulator :
    Running sums of decided-symbol and residual power between snapshots.
"""

import math
from typing import NamedTuple, Optional

import numpy as np

from .logger import get_logger
from .mapping import VSB_AVERAGE_POWER

logger = get_logger(__name__)

# Nominal RMS of a unit-spaced 8-VSB symbol stream
VSB_RMS = math.sqrt(VSB_AVERAGE_POWER)


class QualityEstimate(NamedTuple):
    """SNR and MER in dB plus BER as a ratio."""

    snr_db: float
    mer_db: float
    ber: float


# Lock-state derived figures. Not measured; see ResidualAccumulator for MER.
LOCKED_QUALITY = QualityEstimate(snr_db=18.0, mer_db=22.0, ber=1e-5)
UNLOCKED_QUALITY = QualityEstimate(snr_db=5.0, mer_db=10.0, ber=0.1)


def estimated_quality(locked: bool) -> QualityEstimate:
    """
    Placeholder SNR/MER/BER figures derived from the lock state only.

    Args:
        locked: Current sync lock flag.

    Returns:
        QualityEstimate for the given lock state.
    """
    return LOCKED_QUALITY if locked else UNLOCKED_QUALITY


def mer_db(residuals: np.ndarray, levels: Optional[np.ndarray] = None) -> float:
    """
    Computes the Modulation Error Ratio from slicing residuals.

    MER is the ratio of average ideal-symbol power to average error power:
    $MER = 10 \\log_{10}(E[|s|^2] / E[|e|^2])$

    Parameters
    ----------
    residuals : array_like
        Slicing residuals ``equalized - decided``. Shape: (N_symbols,).
    levels : array_like, optional
        Decided levels matching ``residuals``. When omitted the nominal
        8-VSB average power (21) is used as the signal power.

    Returns
    -------
    float
        MER in dB. ``inf`` for zero residual power.

    Raises
    ------
    ValueError
        If ``residuals`` is empty or shapes differ.
    """
    residuals = np.asarray(residuals, dtype=np.float64)
    if residuals.size == 0:
        raise ValueError("Cannot compute MER from an empty residual array")

    if levels is None:
        signal_power = VSB_AVERAGE_POWER
    else:
        levels = np.asarray(levels, dtype=np.float64)
        if levels.shape != residuals.shape:
            raise ValueError(
                f"Shape mismatch: levels {levels.shape} != residuals {residuals.shape}"
            )
        signal_power = float(np.mean(levels**2))

    error_power = float(np.mean(residuals**2))
    if error_power < 1e-20:
        return float("inf")
    return 10.0 * math.log10(signal_power / error_power)


def symbol_error_rate(rx_levels: np.ndarray, tx_levels: np.ndarray) -> float:
    """
    Computes the Symbol Error Rate between decided and reference levels.

    Args:
        rx_levels: Decided 8-VSB levels.
        tx_levels: Transmitted reference levels, same shape.

    Returns:
        SER as a ratio in [0, 1]. Empty input gives 0.0.
    """
    rx_levels = np.asarray(rx_levels)
    tx_levels = np.asarray(tx_levels)
    if rx_levels.shape != tx_levels.shape:
        raise ValueError(
            f"Shape mismatch: rx {rx_levels.shape} != tx {tx_levels.shape}"
        )
    if rx_levels.size == 0:
        return 0.0

    errors = int(np.sum(rx_levels != tx_levels))
    ser = errors / rx_levels.size
    logger.info(f"SER: {ser:.2e} ({errors}/{rx_levels.size} errors)")
    return ser


def signal_strength(samples: np.ndarray) -> float:
    """
    Coarse signal strength: input RMS relative to the nominal 8-VSB RMS.

    Args:
        samples: Complex (or real) input chunk.

    Returns:
        Strength in [0, 1]; 0.0 for an empty chunk.
    """
    samples = np.asarray(samples)
    if samples.size == 0:
        return 0.0
    rms = math.sqrt(float(np.mean(np.abs(samples) ** 2)))
    return float(np.clip(rms / VSB_RMS, 0.0, 1.0))


class ResidualAccumulator:
    """
    Running power sums of decided levels and slicing residuals.

    The demodulator feeds every equalized block and reads the MER once per
    diagnostics interval, then clears the sums.
    """

    def __init__(self):
        self.clear()

    def clear(self):
        """Drop all accumulated sums."""
        self.count = 0
        self._signal_energy = 0.0
        self._error_energy = 0.0

    def add(self, levels: np.ndarray, residuals: np.ndarray):
        """Accumulate one block of decided levels and their residuals."""
        levels = np.asarray(levels, dtype=np.float64)
        residuals = np.asarray(residuals, dtype=np.float64)
        self.count += residuals.size
        self._signal_energy += float(np.sum(levels**2))
        self._error_energy += float(np.sum(residuals**2))

    def mer_db(self) -> Optional[float]:
        """MER over everything accumulated since the last clear, or None."""
        if self.count == 0:
            return None
        if self._error_energy < 1e-20:
            return float("inf")
        if self._signal_energy <= 0.0:
            return float("-inf")
        return 10.0 * math.log10(self._signal_energy / self._error_energy)
