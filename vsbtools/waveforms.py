"""
8-VSB test-signal synthesis.

Builds symbol streams with the ATSC segment structure (a 4-symbol segment
sync followed by 828 data symbols) and turns them into complex baseband
samples at an integer number of samples per symbol, with the signal
centered on the pilot offset the carrier loop expects.

Functions
---------
random_data_symbols :
    Random 8-VSB data symbols from random bits.
vsb_segments :
    Symbol stream of whole data segments.
upsample_symbols :
    Impulse (zero-stuffed) or rectangular upsampling.
mix_to_pilot :
    Frequency shift by the pilot offset.
vsb_signal :
    Complete complex test signal (samples and transmitted symbols).
pilot_tone :
    Pure complex tone, e.g. for carrier-loop tests.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from .constants import (
    DATA_SYMBOLS_PER_SEGMENT,
    PILOT_OFFSET,
    SEGMENT_SYNC_PATTERN,
    SYMBOL_RATE,
)
from .logger import get_logger
from .mapping import BITS_PER_SYMBOL, map_bits

logger = get_logger(__name__)


def random_data_symbols(
    num_symbols: int,
    levels: Optional[Sequence[float]] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Generate random data symbols.

    Args:
        num_symbols: Number of symbols.
        levels: Restrict draws to these levels. When omitted, random bits
            are mapped through the full 8-VSB alphabet.
        seed: Random seed.

    Returns:
        Float array of levels.
    """
    rng = np.random.default_rng(seed)
    if levels is None:
        bits = rng.integers(0, 2, size=num_symbols * BITS_PER_SYMBOL)
        return map_bits(bits)
    return rng.choice(np.asarray(levels, dtype=float), size=num_symbols)


def vsb_segments(
    num_segments: int,
    levels: Optional[Sequence[float]] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Symbol stream of ``num_segments`` data segments.

    Each segment is the segment sync ``[5, -5, -5, 5]`` followed by 828
    random data symbols. Field sync segments are not generated.

    Args:
        num_segments: Number of 832-symbol segments.
        levels: Levels the data symbols are drawn from (see
            :func:`random_data_symbols`).
        seed: Random seed.

    Returns:
        Float array of length ``num_segments * 832``.
    """
    if num_segments < 0:
        raise ValueError(f"num_segments must be >= 0, got {num_segments}")

    data = random_data_symbols(
        num_segments * DATA_SYMBOLS_PER_SEGMENT, levels=levels, seed=seed
    ).reshape(num_segments, DATA_SYMBOLS_PER_SEGMENT)
    sync = np.broadcast_to(SEGMENT_SYNC_PATTERN, (num_segments, len(SEGMENT_SYNC_PATTERN)))
    symbols = np.concatenate([sync, data], axis=1).reshape(-1)
    logger.debug(f"Generated {num_segments} segments ({symbols.size} symbols).")
    return symbols


def upsample_symbols(symbols: np.ndarray, sps: int, pulse_shape: str = "impulse") -> np.ndarray:
    """
    Upsample a symbol stream by an integer factor.

    Args:
        symbols: Symbol levels.
        sps: Samples per symbol (integer >= 1).
        pulse_shape: ``'impulse'`` places each symbol on the first sample
            of its period and zeros elsewhere; ``'rect'`` holds it for the
            whole period.

    Returns:
        Float array of length ``len(symbols) * sps``.
    """
    if int(sps) != sps or sps < 1:
        raise ValueError(f"sps must be a positive integer, got {sps}")
    sps = int(sps)
    symbols = np.asarray(symbols, dtype=float)

    if pulse_shape == "impulse":
        samples = np.zeros(symbols.size * sps, dtype=float)
        samples[::sps] = symbols
        return samples
    elif pulse_shape == "rect":
        return np.repeat(symbols, sps)
    else:
        raise ValueError(f"Unknown pulse shape: {pulse_shape}")


def mix_to_pilot(
    baseband: np.ndarray, sample_rate: float, pilot_offset: float = PILOT_OFFSET
) -> np.ndarray:
    """
    Shift a baseband signal up by the pilot offset.

    Sample ``n`` is multiplied by ``exp(j*2*pi*pilot_offset*n/sample_rate)``,
    the same oscillator the carrier loop removes.
    """
    baseband = np.asarray(baseband)
    n = np.arange(baseband.size)
    return baseband * np.exp(2j * np.pi * pilot_offset * n / sample_rate)


def vsb_signal(
    num_segments: int,
    sps: int = 2,
    levels: Optional[Sequence[float]] = None,
    pilot_level: float = 0.0,
    pulse_shape: str = "impulse",
    pilot_offset: float = PILOT_OFFSET,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate a complete 8-VSB test signal.

    Args:
        num_segments: Number of data segments.
        sps: Integer samples per symbol; the sample rate is
            ``sps * SYMBOL_RATE``.
        levels: Levels for the data symbols (default: full alphabet).
        pilot_level: DC level added to the in-phase rail before mixing.
            ATSC transmits 1.25; the default 0.0 keeps decisions exact.
        pulse_shape: See :func:`upsample_symbols`.
        pilot_offset: Frequency shift applied to the baseband, Hz.
        seed: Random seed.

    Returns:
        Tuple of ``(samples, symbols)``: complex samples and the
        transmitted symbol levels.
    """
    symbols = vsb_segments(num_segments, levels=levels, seed=seed)
    baseband = upsample_symbols(symbols, sps, pulse_shape=pulse_shape) + pilot_level
    samples = mix_to_pilot(baseband, sps * SYMBOL_RATE, pilot_offset=pilot_offset)
    logger.info(
        f"8-VSB test signal: {num_segments} segments, {sps} samples/symbol, "
        f"{samples.size} samples."
    )
    return samples, symbols


def pilot_tone(
    num_samples: int,
    sample_rate: float,
    frequency: float = PILOT_OFFSET,
    amplitude: float = 1.0,
    phase: float = 0.0,
) -> np.ndarray:
    """
    Pure complex exponential ``amplitude * exp(j*(2*pi*f*n/fs + phase))``.
    """
    n = np.arange(num_samples)
    return amplitude * np.exp(1j * (2 * np.pi * frequency * n / sample_rate + phase))
