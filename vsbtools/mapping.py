"""
8-VSB symbol alphabet, bit mapping and hard-decision slicing.

This module handles the mapping between 3-bit words and the eight 8-VSB
amplitude levels, and the nearest-level slicer that closes the adaptive
equalizer loop.

Functions
---------
map_bits :
    Maps a bit sequence (3 bits per symbol, MSB first) to 8-VSB levels.
level_indices :
    Returns the alphabet index (0-7) of each level.
slice_symbol :
    Nearest-level decision and slicing residual for one value.
slice_symbols :
    Vectorised slicer for arrays.
"""

from typing import Tuple

import numpy as np

from .logger import get_logger

logger = get_logger(__name__)

# ATSC 8-VSB amplitude alphabet. Z2 Z1 Z0 = 000 maps to -7, 111 to +7.
VSB_LEVELS = np.array([-7.0, -5.0, -3.0, -1.0, 1.0, 3.0, 5.0, 7.0])
VSB_LEVELS.setflags(write=False)
_LEVELS = tuple(float(level) for level in VSB_LEVELS)

BITS_PER_SYMBOL = 3

# Average power of an equiprobable 8-VSB symbol stream: mean(levels**2)
VSB_AVERAGE_POWER = 21.0


def map_bits(bits: np.ndarray) -> np.ndarray:
    """
    Map a sequence of bits to 8-VSB levels.

    Args:
        bits: Input array of bits (0s and 1s). Length must be a multiple of 3.

    Returns:
        Float array of levels, one per 3-bit word.
    """
    logger.debug("Mapping bits to 8-VSB levels.")
    bits = np.asarray(bits, dtype=int)

    if len(bits) % BITS_PER_SYMBOL != 0:
        raise ValueError(
            f"Number of bits ({len(bits)}) must be divisible by bits per symbol "
            f"({BITS_PER_SYMBOL})"
        )

    words = bits.reshape((-1, BITS_PER_SYMBOL))
    powers = 2 ** np.arange(BITS_PER_SYMBOL - 1, -1, -1, dtype=int)
    indices = np.sum(words * powers, axis=1)
    return VSB_LEVELS[indices]


def level_indices(levels: np.ndarray) -> np.ndarray:
    """
    Return the alphabet index (0-7) of each 8-VSB level.

    Raises:
        ValueError: If any value is not a member of the alphabet.
    """
    levels = np.asarray(levels, dtype=float)
    indices = np.searchsorted(VSB_LEVELS, levels)
    indices = np.clip(indices, 0, len(VSB_LEVELS) - 1)
    if not np.array_equal(VSB_LEVELS[indices], levels):
        raise ValueError("Input contains values outside the 8-VSB alphabet")
    return indices


def slice_symbol(value: float) -> Tuple[float, float]:
    """
    Decide the nearest 8-VSB level for one equalized value.

    Linear search over the alphabet; ties go to the first level reached,
    which for this evenly spaced alphabet only matters at exact midpoints
    (e.g. 0.0 decides -1).

    Args:
        value: Equalized (pre-decision) sample.

    Returns:
        Tuple of ``(level, residual)`` where ``residual = value - level``.
    """
    value = float(value)
    best_level = _LEVELS[0]
    best_distance = abs(value - best_level)
    for level in _LEVELS[1:]:
        distance = abs(value - level)
        if distance < best_distance:
            best_distance = distance
            best_level = level
    return best_level, value - best_level


def slice_symbols(values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorised form of :func:`slice_symbol`.

    Args:
        values: Array of equalized samples.

    Returns:
        Tuple of ``(levels, residuals)`` arrays with the shape of ``values``.
    """
    values = np.asarray(values, dtype=float)
    distances = np.abs(values[..., None] - VSB_LEVELS)
    # argmin returns the first minimum, matching the scalar tie rule
    levels = VSB_LEVELS[np.argmin(distances, axis=-1)]
    return levels, values - levels
