from typing import Any, Optional, Tuple

import matplotlib as mpl
import matplotlib.font_manager as fm
import matplotlib.pyplot as plt
import numpy as np
from scipy.signal import freqz

from .logger import get_logger
from .mapping import VSB_LEVELS

logger = get_logger(__name__)


def apply_default_theme() -> None:
    try:
        font_prop = fm.FontProperties(family="Roboto", weight="regular")
        fm.findfont(font_prop, fallback_to_default=False)
        font_name = "Roboto"
    except ValueError:
        font_name = "sans"
        logger.debug("Roboto font not found, falling back to default sans-serif.")

    mpl.rcParams.update(
        {
            "figure.figsize": (5, 3.5),
            "font.family": font_name,
            "font.size": 12,
            "lines.linewidth": 2,
            "axes.grid": True,
            "axes.titleweight": "bold",
            "figure.autolayout": True,
            "savefig.dpi": 300,
            "xtick.direction": "in",
            "ytick.direction": "in",
            "xtick.top": True,
            "ytick.right": True,
        }
    )


def equalizer_taps(
    taps: Any, ax: Optional[Any] = None, show: bool = False
) -> Optional[Tuple[Any, Tuple[Any, Any]]]:
    """
    Plots the equalizer impulse response and its magnitude response.

    Args:
        taps: Equalizer tap weights (symbol spaced).
        ax: Optional pair of matplotlib axes.
        show: Whether to call plt.show() after plotting.

    Returns:
        Tuple of (figure, (ax_taps, ax_mag)) if show is False, else None.
    """
    taps = np.asarray(taps, dtype=float)

    if ax is None:
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(5, 6))
    elif isinstance(ax, (list, tuple, np.ndarray)) and len(ax) == 2:
        fig = ax[0].figure
        ax1, ax2 = ax
    else:
        raise ValueError("equalizer_taps requires a pair of axes")

    ax1.stem(np.arange(taps.size), taps, basefmt=" ")
    ax1.set_title("Equalizer Taps")
    ax1.set_xlabel("Tap Index")
    ax1.set_ylabel("Weight")

    w, h = freqz(taps, worN=1024)
    ax2.plot(w / (2 * np.pi), 20 * np.log10(np.abs(h) + 1e-12), color="C2")
    ax2.set_title("Magnitude Response")
    ax2.set_xlabel("Frequency [Cycles/Symbol]")
    ax2.set_ylabel("Magnitude [dB]")
    ax2.set_xlim(0, 0.5)

    if show:
        plt.show()
        return None
    return fig, (ax1, ax2)


def symbol_histogram(
    values: Any,
    bins: int = 200,
    ax: Optional[Any] = None,
    title: Optional[str] = "Symbol Histogram",
    show: bool = False,
) -> Optional[Tuple[Any, Any]]:
    """
    Histogram of (equalized or decided) symbol values with the 8-VSB levels
    marked.

    Returns:
        Tuple of (figure, axis) if show is False, else None.
    """
    values = np.asarray(values, dtype=float)
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    ax.hist(values, bins=bins, range=(-9, 9), color="C0")
    for level in VSB_LEVELS:
        ax.axvline(level, color="C3", linewidth=0.8, linestyle="--")
    ax.set_xlabel("Amplitude")
    ax.set_ylabel("Count")
    if title is not None:
        ax.set_title(title)

    if show:
        plt.show()
        return None
    return fig, ax
