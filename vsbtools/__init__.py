"""
vsbtools: A streaming ATSC 8-VSB demodulation and synchronization engine.

This package provides tools for:
- Recovering the carrier from the ATSC pilot tone (second-order PLL).
- Recovering symbol timing (Gardner detector, fractional resampling).
- Equalizing multipath with a decision-directed LMS filter.
- Tracking segment and field synchronization.
- Reporting lock state and signal quality through pluggable sinks.
- Generating 8-VSB test signals and channel impairments.
"""

from . import impairments, waveforms
from .config import DemodulatorConfig, EngineParameters
from .constants import PILOT_OFFSET, SYMBOL_RATE
from .demodulator import ATSC8VSBDemodulator
from .diagnostics import DiagnosticsMonitor, LoggingSink, MemorySink
from .logger import set_log_level
from .plotting import apply_default_theme
from .processor import available_modes, create_demodulator

__all__ = [
    "ATSC8VSBDemodulator",
    "DemodulatorConfig",
    "EngineParameters",
    "DiagnosticsMonitor",
    "LoggingSink",
    "MemorySink",
    "PILOT_OFFSET",
    "SYMBOL_RATE",
    "available_modes",
    "create_demodulator",
    "impairments",
    "waveforms",
    "set_log_level",
]

apply_default_theme()
