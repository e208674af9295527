"""
Diagnostics reporting for the demodulator.

The DSP core never talks to an observability backend directly. It hands
metric snapshots and discrete events to a :class:`DiagnosticsSink` that is
injected at construction time:

- :class:`LoggingSink` (default) writes everything through the package
  logger.
- :class:`MemorySink` keeps the latest snapshot and a bounded list of
  recent events, for tests and dashboards.

:class:`DiagnosticsMonitor` gates snapshots to a wall-clock interval and
turns lock-state changes into events.
"""

import abc
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional

from .logger import get_logger

logger = get_logger(__name__)


class Severity(str, Enum):
    """Severity of a diagnostic event."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class DiagnosticEvent:
    """A discrete, human-readable state notification."""

    source: str
    severity: Severity
    message: str
    timestamp: float = 0.0


@dataclass(frozen=True)
class DemodulatorMetrics:
    """Snapshot of the demodulator state at one diagnostics interval.

    Attributes
    ----------
    sync_locked : bool
        Segment sync lock flag.
    signal_strength : float
        Input RMS relative to nominal 8-VSB RMS, in [0, 1].
    snr_db, mer_db, ber : float
        Lock-state derived estimates (not measured).
    measured_mer_db : float or None
        MER from equalizer slicing residuals since the previous snapshot;
        None when no symbols were decided in that interval.
    segment_sync_count, field_sync_count : int
        Sync counters.
    squelched : bool
        True when ``signal_strength * 100`` is below the squelch threshold.
    """

    sync_locked: bool
    signal_strength: float
    snr_db: float
    mer_db: float
    ber: float
    measured_mer_db: Optional[float] = None
    segment_sync_count: int = 0
    field_sync_count: int = 0
    squelched: bool = False


# ============================================================================
# SINKS
# ============================================================================


class DiagnosticsSink(abc.ABC):
    """Receiver of metric snapshots and events."""

    @abc.abstractmethod
    def update_metrics(self, metrics: DemodulatorMetrics) -> None:
        """Replace the current metric snapshot."""

    @abc.abstractmethod
    def add_event(self, event: DiagnosticEvent) -> None:
        """Record one diagnostic event."""


class LoggingSink(DiagnosticsSink):
    """Sink that forwards everything to the ``vsbtools`` logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def update_metrics(self, metrics: DemodulatorMetrics) -> None:
        measured = (
            "n/a" if metrics.measured_mer_db is None else f"{metrics.measured_mer_db:.1f} dB"
        )
        self.log.debug(
            f"locked={metrics.sync_locked} strength={metrics.signal_strength:.2f} "
            f"MER={measured} segments={metrics.segment_sync_count} "
            f"fields={metrics.field_sync_count}"
        )

    def add_event(self, event: DiagnosticEvent) -> None:
        self.log.log(_LOG_LEVELS[event.severity], f"[{event.source}] {event.message}")


class MemorySink(DiagnosticsSink):
    """
    Sink that keeps the latest snapshot and the most recent events.

    Args:
        max_events: Number of events retained; older ones are discarded.
    """

    def __init__(self, max_events: int = 100):
        self.metrics: Optional[DemodulatorMetrics] = None
        self.update_count = 0
        self.events: Deque[DiagnosticEvent] = deque(maxlen=max_events)

    def update_metrics(self, metrics: DemodulatorMetrics) -> None:
        self.metrics = metrics
        self.update_count += 1

    def add_event(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    def messages(self) -> List[str]:
        """Messages of the retained events, oldest first."""
        return [event.message for event in self.events]

    def clear(self):
        self.metrics = None
        self.update_count = 0
        self.events.clear()


# ============================================================================
# MONITOR
# ============================================================================


@dataclass
class DiagnosticsMonitor:
    """
    Interval gate and lock-transition tracker in front of a sink.

    Attributes:
        sink: Destination of snapshots and events.
        interval: Minimum seconds between two published snapshots.
        source: Source tag attached to every event.
        clock: Monotonic time function, injectable for tests.
    """

    sink: DiagnosticsSink = field(default_factory=LoggingSink)
    interval: float = 0.5
    source: str = "demodulator"
    clock: Callable[[], float] = time.monotonic

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        self.reset()

    def reset(self):
        """Forget lock history, the startup notice and the last publish time."""
        self._last_update: Optional[float] = None
        self._previous_locked = False
        self._searching_reported = False

    def due(self) -> bool:
        """True when a snapshot may be published now."""
        if self._last_update is None:
            return True
        return self.clock() - self._last_update >= self.interval

    def event(self, severity: Severity, message: str):
        """Send one event to the sink."""
        self.sink.add_event(
            DiagnosticEvent(
                source=self.source,
                severity=Severity(severity),
                message=message,
                timestamp=self.clock(),
            )
        )

    def publish(self, metrics: DemodulatorMetrics):
        """
        Publish a snapshot and emit lock-transition events.

        Lock acquired and lock lost are reported on every transition; the
        searching notice only once after a cold start.
        """
        self._last_update = self.clock()
        self.sink.update_metrics(metrics)

        locked = metrics.sync_locked
        if self._previous_locked and not locked:
            self.event(Severity.WARNING, "Sync lock lost")
        elif not self._previous_locked and locked:
            self.event(Severity.INFO, "Sync lock acquired")
            # Past the cold start; never announce searching again
            self._searching_reported = True
        elif not locked and metrics.segment_sync_count == 0:
            if not self._searching_reported:
                self.event(Severity.INFO, "Searching for sync lock...")
                self._searching_reported = True

        self._previous_locked = locked

    def update(self, snapshot: Callable[[], DemodulatorMetrics]) -> bool:
        """
        Publish ``snapshot()`` if the interval has elapsed.

        Returns:
            True when a snapshot was published.
        """
        if not self.due():
            return False
        self.publish(snapshot())
        return True
