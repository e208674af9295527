"""
ATSC 8-VSB demodulation engine.

:class:`ATSC8VSBDemodulator` chains the receiver stages for every chunk of
complex baseband samples:

1. carrier recovery on the pilot (:class:`~vsbtools.carrier.CarrierRecovery`)
2. Gardner timing recovery on the in-phase rail
   (:class:`~vsbtools.timing.TimingRecovery`)
3. per symbol: LMS equalization, slicing and tap update
   (:class:`~vsbtools.equalizers.AdaptiveEqualizer`)
4. segment/field sync tracking on the decided symbols
   (:class:`~vsbtools.sync.SyncTracker`)

and reports metrics and lock transitions through a
:class:`~vsbtools.diagnostics.DiagnosticsMonitor`. All state persists
between calls; chunks must be fed in temporal order.

Usage::

    demod = ATSC8VSBDemodulator(sample_rate=2 * SYMBOL_RATE)
    demod.initialize()
    demod.activate()
    symbols = demod.demodulate(iq_chunk)
    demod.is_locked(), demod.segment_sync_count
"""

import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .carrier import CarrierRecovery
from .config import DemodulatorConfig, EngineParameters, parameters_schema
from .constants import SYMBOL_RATE
from .diagnostics import (
    DemodulatorMetrics,
    DiagnosticsMonitor,
    DiagnosticsSink,
    LoggingSink,
    Severity,
)
from .equalizers import AdaptiveEqualizer
from .logger import get_logger
from .metrics import ResidualAccumulator, estimated_quality
from .metrics import signal_strength as input_strength
from .processor import Demodulator, PluginMetadata, PluginType, register_demodulator
from .sync import SyncTracker
from .timing import TimingRecovery

logger = get_logger(__name__)

MODE_8VSB = "8vsb"

ATSC_8VSB_METADATA = PluginMetadata(
    id="atsc-8vsb-demodulator",
    name="ATSC 8-VSB Demodulator",
    version="1.0.0",
    description="ATSC 8-VSB demodulator for digital television signals",
    type=PluginType.DEMODULATOR,
)


@register_demodulator(MODE_8VSB)
class ATSC8VSBDemodulator(Demodulator):
    """
    Streaming ATSC 8-VSB demodulator.

    Args:
        config: Loop gains and buffer sizes. Copied; later changes to the
            passed object do not affect the engine.
        sink: Diagnostics sink. Defaults to a :class:`LoggingSink`.
        clock: Monotonic time source for the diagnostics interval.
        **params: Initial run-time parameters (see
            :class:`~vsbtools.config.EngineParameters`).

    Raises:
        pydantic.ValidationError: If ``params`` are invalid.
    """

    def __init__(
        self,
        config: Optional[DemodulatorConfig] = None,
        sink: Optional[DiagnosticsSink] = None,
        clock: Callable[[], float] = time.monotonic,
        **params,
    ):
        super().__init__(ATSC_8VSB_METADATA)

        self.config = (config or DemodulatorConfig()).model_copy(deep=True)
        self.parameters = EngineParameters(**params)
        cfg = self.config

        self.carrier = CarrierRecovery(
            pilot_offset=cfg.pilot_offset,
            alpha=cfg.pll_alpha,
            beta=cfg.pll_beta,
            afc_enabled=self.parameters.afc_enabled,
        )
        self.timing = TimingRecovery(loop_gain=cfg.timing_gain, symbol_rate=SYMBOL_RATE)
        self.equalizer = AdaptiveEqualizer(
            num_taps=cfg.num_taps,
            step_size=cfg.step_size,
            center_tap=cfg.center_tap,
        )
        self.sync = SyncTracker(max_missed_syncs=cfg.max_missed_syncs)
        self.monitor = DiagnosticsMonitor(
            sink=sink if sink is not None else LoggingSink(),
            interval=cfg.diagnostics_interval,
            source="demodulator",
            clock=clock,
        )
        self._residuals = ResidualAccumulator()
        self._signal_strength = 0.0

    # ========================================================================
    # LIFECYCLE HOOKS
    # ========================================================================

    def on_initialize(self):
        self.reset()

    def on_activate(self):
        self.monitor.event(Severity.INFO, "ATSC 8-VSB demodulator activated")

    def on_deactivate(self):
        self.reset()
        self.monitor.event(Severity.INFO, "ATSC 8-VSB demodulator deactivated")

    def on_dispose(self):
        logger.debug(f"{self.metadata.id} disposed.")

    def reset(self):
        """Return every stage to its construction-time state."""
        self.carrier.reset()
        self.timing.reset()
        self.equalizer.reset()
        self.sync.reset()
        self.monitor.reset()
        self._residuals.clear()
        self._signal_strength = 0.0

    # ========================================================================
    # PROCESSING
    # ========================================================================

    def demodulate(
        self, samples: np.ndarray, sample_rate: Optional[float] = None
    ) -> np.ndarray:
        """
        Demodulate one chunk of complex baseband samples.

        Args:
            samples: Complex baseband samples, 1-D.
            sample_rate: Sample rate of this chunk in Hz. When given it is
                validated and stored as the engine sample rate; otherwise
                the configured rate is used.

        Returns:
            Float32 array of decided 8-VSB levels; empty for empty input.

        Raises:
            pydantic.ValidationError: If ``sample_rate`` is not positive.
            ValueError: If ``samples`` is not one-dimensional.
        """
        updated = None
        if sample_rate is not None:
            updated = EngineParameters(
                **{**self.parameters.model_dump(), "sample_rate": sample_rate}
            )

        samples = np.asarray(samples, dtype=np.complex128)
        if samples.ndim != 1:
            raise ValueError(f"Expected a 1-D sample chunk, got shape {samples.shape}")
        if samples.size == 0:
            return np.zeros(0, dtype=np.float32)

        if updated is not None and updated.sample_rate != self.parameters.sample_rate:
            self.parameters = updated
            logger.info(f"Sample rate changed to {updated.sample_rate / 1e6:.4f} MHz.")

        params = self.parameters
        rate = params.sample_rate
        self.carrier.afc_enabled = params.afc_enabled

        corrected = self.carrier.process(samples, rate)
        recovered = self.timing.process(corrected.real, rate)
        result = self.equalizer.process(recovered.symbols)
        self.sync.extend(result.decisions)

        self._residuals.add(result.decisions, result.error)
        self._signal_strength = input_strength(samples)

        if self.monitor.update(self.metrics):
            self._residuals.clear()

        return result.decisions.astype(np.float32)

    # ========================================================================
    # MODES AND PARAMETERS
    # ========================================================================

    def get_supported_modes(self) -> List[str]:
        return [MODE_8VSB]

    def set_mode(self, mode: str):
        if mode not in self.get_supported_modes():
            raise ValueError(f"Unsupported mode: {mode}")

    def get_parameters(self) -> Dict[str, Any]:
        return self.parameters.model_dump()

    def set_parameters(self, **params):
        """
        Update run-time parameters; effective on the next chunk.

        Raises:
            pydantic.ValidationError: For unknown keys or out-of-range
                values. Parameters are left unchanged in that case.
        """
        self.parameters = EngineParameters(**{**self.parameters.model_dump(), **params})
        logger.info(f"Parameters updated: {params}")

    def get_config_schema(self) -> Dict[str, Any]:
        return parameters_schema()

    # ========================================================================
    # STATUS
    # ========================================================================

    def is_locked(self) -> bool:
        return self.sync.locked

    @property
    def segment_sync_count(self) -> int:
        return self.sync.segment_sync_count

    @property
    def field_sync_count(self) -> int:
        return self.sync.field_sync_count

    @property
    def equalizer_taps(self) -> np.ndarray:
        """Copy of the current equalizer taps."""
        return self.equalizer.taps

    @property
    def carrier_phase(self) -> float:
        return self.carrier.phase

    @property
    def samples_per_symbol(self) -> float:
        return self.parameters.samples_per_symbol

    @property
    def signal_strength(self) -> float:
        """Strength estimate of the most recent non-empty chunk."""
        return self._signal_strength

    def metrics(self) -> DemodulatorMetrics:
        """Current metrics snapshot, independent of the publish interval."""
        locked = self.sync.locked
        quality = estimated_quality(locked)
        return DemodulatorMetrics(
            sync_locked=locked,
            signal_strength=self._signal_strength,
            snr_db=quality.snr_db,
            mer_db=quality.mer_db,
            ber=quality.ber,
            measured_mer_db=self._residuals.mer_db(),
            segment_sync_count=self.sync.segment_sync_count,
            field_sync_count=self.sync.field_sync_count,
            squelched=self._signal_strength * 100.0 < self.parameters.squelch,
        )
