"""Configuration models for the 8-VSB demodulator.

Two pydantic models split caller-facing parameters from loop tuning:

- :class:`EngineParameters` holds what a receiver front end changes at
  run time (sample rate, channel bandwidth, squelch, AFC). Values are
  validated on construction and on every assignment, so a non-positive
  sample rate never reaches the timing loop.
- :class:`DemodulatorConfig` holds the loop gains and buffer sizes that
  are fixed for the lifetime of an engine. It can be loaded from and
  saved to YAML.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import (
    CHANNEL_BANDWIDTH,
    MAX_CHANNEL_BANDWIDTH,
    MIN_CHANNEL_BANDWIDTH,
    PILOT_OFFSET,
    SYMBOL_RATE,
)


class EngineParameters(BaseModel):
    """Run-time parameters of a demodulator engine.

    Updates take effect on the next processed chunk.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    sample_rate: float = Field(
        SYMBOL_RATE, gt=0, description="Input sample rate in Hz"
    )
    bandwidth: float = Field(
        CHANNEL_BANDWIDTH,
        ge=MIN_CHANNEL_BANDWIDTH,
        le=MAX_CHANNEL_BANDWIDTH,
        description="Channel bandwidth in Hz",
    )
    squelch: float = Field(0.0, ge=0, le=100, description="Squelch threshold (0-100)")
    afc_enabled: bool = Field(True, description="Enable automatic frequency control")

    @property
    def samples_per_symbol(self) -> float:
        """Input samples per 8-VSB symbol at the configured sample rate."""
        return self.sample_rate / SYMBOL_RATE


class DemodulatorConfig(BaseModel):
    """Loop gains and buffer sizes of the demodulator.

    Defaults favor stability over fast pull-in: the pilot is a strong,
    narrow-band reference and channel conditions change slowly relative
    to the symbol rate.
    """

    model_config = ConfigDict(extra="forbid")

    # Carrier recovery
    pilot_offset: float = Field(PILOT_OFFSET, description="Pilot offset in Hz")
    pll_alpha: float = Field(0.01, ge=0, description="PLL proportional gain")
    pll_beta: float = Field(0.0001, ge=0, description="PLL integral gain")

    # Timing recovery
    timing_gain: float = Field(0.01, ge=0, description="Gardner loop gain")

    # Equalizer
    num_taps: int = Field(64, ge=1, description="Number of equalizer taps")
    center_tap: Optional[int] = Field(
        None, ge=0, description="Unity tap index at startup (default num_taps // 2)"
    )
    step_size: float = Field(0.001, ge=0, description="LMS step size")

    # Sync tracking
    max_missed_syncs: int = Field(
        10,
        ge=0,
        description="Consecutive missed re-syncs before lock is dropped (0 = never)",
    )

    # Diagnostics
    diagnostics_interval: float = Field(
        0.5, ge=0, description="Minimum seconds between metric snapshots"
    )

    @model_validator(mode="after")
    def compute_center_tap(self) -> "DemodulatorConfig":
        """Default the center tap and keep it inside the tap vector."""
        if self.center_tap is None:
            self.center_tap = self.num_taps // 2
        elif self.center_tap >= self.num_taps:
            raise ValueError(
                f"center_tap ({self.center_tap}) must be < num_taps ({self.num_taps})"
            )
        return self

    @classmethod
    def from_yaml(cls, path: str) -> "DemodulatorConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            DemodulatorConfig instance
        """
        import yaml

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: str):
        """Save configuration to YAML file.

        Args:
            path: Path where YAML file will be saved
        """
        import yaml

        data = self.model_dump()

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def parameters_schema() -> Dict[str, Any]:
    """Describe the run-time parameters as a flat property schema.

    Returns:
        Dictionary with ``properties`` (type, description, default and
        bounds per parameter, plus the demodulation ``mode``) and
        ``required`` keys.
    """
    json_schema = EngineParameters.model_json_schema()
    properties: Dict[str, Dict[str, Any]] = {
        "mode": {
            "type": "string",
            "description": "Demodulation mode (8-VSB)",
            "enum": ["8vsb"],
            "default": "8vsb",
        }
    }
    for name, field in json_schema["properties"].items():
        entry = {
            "type": "boolean" if field.get("type") == "boolean" else "number",
            "description": field.get("description", ""),
            "default": field.get("default"),
        }
        for bound in ("minimum", "maximum", "exclusiveMinimum"):
            if bound in field:
                entry[bound] = field[bound]
        properties[name] = entry

    return {"properties": properties, "required": ["mode"]}
