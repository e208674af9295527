"""
Common demodulator interface and mode registry.

Every demodulator is a stateful streaming block with a plugin lifecycle::

    REGISTERED --initialize()--> INITIALIZED --activate()--> ACTIVE
        ACTIVE --deactivate()--> INITIALIZED
        any    --dispose()-----> DISABLED

Subclasses implement the ``on_*`` hooks and the processing methods. A hook
that raises moves the demodulator to ``ERROR`` and the exception
propagates to the caller.

Demodulators register under the modes they support so callers can build
one by name through :func:`create_demodulator`.
"""

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Type

import numpy as np

from .logger import get_logger

logger = get_logger(__name__)


class PluginType(str, Enum):
    DEMODULATOR = "demodulator"
    VISUALIZATION = "visualization"
    DEVICE_DRIVER = "device-driver"
    UTILITY = "utility"


class PluginState(str, Enum):
    REGISTERED = "registered"
    INITIALIZED = "initialized"
    ACTIVE = "active"
    ERROR = "error"
    DISABLED = "disabled"


@dataclass(frozen=True)
class PluginMetadata:
    """Identity of a demodulator implementation."""

    id: str
    name: str
    version: str
    description: str = ""
    author: str = ""
    type: PluginType = PluginType.DEMODULATOR


class Demodulator(abc.ABC):
    """
    Abstract base class for streaming demodulators.

    Args:
        metadata: Identity of the implementation.
    """

    def __init__(self, metadata: PluginMetadata):
        self.metadata = metadata
        self.state = PluginState.REGISTERED

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.metadata.id!r}, state={self.state.value})"

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def initialize(self):
        """
        Prepare internal state.

        Raises:
            RuntimeError: If the demodulator is active or disposed.
        """
        if self.state in (PluginState.ACTIVE, PluginState.DISABLED):
            raise RuntimeError(
                f"Cannot initialize {self.metadata.id} in state '{self.state.value}'"
            )
        self._run_hook(self.on_initialize)
        self.state = PluginState.INITIALIZED

    def activate(self):
        """
        Start processing.

        Raises:
            RuntimeError: If the demodulator has not been initialized.
        """
        if self.state == PluginState.ACTIVE:
            return
        if self.state != PluginState.INITIALIZED:
            raise RuntimeError(
                f"Cannot activate {self.metadata.id} in state '{self.state.value}'; "
                "call initialize() first"
            )
        self._run_hook(self.on_activate)
        self.state = PluginState.ACTIVE

    def deactivate(self):
        """Stop processing. No-op unless ACTIVE."""
        if self.state != PluginState.ACTIVE:
            return
        self._run_hook(self.on_deactivate)
        self.state = PluginState.INITIALIZED

    def dispose(self):
        """Release resources; deactivates first when needed."""
        if self.state == PluginState.DISABLED:
            return
        self.deactivate()
        self._run_hook(self.on_dispose)
        self.state = PluginState.DISABLED

    def _run_hook(self, hook: Callable[[], None]):
        try:
            hook()
        except Exception:
            logger.error(f"{self.metadata.id}: {hook.__name__} failed.")
            self.state = PluginState.ERROR
            raise

    def on_initialize(self):
        pass

    def on_activate(self):
        pass

    def on_deactivate(self):
        pass

    def on_dispose(self):
        pass

    # ========================================================================
    # PROCESSING
    # ========================================================================

    @abc.abstractmethod
    def demodulate(self, samples: np.ndarray) -> np.ndarray:
        """
        Process one chunk of complex samples.

        Args:
            samples: Complex baseband samples.

        Returns:
            Demodulated output for the chunk.
        """

    @abc.abstractmethod
    def get_supported_modes(self) -> List[str]:
        """Modes this demodulator can run in."""

    @abc.abstractmethod
    def set_mode(self, mode: str):
        """Select a mode; raises ValueError for unsupported ones."""

    @abc.abstractmethod
    def get_parameters(self) -> Dict[str, Any]:
        """Current run-time parameters."""

    @abc.abstractmethod
    def set_parameters(self, **params):
        """Update run-time parameters; effective on the next chunk."""

    @abc.abstractmethod
    def get_config_schema(self) -> Dict[str, Any]:
        """Property schema of the run-time parameters."""

    def update_config(self, config: Dict[str, Any]):
        """Dictionary form of :meth:`set_parameters`."""
        self.set_parameters(**config)

    def __call__(self, samples: np.ndarray) -> np.ndarray:
        """
        Allows the demodulator to be called like a function.
        """
        return self.demodulate(samples)


# ============================================================================
# REGISTRY
# ============================================================================

_REGISTRY: Dict[str, Type[Demodulator]] = {}


def register_demodulator(*modes: str):
    """
    Class decorator registering a demodulator under one or more modes.

    Raises:
        ValueError: If a mode is already taken by another class.
    """

    def decorator(cls: Type[Demodulator]) -> Type[Demodulator]:
        for mode in modes:
            key = mode.lower()
            existing = _REGISTRY.get(key)
            if existing is not None and existing is not cls:
                raise ValueError(
                    f"Mode '{mode}' already registered to {existing.__name__}"
                )
            _REGISTRY[key] = cls
        return cls

    return decorator


def available_modes() -> List[str]:
    """Registered mode names, sorted."""
    return sorted(_REGISTRY)


def create_demodulator(mode: str, **kwargs) -> Demodulator:
    """
    Instantiate the demodulator registered for ``mode``.

    Args:
        mode: Mode name (case-insensitive).
        **kwargs: Passed to the demodulator constructor.

    Raises:
        ValueError: If no demodulator is registered for ``mode``.
    """
    try:
        cls = _REGISTRY[mode.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown demodulation mode '{mode}'. Available: {available_modes()}"
        ) from None
    return cls(**kwargs)
