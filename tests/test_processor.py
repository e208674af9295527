"""Tests for the demodulator lifecycle and mode registry."""

import numpy as np
import pytest

from vsbtools.demodulator import ATSC8VSBDemodulator
from vsbtools.processor import (
    Demodulator,
    PluginMetadata,
    PluginState,
    available_modes,
    create_demodulator,
    register_demodulator,
)


class PassThrough(Demodulator):
    """Minimal demodulator recording hook calls."""

    def __init__(self, fail_on=None):
        super().__init__(PluginMetadata(id="pass-through", name="Pass", version="0.0.1"))
        self.calls = []
        self.fail_on = fail_on
        self.params = {}

    def _hook(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise RuntimeError(f"{name} failed")

    def on_initialize(self):
        self._hook("initialize")

    def on_activate(self):
        self._hook("activate")

    def on_deactivate(self):
        self._hook("deactivate")

    def on_dispose(self):
        self._hook("dispose")

    def demodulate(self, samples):
        return np.real(np.asarray(samples)).astype(np.float32)

    def get_supported_modes(self):
        return ["pass"]

    def set_mode(self, mode):
        if mode != "pass":
            raise ValueError(f"Unsupported mode: {mode}")

    def get_parameters(self):
        return dict(self.params)

    def set_parameters(self, **params):
        self.params.update(params)

    def get_config_schema(self):
        return {"properties": {}, "required": []}


# ============================================================================
# LIFECYCLE
# ============================================================================


class TestLifecycle:
    def test_initial_state(self):
        assert PassThrough().state == PluginState.REGISTERED

    def test_full_cycle(self):
        demod = PassThrough()
        demod.initialize()
        assert demod.state == PluginState.INITIALIZED
        demod.activate()
        assert demod.state == PluginState.ACTIVE
        demod.deactivate()
        assert demod.state == PluginState.INITIALIZED
        demod.activate()
        demod.dispose()
        assert demod.state == PluginState.DISABLED
        assert demod.calls == [
            "initialize",
            "activate",
            "deactivate",
            "activate",
            "deactivate",
            "dispose",
        ]

    def test_activate_before_initialize(self):
        demod = PassThrough()
        with pytest.raises(RuntimeError, match="initialize"):
            demod.activate()
        assert demod.state == PluginState.REGISTERED

    def test_deactivate_when_inactive_is_noop(self):
        demod = PassThrough()
        demod.initialize()
        demod.deactivate()
        assert demod.state == PluginState.INITIALIZED
        assert demod.calls == ["initialize"]

    def test_initialize_while_active_rejected(self):
        demod = PassThrough()
        demod.initialize()
        demod.activate()
        with pytest.raises(RuntimeError):
            demod.initialize()

    def test_dispose_twice(self):
        demod = PassThrough()
        demod.dispose()
        demod.dispose()
        assert demod.calls == ["dispose"]

    def test_hook_failure_sets_error(self):
        demod = PassThrough(fail_on="activate")
        demod.initialize()
        with pytest.raises(RuntimeError, match="activate failed"):
            demod.activate()
        assert demod.state == PluginState.ERROR

    def test_recover_from_error_by_initialize(self):
        demod = PassThrough(fail_on="activate")
        demod.initialize()
        with pytest.raises(RuntimeError):
            demod.activate()
        demod.fail_on = None
        demod.initialize()
        demod.activate()
        assert demod.state == PluginState.ACTIVE

    def test_call_delegates_to_demodulate(self):
        demod = PassThrough()
        out = demod(np.array([1 + 2j, -3 + 0j]))
        np.testing.assert_array_equal(out, [1.0, -3.0])

    def test_update_config(self):
        demod = PassThrough()
        demod.update_config({"squelch": 10})
        assert demod.get_parameters() == {"squelch": 10}


# ============================================================================
# REGISTRY
# ============================================================================


class TestRegistry:
    def test_8vsb_registered(self):
        assert "8vsb" in available_modes()

    def test_create_case_insensitive(self):
        demod = create_demodulator("8VSB", sample_rate=21.52e6)
        assert isinstance(demod, ATSC8VSBDemodulator)
        assert demod.get_parameters()["sample_rate"] == 21.52e6

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown demodulation mode"):
            create_demodulator("dvb-t")

    def test_register_custom(self):
        register_demodulator("pass-test")(PassThrough)
        assert isinstance(create_demodulator("pass-test"), PassThrough)

    def test_conflicting_registration(self):
        with pytest.raises(ValueError, match="already registered"):
            register_demodulator("8vsb")(PassThrough)

    def test_reregistering_same_class_is_allowed(self):
        register_demodulator("8vsb")(ATSC8VSBDemodulator)
        assert "8vsb" in available_modes()
