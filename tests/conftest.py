import numpy as np
import pytest

from vsbtools.constants import SYMBOL_RATE
from vsbtools.demodulator import ATSC8VSBDemodulator
from vsbtools.diagnostics import MemorySink
from vsbtools.waveforms import vsb_signal

# Data levels without +-5, so random data can never imitate a segment sync
SAFE_LEVELS = [-7.0, -3.0, -1.0, 1.0, 3.0, 7.0]

LOCK_SAMPLE_RATE = 2 * SYMBOL_RATE


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def memory_sink():
    return MemorySink()


@pytest.fixture
def demod(memory_sink, fake_clock):
    """Engine at 2 samples/symbol reporting into a MemorySink."""
    engine = ATSC8VSBDemodulator(
        sink=memory_sink, clock=fake_clock, sample_rate=LOCK_SAMPLE_RATE
    )
    engine.initialize()
    engine.activate()
    return engine


@pytest.fixture(scope="session")
def lock_signal():
    """
    320 clean segments at 2 samples/symbol on the pilot offset.

    Zero-stuffed symbols keep the Gardner midpoints at zero, so the
    recovered symbols equal the transmitted ones.
    """
    return vsb_signal(320, sps=2, levels=SAFE_LEVELS, seed=1234)


def feed(engine, samples, chunk_size=10007, clock=None, tick=0.0):
    """Feed samples in fixed-size chunks and return the concatenated output."""
    outputs = []
    for start in range(0, len(samples), chunk_size):
        if clock is not None:
            clock.advance(tick)
        outputs.append(engine.demodulate(samples[start : start + chunk_size]))
    if not outputs:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(outputs)
