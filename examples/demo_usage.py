import numpy as np

from vsbtools import ATSC8VSBDemodulator, MemorySink, SYMBOL_RATE, set_log_level
from vsbtools.impairments import add_awgn, apply_multipath
from vsbtools.plotting import equalizer_taps, symbol_histogram
from vsbtools.waveforms import vsb_signal

set_log_level("INFO")

# Two fields worth of segments at 2 samples/symbol
samples, symbols = vsb_signal(626, sps=2, seed=4202460010)

# Weak echo plus noise
rx = apply_multipath(samples, [1.0, 0.0, 0.0, 0.0, 0.1])
rx = add_awgn(rx, snr_db=30.0, seed=1)

sink = MemorySink()
demod = ATSC8VSBDemodulator(sink=sink, sample_rate=2 * SYMBOL_RATE)
demod.initialize()
demod.activate()

decisions = []
chunk = 16384
for start in range(0, rx.size, chunk):
    decisions.append(demod.demodulate(rx[start : start + chunk]))
decisions = np.concatenate(decisions)

print(f"Locked: {demod.is_locked()}")
print(f"Fields: {demod.field_sync_count}, segments: {demod.segment_sync_count}")
print(f"Metrics: {demod.metrics()}")
for message in sink.messages():
    print(f"  event: {message}")

fig1, _ = equalizer_taps(demod.equalizer_taps)
fig2, _ = symbol_histogram(decisions, title="Decided Symbols")

fig1.savefig("1.png")
fig2.savefig("2.png")

demod.dispose()
