"""
ATSC A/53 physical-layer constants used across the demodulator.

All rates are in Hz or symbols/second. Segment and field structure follow
the 8-VSB data frame: every data segment is 832 symbols long and starts
with a 4-symbol segment sync; a field is 313 segments.
"""

import numpy as np

# Nominal symbol rate. Protocol constant, never caller-configurable.
SYMBOL_RATE = 10.76e6

# Pilot tone offset from the lower band edge
PILOT_OFFSET = 309.44e3

CHANNEL_BANDWIDTH = 6e6
MIN_CHANNEL_BANDWIDTH = 5e6
MAX_CHANNEL_BANDWIDTH = 7e6

SEGMENT_LENGTH = 832
SEGMENT_SYNC_LENGTH = 4
DATA_SYMBOLS_PER_SEGMENT = SEGMENT_LENGTH - SEGMENT_SYNC_LENGTH
SEGMENTS_PER_FIELD = 313

SEGMENT_SYNC_PATTERN = np.array([5.0, -5.0, -5.0, 5.0])
SEGMENT_SYNC_PATTERN.setflags(write=False)

# Minimum number of exact symbol matches (out of 4) to accept a segment sync
SYNC_MATCH_THRESHOLD = 3

# History capacity for the sync tracker, in segments
HISTORY_SEGMENTS = 4
