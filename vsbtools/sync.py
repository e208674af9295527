"""
Segment and field synchronization for the decided 8-VSB symbol stream.

:class:`SyncTracker` is a two-state machine fed one decided symbol at a
time:

* **Unlocked**: after every symbol the last four symbols are compared
  with the segment sync ``[5, -5, -5, 5]``. Three or more exact matches
  lock the tracker and anchor the segment grid at that position.
* **Locked**: the tracker only looks where the next sync is due, 832 to
  835 symbols after the last anchor. A match moves the anchor and counts
  a segment. When the window closes without a match the miss is
  tolerated: the anchor advances by one segment so the next window is
  tested, and after ``max_missed_syncs`` consecutive misses the tracker
  drops back to Unlocked.

Every 313 confirmed segments the segment counter wraps to zero and the
field counter increments. Field boundaries are counted, the field sync
segment's PN pattern is not verified.

The symbol history lives in a preallocated array of four segment
lengths. When it fills up it is trimmed, and the anchor is shifted by
exactly the number of symbols removed.

Functions
---------
count_sync_matches :
    Number of positions where a 4-symbol window equals the sync pattern.
"""

import numpy as np

from .constants import (
    HISTORY_SEGMENTS,
    SEGMENT_LENGTH,
    SEGMENT_SYNC_LENGTH,
    SEGMENT_SYNC_PATTERN,
    SEGMENTS_PER_FIELD,
    SYNC_MATCH_THRESHOLD,
)
from .logger import get_logger

logger = get_logger(__name__)

# Marker for "no sync position recorded"
NO_SYNC = -1

_PATTERN = tuple(float(v) for v in SEGMENT_SYNC_PATTERN)


def count_sync_matches(window) -> int:
    """
    Count exact matches between a 4-symbol window and the segment sync.

    Args:
        window: Sequence of 4 decided symbols.

    Returns:
        Number of matching positions (0-4).
    """
    return sum(1 for a, b in zip(window, _PATTERN) if a == b)


class SyncTracker:
    """
    Segment/field sync state machine.

    Args:
        max_missed_syncs: Consecutive missed re-syncs tolerated before the
            tracker returns to Unlocked. ``0`` keeps the lock forever once
            acquired.
    """

    def __init__(self, max_missed_syncs: int = 10):
        if max_missed_syncs < 0:
            raise ValueError(f"max_missed_syncs must be >= 0, got {max_missed_syncs}")
        self.max_missed_syncs = max_missed_syncs

        self._capacity = HISTORY_SEGMENTS * SEGMENT_LENGTH
        # One spare slot: a push may exceed the bound by one before trimming
        self._history = np.zeros(self._capacity + 1, dtype=np.float64)
        self.reset()

    def reset(self):
        """Return to the cold, unlocked state."""
        self._history.fill(0.0)
        self._length = 0
        self.locked = False
        self.last_sync_position = NO_SYNC
        self.segment_sync_count = 0
        self.field_sync_count = 0
        self.missed_syncs = 0
        self.total_segment_syncs = 0

    def __len__(self) -> int:
        return self._length

    @property
    def history(self) -> np.ndarray:
        """Copy of the rolling symbol history, oldest first."""
        return self._history[: self._length].copy()

    def extend(self, symbols) -> int:
        """
        Feed a block of decided symbols.

        Returns:
            Number of segment syncs confirmed within the block.
        """
        confirmed = 0
        for symbol in np.asarray(symbols, dtype=np.float64).tolist():
            if self.push(symbol):
                confirmed += 1
        return confirmed

    def push(self, symbol: float) -> bool:
        """
        Feed one decided symbol.

        Returns:
            True when this symbol completed a confirmed segment sync.
        """
        self._history[self._length] = symbol
        self._length += 1

        confirmed = False
        if self._length >= SEGMENT_SYNC_LENGTH:
            candidate = self._length - SEGMENT_SYNC_LENGTH
            if not self.locked:
                if self._matches(candidate) >= SYNC_MATCH_THRESHOLD:
                    self._acquire(candidate)
                    confirmed = True
            else:
                since_sync = candidate - self.last_sync_position
                if SEGMENT_LENGTH <= since_sync < SEGMENT_LENGTH + SEGMENT_SYNC_LENGTH:
                    if self._matches(candidate) >= SYNC_MATCH_THRESHOLD:
                        self._confirm(candidate)
                        confirmed = True
                elif since_sync >= SEGMENT_LENGTH + SEGMENT_SYNC_LENGTH:
                    self._miss()

        if self._length > self._capacity:
            self._trim()

        return confirmed

    def _matches(self, start: int) -> int:
        return count_sync_matches(
            self._history[start : start + SEGMENT_SYNC_LENGTH].tolist()
        )

    def _acquire(self, position: int):
        self.locked = True
        self.last_sync_position = position
        self.missed_syncs = 0
        # The anchor segment is the first one counted
        self.segment_sync_count = 0
        self._count_segment()
        logger.info(
            f"Segment sync acquired (fields so far: {self.field_sync_count})."
        )

    def _confirm(self, position: int):
        self.last_sync_position = position
        self.missed_syncs = 0
        self._count_segment()

    def _count_segment(self):
        self.segment_sync_count += 1
        self.total_segment_syncs += 1
        if self.segment_sync_count >= SEGMENTS_PER_FIELD:
            self.segment_sync_count = 0
            self.field_sync_count += 1
            logger.debug(f"Field boundary #{self.field_sync_count}.")

    def _miss(self):
        self.missed_syncs += 1
        self.last_sync_position += SEGMENT_LENGTH
        logger.debug(f"Missed segment sync ({self.missed_syncs} consecutive).")

        if self.max_missed_syncs and self.missed_syncs >= self.max_missed_syncs:
            logger.warning(
                f"Segment sync lost after {self.missed_syncs} consecutive misses."
            )
            self.locked = False
            self.last_sync_position = NO_SYNC
            self.missed_syncs = 0

    def _trim(self):
        if self.locked and self.last_sync_position > 0:
            # Restart the history at the segment boundary
            removed = self.last_sync_position
        else:
            removed = self._length - 2 * SEGMENT_LENGTH

        kept = self._length - removed
        self._history[:kept] = self._history[removed : self._length]
        self._length = kept
        if self.last_sync_position != NO_SYNC:
            self.last_sync_position = max(NO_SYNC, self.last_sync_position - removed)
