"""
Search Session

Processes one batch of tracks per invocation, starting at the saved cursor.

1. Slice the track list at next_start_index, at most min(remaining, batch_size)
2. Resolve each track in order, recording every outcome
3. Checkpoint every CHECKPOINT_EVERY tracks and once at the end
4. Stop early (after a checkpoint) when the search quota runs out
5. Let rejected credentials propagate; the current track is never recorded

Quota costs:
- search.list: 100 units per recorded track
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

from spotify2youtube.core import progress
from spotify2youtube.core.models import MatchResult, ProgressRecord, QuotaExceededError, Track
from spotify2youtube.core.pacing import PacingPolicy, fixed_delay, pause

logger = logging.getLogger(__name__)

CHECKPOINT_EVERY = 5
TRACK_DELAY_SECONDS = 1.0


class TrackResolverProtocol(Protocol):
    def resolve(self, track: Track) -> MatchResult: ...


@dataclass
class SessionResult:
    """Result of one search session."""
    processed: int
    found: int
    planned: int
    quota_exhausted: bool
    duration: float

    @property
    def not_found(self) -> int:
        return self.processed - self.found


class SearchSession:
    def __init__(self, resolver: TrackResolverProtocol, store: progress.ProgressStoreProtocol,
                 pacing: PacingPolicy = fixed_delay(TRACK_DELAY_SECONDS),
                 checkpoint_every: int = CHECKPOINT_EVERY):
        self._resolver = resolver
        self._store = store
        self._pacing = pacing
        self._checkpoint_every = checkpoint_every

    def run(self, record: ProgressRecord, tracks: list[Track], batch_size: int) -> SessionResult:
        start = time.time()
        begin = record.cursor.next_start_index
        planned = min(progress.remaining(record), batch_size)
        batch = tracks[begin:begin + planned]

        if len(batch) < planned:
            logger.warning(f"Only {len(batch)} of {planned} tracks available from position {begin + 1}")
        if not batch:
            logger.info("No tracks left to search")
            return SessionResult(0, 0, planned, False, time.time() - start)

        estimate = len(batch) * progress.SEARCH_QUOTA_COST
        logger.info(f"Searching tracks {begin + 1}-{begin + len(batch)} "
                    f"of {record.playlist.total_tracks} (~{estimate} quota units)")
        if estimate > progress.DAILY_QUOTA_LIMIT:
            logger.warning(f"Estimated cost exceeds the daily limit of {progress.DAILY_QUOTA_LIMIT} units")

        processed = found = 0
        exhausted = False
        try:
            for i, track in enumerate(batch):
                if i > 0:
                    pause(self._pacing)

                position = begin + i + 1
                logger.info(f"{position}/{record.playlist.total_tracks} Searching: "
                            f"\"{track.name}\" by {track.display_artists}")
                try:
                    result = self._resolver.resolve(track)
                except QuotaExceededError as e:
                    logger.error(f"Quota exceeded, stopping session: {e}")
                    exhausted = True
                    break

                progress.record_outcome(record, result)
                processed += 1
                if result.found:
                    found += 1
                    logger.info(f"   Found: \"{result.video.title}\" ({result.confidence:.0%} confidence)")
                else:
                    logger.info("   No suitable match found")

                if record.cursor.processed_count % self._checkpoint_every == 0:
                    progress.checkpoint(self._store, record)
        finally:
            progress.checkpoint(self._store, record)

        return SessionResult(
            processed=processed,
            found=found,
            planned=planned,
            quota_exhausted=exhausted,
            duration=time.time() - start,
        )
