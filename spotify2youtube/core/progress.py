"""
Search progress state

A ProgressRecord is created once per source playlist and then only ever
appended to. Counters stay in step with the result list:

    processed_count == len(results) == found_count + not_found_count
    next_start_index == processed_count   (after every checkpoint)

so a new session always starts at the first unsearched track.
"""

import logging
from typing import Protocol

from spotify2youtube.core.models import (
    MatchResult, PlaylistRef, ProgressRecord, SearchCursor, SearchUsage, utc_now,
)

logger = logging.getLogger(__name__)

SEARCH_QUOTA_COST = 100
DAILY_QUOTA_LIMIT = 10000


class ProgressStoreProtocol(Protocol):
    def load_progress(self, playlist_id: str) -> ProgressRecord | None: ...
    def save_progress(self, record: ProgressRecord) -> None: ...


def new_progress(playlist: PlaylistRef, batch_size: int) -> ProgressRecord:
    now = utc_now()
    return ProgressRecord(
        playlist=playlist,
        results=[],
        cursor=SearchCursor(last_updated=now, batch_size=batch_size),
        usage=SearchUsage(session_start_time=now),
    )


def load(store: ProgressStoreProtocol, playlist_id: str,
         batch_size: int) -> ProgressRecord | None:
    """
    Load saved progress and stamp the new session on it.

    Returns None when the playlist has never been searched; the caller then
    captures a PlaylistRef and calls new_progress().
    """
    record = store.load_progress(playlist_id)
    if record is None:
        return None

    now = utc_now()
    record.cursor.batch_size = batch_size
    record.cursor.last_updated = now
    record.usage.last_session_time = now
    logger.info(f"Resuming '{record.playlist.name}' at track {record.cursor.next_start_index + 1}")
    return record


def record_outcome(record: ProgressRecord, result: MatchResult) -> None:
    record.results.append(result)
    record.cursor.processed_count += 1
    if result.found:
        record.cursor.found_count += 1
    else:
        record.cursor.not_found_count += 1
    record.usage.search_count += 1
    record.usage.total_quota_used += SEARCH_QUOTA_COST


def checkpoint(store: ProgressStoreProtocol, record: ProgressRecord) -> None:
    record.cursor.next_start_index = record.cursor.processed_count
    record.cursor.last_updated = utc_now()
    store.save_progress(record)
    logger.debug(f"Checkpoint at {record.cursor.processed_count} tracks")


def is_complete(record: ProgressRecord) -> bool:
    return record.cursor.processed_count >= record.playlist.total_tracks


def remaining(record: ProgressRecord) -> int:
    return max(0, record.playlist.total_tracks - record.cursor.processed_count)


def check_invariants(record: ProgressRecord) -> list[str]:
    """Return a description of every broken counter invariant (empty if consistent)."""
    cursor = record.cursor
    problems = []
    if cursor.processed_count != len(record.results):
        problems.append(f"tracks_processed={cursor.processed_count} but {len(record.results)} results")
    if cursor.found_count + cursor.not_found_count != cursor.processed_count:
        problems.append(
            f"found+not_found={cursor.found_count + cursor.not_found_count} "
            f"but tracks_processed={cursor.processed_count}"
        )
    if cursor.next_start_index != cursor.processed_count:
        problems.append(
            f"current_batch_start={cursor.next_start_index} "
            f"but tracks_processed={cursor.processed_count}"
        )
    return problems
