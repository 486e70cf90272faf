"""
Playlist Builder

Adds every matched video from a finished (or partial) search to a new YouTube
playlist, then lets a later run retry the failures.

After build(): each matched result sits in exactly one of `added` / `failed`.
After retry(): entries only move from `failed` to `added`, never back.

Quota costs:
- playlists.insert: 50 units
- playlistItems.insert: 50 units (counted on success)
"""

import logging
from collections import Counter
from typing import Protocol

from spotify2youtube.core.failures import FailureKind
from spotify2youtube.core.models import (
    AddOutcome, BuildFailure, BuildRecord, BuildStats, CredentialError,
    DestinationPlaylist, MatchResult, NoMatchesError, ProgressRecord, utc_now,
)
from spotify2youtube.core.pacing import PacingPolicy, fixed_delay, pause

logger = logging.getLogger(__name__)

PLAYLIST_CREATE_COST = 50
PLAYLIST_INSERT_COST = 50
ADD_DELAY_SECONDS = 0.5


class PlaylistWriterProtocol(Protocol):
    def create_playlist(self, title: str, description: str) -> DestinationPlaylist: ...
    def add_video_to_playlist(self, playlist_id: str, video_id: str) -> AddOutcome: ...


def default_title(record: ProgressRecord) -> str:
    return f"{record.playlist.name} (from Spotify)"


def describe_source(record: ProgressRecord) -> str:
    matched = len(record.matched)
    total = len(record.results)
    rate = matched / total if total else 0.0
    return (
        f"Converted from Spotify playlist \"{record.playlist.name}\"\n\n"
        f"Original playlist: {record.playlist.url}\n\n"
        f"Search completed: {record.cursor.processed_count} tracks processed\n"
        f"Matches found: {matched}/{total} tracks\n"
        f"Success rate: {rate:.1%}"
    )


def refresh_stats(build: BuildRecord) -> None:
    """Recompute success rate and failure breakdown from the added/failed sets."""
    attempted = len(build.added) + len(build.failed)
    build.stats.success_rate = len(build.added) / attempted if attempted else 0.0
    counts = Counter(f.error_kind.value for f in build.failed)
    build.stats.failure_kind_counts = dict(counts)
    build.stats.completion_time = utc_now()


class PlaylistBuilder:
    def __init__(self, writer: PlaylistWriterProtocol,
                 pacing: PacingPolicy = fixed_delay(ADD_DELAY_SECONDS)):
        self._writer = writer
        self._pacing = pacing

    def _add(self, playlist_id: str, match: MatchResult) -> AddOutcome:
        try:
            return self._writer.add_video_to_playlist(playlist_id, match.video.id)
        except CredentialError:
            raise
        except Exception as e:
            return AddOutcome.failure(FailureKind.UNKNOWN, f"Unexpected error: {e}")

    def _add_all(self, build: BuildRecord,
                 matches: list[MatchResult]) -> tuple[list[MatchResult], list[BuildFailure]]:
        added = []
        failed = []
        for i, match in enumerate(matches):
            if i > 0:
                pause(self._pacing)

            logger.info(f"{i + 1}/{len(matches)} Adding: \"{match.track.name}\" "
                        f"by {match.track.display_artists} -> {match.video.id}")
            outcome = self._add(build.destination.id, match)
            if outcome.success:
                added.append(match)
                build.stats.quota_used += PLAYLIST_INSERT_COST
                logger.info("   Added")
            else:
                kind = outcome.error_kind or FailureKind.UNKNOWN
                failed.append(BuildFailure(match, kind, outcome.message))
                logger.warning(f"   Failed: {outcome.message} ({kind.value})")
        return added, failed

    def build(self, record: ProgressRecord, title: str | None = None,
              description: str | None = None) -> BuildRecord:
        matches = record.matched
        if not matches:
            raise NoMatchesError("No tracks with YouTube matches found. Cannot create empty playlist.")

        estimate = PLAYLIST_CREATE_COST + len(matches) * PLAYLIST_INSERT_COST
        logger.info(f"Adding {len(matches)} matched videos (~{estimate} quota units)")

        destination = self._writer.create_playlist(
            title or default_title(record),
            description if description is not None else describe_source(record),
        )
        logger.info(f"Created playlist \"{destination.title}\" ({destination.id})")

        build = BuildRecord(destination=destination,
                            stats=BuildStats(quota_used=PLAYLIST_CREATE_COST))
        build.added, build.failed = self._add_all(build, matches)
        refresh_stats(build)
        return build

    def retry(self, build: BuildRecord) -> BuildRecord:
        if not build.failed:
            logger.info("No failed tracks to retry")
            return build

        pending = [f.match for f in build.failed]
        logger.info(f"Retrying {len(pending)} failed tracks "
                    f"(~{len(pending) * PLAYLIST_INSERT_COST} quota units)")

        newly_added, still_failed = self._add_all(build, pending)
        build.added = build.added + newly_added
        build.failed = still_failed
        refresh_stats(build)
        return build
