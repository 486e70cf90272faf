"""End-of-run summaries for search and build phases."""

import logging

from spotify2youtube.core import progress
from spotify2youtube.core.models import BuildRecord, ProgressRecord

logger = logging.getLogger(__name__)


def progress_summary(record: ProgressRecord) -> dict:
    cursor = record.cursor
    return {
        "playlist": record.playlist.name,
        "tracks_total": record.playlist.total_tracks,
        "tracks_processed": cursor.processed_count,
        "tracks_found": cursor.found_count,
        "tracks_not_found": cursor.not_found_count,
        "tracks_remaining": progress.remaining(record),
        "match_rate": cursor.found_count / cursor.processed_count if cursor.processed_count else 0.0,
        "quota_used": record.usage.total_quota_used,
        "complete": progress.is_complete(record),
    }


def build_summary(build: BuildRecord) -> dict:
    return {
        "youtube_playlist": build.destination.title,
        "youtube_url": build.destination.url,
        "tracks_added": len(build.added),
        "tracks_failed": len(build.failed),
        "success_rate": build.stats.success_rate,
        "failure_breakdown": dict(build.stats.failure_kind_counts),
        "quota_used": build.stats.quota_used,
    }


def log_progress(record: ProgressRecord) -> None:
    s = progress_summary(record)
    logger.info("=" * 50)
    logger.info(f"Playlist: {s['playlist']}")
    logger.info(f"Processed: {s['tracks_processed']}/{s['tracks_total']} "
                f"(found {s['tracks_found']}, not found {s['tracks_not_found']})")
    logger.info(f"Match rate: {s['match_rate']:.1%}")
    logger.info(f"Search quota used: {s['quota_used']} units")
    if s["complete"]:
        logger.info("All tracks searched, ready to create the playlist")
    else:
        logger.info(f"{s['tracks_remaining']} tracks remaining "
                    f"(~{s['tracks_remaining'] * progress.SEARCH_QUOTA_COST} quota units)")
    logger.info("=" * 50)


def log_build(build: BuildRecord) -> None:
    s = build_summary(build)
    logger.info("=" * 50)
    logger.info(f"YouTube playlist: {s['youtube_playlist']} ({s['youtube_url']})")
    logger.info(f"Added: {s['tracks_added']}, failed: {s['tracks_failed']} "
                f"(success rate {s['success_rate']:.1%})")
    for kind, count in sorted(s["failure_breakdown"].items()):
        logger.info(f"   {kind}: {count}")
    for failure in build.failed:
        logger.info(f"   Failed: \"{failure.match.track.name}\" by "
                    f"{failure.match.track.display_artists} - {failure.error_kind.value}")
    logger.info(f"Playlist quota used: {s['quota_used']} units")
    logger.info("=" * 50)
