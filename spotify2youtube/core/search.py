"""Resolve one Spotify track to a YouTube video by trying successive queries."""

import logging
from typing import Protocol

from spotify2youtube.core.matching import calculate_confidence, find_best_match
from spotify2youtube.core.models import (
    CredentialError, MatchResult, QuotaExceededError, ServiceError, Track, VideoCandidate,
    utc_now,
)
from spotify2youtube.core.pacing import PacingPolicy, fixed_delay, pause
from spotify2youtube.core.queries import generate_queries

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5
QUERY_DELAY_SECONDS = 0.2


class VideoSearchProtocol(Protocol):
    def search_videos(self, query: str, limit: int) -> list[VideoCandidate]: ...


class TrackSearcher:
    """
    Runs the query list for a track until a candidate clears the match threshold.

    A failed query counts as "no candidates" and the next query is tried.
    Quota exhaustion and rejected credentials propagate so the caller can stop
    the session without recording the track.
    """

    def __init__(self, search: VideoSearchProtocol,
                 pacing: PacingPolicy = fixed_delay(QUERY_DELAY_SECONDS),
                 max_results: int = DEFAULT_MAX_RESULTS):
        self._search = search
        self._pacing = pacing
        self._max_results = max_results

    def _query(self, query: str) -> list[VideoCandidate]:
        try:
            return self._search.search_videos(query, self._max_results)
        except (QuotaExceededError, CredentialError):
            raise
        except ServiceError as e:
            logger.warning(f"Search failed for '{query}': {e}")
            return []

    def resolve(self, track: Track) -> MatchResult:
        attempted: list[str] = []
        try:
            for i, query in enumerate(generate_queries(track)):
                if i > 0:
                    pause(self._pacing)
                attempted.append(query)
                logger.debug(f"Searching: {query}")

                candidates = self._query(query)
                if not candidates:
                    continue

                video, score = find_best_match(track, candidates)
                if video:
                    confidence = calculate_confidence(track, video)
                    logger.debug(f"Matched (score={score}): {video.title}")
                    return MatchResult(track, video, confidence, utc_now(), attempted)
        except (QuotaExceededError, CredentialError):
            raise
        except Exception as e:
            logger.error(f"Lookup failed for '{track.name}': {e}")

        logger.debug(f"No match after {len(attempted)} queries: {track.name}")
        return MatchResult(track, None, 0.0, utc_now(), attempted)
