"""
Match scoring

Picks the best YouTube search result for a Spotify track and estimates how
confident that pick is.

Scoring (integer, used for selection):
- +3: title contains track name
- +3: title contains artist name
- +1: per track-name word (>2 chars) found in title
- +1: per artist-name word (>2 chars) found in title or channel
- +2: title contains "official"
- +2: channel contains artist name
- +1: channel contains "official" or "records"
- -1 "live", -2 "cover", -3 "karaoke" in title

The first candidate with the highest score wins; it is accepted only if the
score reaches MIN_MATCH_SCORE.
"""

import logging

from spotify2youtube.core.models import Track, VideoCandidate

logger = logging.getLogger(__name__)

MIN_MATCH_SCORE = 2

TITLE_PENALTIES = {"live": 1, "cover": 2, "karaoke": 3}


def _normalize(s: str) -> str:
    """Normalize string for comparison."""
    return " ".join(s.lower().split())


def _words(s: str) -> list[str]:
    return [word for word in s.split() if len(word) > 2]


def score_candidate(track: Track, video: VideoCandidate) -> int:
    name = _normalize(track.name)
    artist = _normalize(track.primary_artist)
    title = _normalize(video.title)
    channel = _normalize(video.channel)

    score = 0

    if name and name in title:
        score += 3
    if artist and artist in title:
        score += 3

    score += sum(1 for word in _words(name) if word in title)
    score += sum(1 for word in _words(artist) if word in title or word in channel)

    if "official" in title:
        score += 2
    if artist and artist in channel:
        score += 2

    for word, penalty in TITLE_PENALTIES.items():
        if word in title:
            score -= penalty

    if "official" in channel or "records" in channel:
        score += 1

    return score


def find_best_match(track: Track,
                    candidates: list[VideoCandidate]) -> tuple[VideoCandidate | None, int]:
    """
    Return (best candidate, its score), or (None, best score) when nothing
    reaches MIN_MATCH_SCORE.
    """
    best: VideoCandidate | None = None
    best_score = 0

    for video in candidates:
        score = score_candidate(track, video)
        logger.debug(f"Score {score}: {video.title}")
        if best is None or score > best_score:
            best, best_score = video, score

    if best is None or best_score < MIN_MATCH_SCORE:
        return None, best_score
    return best, best_score


def calculate_confidence(track: Track, video: VideoCandidate | None) -> float:
    """Estimate match quality in [0, 1], independent of the selection score."""
    if video is None:
        return 0.0

    name = _normalize(track.name)
    artist = _normalize(track.primary_artist)
    title = _normalize(video.title)
    channel = _normalize(video.channel)

    confidence = 0.5

    if name and name in title:
        confidence += 0.3
    if artist and (artist in title or artist in channel):
        confidence += 0.2
    if title in (f"{artist} {name}", f"{name} {artist}"):
        confidence += 0.2

    if "official" in title:
        confidence += 0.1
    if artist and artist in channel:
        confidence += 0.1

    if "cover" in title or "remix" in title:
        confidence -= 0.2
    if "live" in title or "concert" in title:
        confidence -= 0.1
    if "karaoke" in title or "instrumental" in title:
        confidence -= 0.3

    return max(0.0, min(1.0, confidence))
