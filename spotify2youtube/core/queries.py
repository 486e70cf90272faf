"""Search query generation for a Spotify track."""

import re

from spotify2youtube.core.models import Track

# Applied in order; each removes one kind of title decoration
_CLEANUPS = [
    # featured artists: "(feat. X)", "ft. X", "featuring X"
    re.compile(r"\s*\(?\b(?:feat\.?|featuring|ft\.?)\s+[^)]*\)?", re.IGNORECASE),
    # " - 2020 Remix", " - Radio Edit", " - Acoustic Version"
    re.compile(r"\s*[-–]\s*.*(?:remix|mix|version|edit)\s*", re.IGNORECASE),
    re.compile(r"\s*[-–]\s*.*(?:remastered|remaster)\s*", re.IGNORECASE),
    re.compile(r"\s*\(\d{4}\)"),
    re.compile(r"\s*\([^)]*\)"),
]


def _squash(s: str) -> str:
    return " ".join(s.split())


def clean_track_name(name: str) -> str:
    """Strip features, remix/remaster suffixes and parentheticals from a title."""
    cleaned = name
    for pattern in _CLEANUPS:
        cleaned = pattern.sub("", cleaned)
    return _squash(cleaned)


def generate_queries(track: Track) -> list[str]:
    """Return search strings for a track, most specific first."""
    title = _squash(track.name)
    artist = _squash(track.primary_artist)
    clean = clean_track_name(title) or title

    candidates = [
        f"{artist} {clean} official",
        f"{artist} {clean} official audio",
        f"{artist} {clean} official video",
        f"{artist} {clean}",
        f"{title} {artist}",
        f"{clean} {artist}",
        " ".join(f'"{part}"' for part in (artist, clean) if part),
    ]

    queries = []
    seen = set()
    for query in candidates:
        query = _squash(query)
        if query and query not in seen:
            seen.add(query)
            queries.append(query)
    return queries
