"""Data models for search and playlist build phases.

Every record here is built from API JSON exactly once, at the client edge, and
serialized back to the JSON layout the progress/result files use. ``from_dict``
also accepts the raw Spotify/YouTube objects that older result files embedded.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from spotify2youtube.core.failures import FailureKind


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ServiceError(Exception):
    """An external service call failed."""
    pass


class QuotaExceededError(ServiceError):
    """The daily API quota is exhausted; further calls will fail until reset."""
    pass


class CredentialError(Exception):
    """A service rejected our credentials; nothing further can succeed this run."""
    pass


class MissingProgressError(Exception):
    """Raised when a build is requested before any search has run."""
    pass


class NoMatchesError(Exception):
    """Raised when a build is requested but no track has a matched video."""
    pass


class EmptyPlaylistError(Exception):
    """Raised when the source playlist has no retrievable tracks."""
    pass


@dataclass(frozen=True)
class Track:
    """A track from a Spotify playlist."""
    id: str
    name: str
    artists: tuple = ()
    url: str = ""

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def display_artists(self) -> str:
        return ", ".join(self.artists)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "artists": [{"name": name} for name in self.artists],
            "external_urls": {"spotify": self.url},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Track":
        artists = []
        for artist in data.get("artists") or []:
            name = artist.get("name") if isinstance(artist, dict) else artist
            if name:
                artists.append(name)
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            artists=tuple(artists),
            url=(data.get("external_urls") or {}).get("spotify", ""),
        )


@dataclass(frozen=True)
class VideoCandidate:
    """A YouTube search result."""
    id: str
    title: str
    channel: str = ""
    published_at: str = ""

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"

    def to_dict(self) -> dict:
        return {
            "id": {"videoId": self.id},
            "snippet": {
                "title": self.title,
                "channelTitle": self.channel,
                "publishedAt": self.published_at,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VideoCandidate":
        video_id = data.get("id", "")
        if isinstance(video_id, dict):
            video_id = video_id.get("videoId", "")
        snippet = data.get("snippet") or {}
        return cls(
            id=video_id,
            title=snippet.get("title", ""),
            channel=snippet.get("channelTitle", ""),
            published_at=snippet.get("publishedAt", ""),
        )


@dataclass
class MatchResult:
    """Outcome of searching YouTube for one track."""
    track: Track
    video: Optional[VideoCandidate]
    confidence: float = 0.0
    searched_at: str = field(default_factory=utc_now)
    queries_attempted: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.video is not None

    def to_dict(self) -> dict:
        return {
            "spotify_track": self.track.to_dict(),
            "youtube_video": self.video.to_dict() if self.video else None,
            "confidence": self.confidence,
            "search_date": self.searched_at,
            "search_queries_tried": list(self.queries_attempted),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchResult":
        video = data.get("youtube_video")
        return cls(
            track=Track.from_dict(data.get("spotify_track") or {}),
            video=VideoCandidate.from_dict(video) if video else None,
            confidence=float(data.get("confidence", 0.0)),
            searched_at=data.get("search_date", ""),
            queries_attempted=list(data.get("search_queries_tried") or []),
        )


@dataclass(frozen=True)
class PlaylistRef:
    """Snapshot of the source playlist, captured once on the first session."""
    id: str
    name: str
    total_tracks: int
    url: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "total_tracks": self.total_tracks,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlaylistRef":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            total_tracks=int(data.get("total_tracks", 0)),
            url=data.get("url", ""),
        )


@dataclass
class SearchCursor:
    processed_count: int = 0
    found_count: int = 0
    not_found_count: int = 0
    last_updated: str = field(default_factory=utc_now)
    batch_size: int = 50
    next_start_index: int = 0

    def to_dict(self) -> dict:
        return {
            "tracks_processed": self.processed_count,
            "tracks_found": self.found_count,
            "tracks_not_found": self.not_found_count,
            "last_updated": self.last_updated,
            "batch_size": self.batch_size,
            "current_batch_start": self.next_start_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchCursor":
        return cls(
            processed_count=int(data.get("tracks_processed", 0)),
            found_count=int(data.get("tracks_found", 0)),
            not_found_count=int(data.get("tracks_not_found", 0)),
            last_updated=data.get("last_updated", ""),
            batch_size=int(data.get("batch_size", 50)),
            next_start_index=int(data.get("current_batch_start", 0)),
        )


@dataclass
class SearchUsage:
    total_quota_used: int = 0
    search_count: int = 0
    session_start_time: str = field(default_factory=utc_now)
    last_session_time: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "total_quota_used": self.total_quota_used,
            "searches_performed": self.search_count,
            "start_time": self.session_start_time,
        }
        if self.last_session_time:
            data["last_session_time"] = self.last_session_time
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SearchUsage":
        return cls(
            total_quota_used=int(data.get("total_quota_used", 0)),
            search_count=int(data.get("searches_performed", 0)),
            session_start_time=data.get("start_time", ""),
            last_session_time=data.get("last_session_time"),
        )


@dataclass
class ProgressRecord:
    """Persisted state of the search phase for one playlist."""
    playlist: PlaylistRef
    results: List[MatchResult] = field(default_factory=list)
    cursor: SearchCursor = field(default_factory=SearchCursor)
    usage: SearchUsage = field(default_factory=SearchUsage)

    @property
    def matched(self) -> List[MatchResult]:
        return [r for r in self.results if r.found]

    def to_dict(self) -> dict:
        return {
            "spotify_playlist": self.playlist.to_dict(),
            "tracks": [r.to_dict() for r in self.results],
            "progress": self.cursor.to_dict(),
            "search_stats": self.usage.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressRecord":
        return cls(
            playlist=PlaylistRef.from_dict(data["spotify_playlist"]),
            results=[MatchResult.from_dict(r) for r in data.get("tracks") or []],
            cursor=SearchCursor.from_dict(data.get("progress") or {}),
            usage=SearchUsage.from_dict(data.get("search_stats") or {}),
        )


@dataclass(frozen=True)
class DestinationPlaylist:
    """The YouTube playlist videos are added to."""
    id: str
    title: str
    description: str = ""

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/playlist?list={self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "snippet": {"title": self.title, "description": self.description},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DestinationPlaylist":
        snippet = data.get("snippet") or {}
        return cls(
            id=data["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
        )


@dataclass(frozen=True)
class AddOutcome:
    """Result of one playlist insert."""
    success: bool
    error_kind: Optional[FailureKind] = None
    message: str = ""

    @classmethod
    def ok(cls) -> "AddOutcome":
        return cls(success=True)

    @classmethod
    def failure(cls, kind: FailureKind, message: str) -> "AddOutcome":
        return cls(success=False, error_kind=kind, message=message)


@dataclass
class BuildFailure:
    match: MatchResult
    error_kind: FailureKind
    error_message: str

    def to_dict(self) -> dict:
        return {
            "track": self.match.to_dict(),
            "error": self.error_message,
            "errorType": self.error_kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildFailure":
        # Older files stored bare match results here with no error details
        if "track" not in data:
            return cls(MatchResult.from_dict(data), FailureKind.UNKNOWN, "Unknown error")
        return cls(
            match=MatchResult.from_dict(data["track"]),
            error_kind=FailureKind.parse(data.get("errorType")),
            error_message=data.get("error", ""),
        )


@dataclass
class BuildStats:
    quota_used: int = 0
    completion_time: str = field(default_factory=utc_now)
    success_rate: float = 0.0
    failure_kind_counts: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "quota_used": self.quota_used,
            "creation_time": self.completion_time,
            "success_rate": self.success_rate,
            "failure_breakdown": dict(self.failure_kind_counts),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildStats":
        return cls(
            quota_used=int(data.get("quota_used", 0)),
            completion_time=data.get("creation_time", ""),
            success_rate=float(data.get("success_rate", 0.0)),
            failure_kind_counts=dict(data.get("failure_breakdown") or {}),
        )


@dataclass
class BuildRecord:
    """Persisted result of adding matched videos to the destination playlist."""
    destination: DestinationPlaylist
    added: List[MatchResult] = field(default_factory=list)
    failed: List[BuildFailure] = field(default_factory=list)
    stats: BuildStats = field(default_factory=BuildStats)

    def to_dict(self) -> dict:
        return {
            "youtube_playlist": self.destination.to_dict(),
            "tracks_added": [m.to_dict() for m in self.added],
            "tracks_failed": [f.to_dict() for f in self.failed],
            "creation_stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildRecord":
        return cls(
            destination=DestinationPlaylist.from_dict(data["youtube_playlist"]),
            added=[MatchResult.from_dict(m) for m in data.get("tracks_added") or []],
            failed=[BuildFailure.from_dict(f) for f in data.get("tracks_failed") or []],
            stats=BuildStats.from_dict(data.get("creation_stats") or {}),
        )
