"""Shared fixtures and fakes."""

import pytest

from spotify2youtube.core.failures import FailureKind
from spotify2youtube.core.models import (
    AddOutcome, DestinationPlaylist, MatchResult, PlaylistRef, QuotaExceededError,
    Track, VideoCandidate,
)
from spotify2youtube.core.storage import ProgressStore

PLAYLIST_ID = "37i9dQZF1DXcBWIGoYBM5M"


def make_track(n: int) -> Track:
    return Track(id=f"t{n}", name=f"Song {n}", artists=(f"Artist {n}",),
                 url=f"https://open.spotify.com/track/t{n}")


def make_video(track: Track) -> VideoCandidate:
    return VideoCandidate(id=f"v{track.id}", title=f"{track.primary_artist} - {track.name} (Official Video)",
                          channel=f"{track.primary_artist} VEVO")


def make_match(track: Track, found: bool = True) -> MatchResult:
    if found:
        return MatchResult(track, make_video(track), 0.9, "2024-01-01T00:00:00+00:00", ["q"])
    return MatchResult(track, None, 0.0, "2024-01-01T00:00:00+00:00", ["q"])


class FakeResolver:
    """Finds every track except those listed in `missing`; may run out of quota."""

    def __init__(self, missing=(), quota_after: int | None = None):
        self.missing = set(missing)
        self.quota_after = quota_after
        self.calls = []

    def resolve(self, track: Track) -> MatchResult:
        if self.quota_after is not None and len(self.calls) >= self.quota_after:
            raise QuotaExceededError("quota exhausted")
        self.calls.append(track.id)
        return make_match(track, found=track.id not in self.missing)


class FakeWriter:
    """Playlist writer that fails for the video ids in `failing`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.created = []
        self.added = []

    def create_playlist(self, title: str, description: str) -> DestinationPlaylist:
        self.created.append((title, description))
        return DestinationPlaylist(id="PL123", title=title, description=description)

    def add_video_to_playlist(self, playlist_id: str, video_id: str) -> AddOutcome:
        if video_id in self.failing:
            return AddOutcome.failure(FailureKind.VIDEO_NOT_FOUND, "Video not found or has been deleted")
        self.added.append(video_id)
        return AddOutcome.ok()


@pytest.fixture
def tracks():
    """Seven playlist tracks."""
    return [make_track(n) for n in range(1, 8)]


@pytest.fixture
def playlist(tracks):
    return PlaylistRef(id=PLAYLIST_ID, name="Road Trip", total_tracks=len(tracks),
                       url=f"https://open.spotify.com/playlist/{PLAYLIST_ID}")


@pytest.fixture
def store(tmp_path):
    return ProgressStore(tmp_path)
