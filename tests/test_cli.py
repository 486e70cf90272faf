"""End-to-end tests for the command line, with both APIs mocked."""

import json
from unittest.mock import Mock

import pytest

from conftest import PLAYLIST_ID, make_track, make_video
from spotify2youtube import cli
from spotify2youtube.clients.spotify import SpotifyAuthError
from spotify2youtube.clients.youtube import YouTubeAuthError
from spotify2youtube.core.failures import FailureKind
from spotify2youtube.core.models import (
    AddOutcome, DestinationPlaylist, PlaylistRef, QuotaExceededError,
)

ENV = {
    "SPOTIFY_CLIENT_ID": "spotify-id",
    "SPOTIFY_CLIENT_SECRET": "spotify-secret",
    "YOUTUBE_API_KEY": "api-key",
    "GOOGLE_CLIENT_ID": "google-id",
    "GOOGLE_CLIENT_SECRET": "google-secret",
    "YOUTUBE_REFRESH_TOKEN": "refresh",
}


@pytest.fixture
def tracks():
    return [make_track(n) for n in range(1, 5)]


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    for var in ("SPOTIFY_PLAYLIST_ID", "SEARCH_BATCH_SIZE", "YOUTUBE_PLAYLIST_NAME",
                "YOUTUBE_PLAYLIST_PRIVACY"):
        monkeypatch.delenv(var, raising=False)
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setattr(cli, "setup_logging", Mock())
    monkeypatch.setattr("spotify2youtube.core.pacing.time.sleep", Mock())


@pytest.fixture
def spotify(monkeypatch, tracks):
    """Mock Spotify client serving four tracks."""
    client = Mock()
    client.get_playlist.return_value = PlaylistRef(id=PLAYLIST_ID, name="Road Trip", total_tracks=4)
    client.get_playlist_tracks.return_value = tracks
    monkeypatch.setattr(cli, "SpotifyClient", Mock(return_value=client))
    return client


@pytest.fixture
def youtube(monkeypatch, tracks):
    """Mock YouTube client that finds every track except the last."""
    client = Mock()

    def search_videos(query, limit):
        if "Song 4" in query:
            return []
        return [make_video(t) for t in tracks[:3]]

    client.search_videos.side_effect = search_videos
    client.create_playlist.side_effect = lambda title, description: DestinationPlaylist(
        id="PL123", title=title, description=description
    )
    client.add_video_to_playlist.return_value = AddOutcome.ok()
    monkeypatch.setattr(cli, "YouTubeClient", Mock(return_value=client))
    monkeypatch.setattr(cli, "build_credentials", Mock())
    return client


def _progress(tmp_path):
    return json.loads((tmp_path / f"{PLAYLIST_ID}-search-progress.json").read_text())


def _result(tmp_path):
    return json.loads((tmp_path / f"{PLAYLIST_ID}-playlist-result.json").read_text())


class TestSearchCommand:
    """Test cases for the search command."""

    def test_batched_search(self, spotify, youtube, tmp_path):
        assert cli.main(["search", PLAYLIST_ID, "--batch-size", "2"]) == 0
        assert _progress(tmp_path)["progress"]["tracks_processed"] == 2

        assert cli.main(["search", f"spotify:playlist:{PLAYLIST_ID}"]) == 0
        data = _progress(tmp_path)
        assert data["progress"]["tracks_processed"] == 4
        assert data["progress"]["tracks_found"] == 3
        assert data["progress"]["current_batch_start"] == 4
        assert [t["spotify_track"]["id"] for t in data["tracks"]] == ["t1", "t2", "t3", "t4"]
        assert data["tracks"][0]["youtube_video"]["id"]["videoId"] == "vt1"
        spotify.get_playlist.assert_called_once()

    def test_complete_search_does_nothing(self, spotify, youtube):
        cli.main(["search", PLAYLIST_ID])
        youtube.search_videos.reset_mock()

        assert cli.main(["search", PLAYLIST_ID]) == 0
        youtube.search_videos.assert_not_called()

    def test_playlist_from_environment(self, spotify, youtube, monkeypatch):
        monkeypatch.setenv("SPOTIFY_PLAYLIST_ID", PLAYLIST_ID)

        assert cli.main(["search"]) == 0

    def test_no_playlist(self, spotify, youtube):
        assert cli.main(["search"]) == 1

    def test_invalid_playlist(self, spotify, youtube):
        assert cli.main(["search", "not-a-playlist"]) == 1
        spotify.get_playlist.assert_not_called()

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.delenv("YOUTUBE_API_KEY")

        assert cli.main(["search", PLAYLIST_ID]) == 1

    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_invalid_batch_size(self, value):
        """A bad batch size is rejected by argument parsing, before anything runs."""
        with pytest.raises(SystemExit) as exc:
            cli.main(["search", PLAYLIST_ID, "--batch-size", value])

        assert exc.value.code == 2
        cli.setup_logging.assert_not_called()

    def test_rejected_api_key(self, spotify, youtube, tmp_path):
        """Credentials are checked before any progress is created."""
        youtube.check_connection.side_effect = YouTubeAuthError("Credentials rejected: keyInvalid")

        assert cli.main(["search", PLAYLIST_ID]) == 1
        assert not (tmp_path / f"{PLAYLIST_ID}-search-progress.json").exists()
        spotify.get_playlist.assert_not_called()
        youtube.search_videos.assert_not_called()

    def test_rejected_key_during_search(self, spotify, youtube, tmp_path):
        """A key rejected mid-session stops the run without recording the track."""
        youtube.search_videos.side_effect = YouTubeAuthError("Credentials rejected: keyInvalid")

        assert cli.main(["search", PLAYLIST_ID]) == 1
        assert _progress(tmp_path)["tracks"] == []

    def test_rejected_spotify_credentials(self, spotify, youtube):
        spotify.check_connection.side_effect = SpotifyAuthError("Token request rejected (400)")

        assert cli.main(["search", PLAYLIST_ID]) == 1
        spotify.get_playlist.assert_not_called()

    def test_empty_playlist(self, spotify, youtube, tmp_path):
        spotify.get_playlist_tracks.return_value = []

        assert cli.main(["search", PLAYLIST_ID]) == 1
        assert not (tmp_path / f"{PLAYLIST_ID}-search-progress.json").exists()

    def test_quota_exhausted(self, spotify, youtube, tmp_path):
        youtube.search_videos.side_effect = QuotaExceededError("quota")

        assert cli.main(["search", PLAYLIST_ID]) == 1
        assert _progress(tmp_path)["progress"]["tracks_processed"] == 0


class TestCreateCommand:
    """Test cases for the create and retry commands."""

    def test_create_without_search(self, youtube):
        assert cli.main(["create", PLAYLIST_ID]) == 1
        youtube.create_playlist.assert_not_called()

    def test_create_and_refuse_overwrite(self, spotify, youtube, tmp_path):
        cli.main(["search", PLAYLIST_ID])

        assert cli.main(["create", PLAYLIST_ID, "--name", "Drive"]) == 0
        data = _result(tmp_path)
        creation = data["playlist_creation"]
        assert creation["youtube_playlist"]["snippet"]["title"] == "Drive"
        assert len(creation["tracks_added"]) == 3
        assert creation["creation_stats"]["success_rate"] == 1.0
        assert data["progress"]["tracks_processed"] == 4

        assert cli.main(["create", PLAYLIST_ID]) == 1
        assert cli.main(["create", PLAYLIST_ID, "--force"]) == 0
        assert youtube.create_playlist.call_count == 2

    def test_retry_failed(self, spotify, youtube, tmp_path):
        cli.main(["search", PLAYLIST_ID])
        youtube.add_video_to_playlist.side_effect = [
            AddOutcome.ok(),
            AddOutcome.failure(FailureKind.VIDEO_PRIVATE_OR_DELETED, "private"),
            AddOutcome.ok(),
        ]
        cli.main(["create", PLAYLIST_ID])
        assert len(_result(tmp_path)["playlist_creation"]["tracks_failed"]) == 1

        youtube.add_video_to_playlist.side_effect = None
        youtube.add_video_to_playlist.return_value = AddOutcome.ok()

        assert cli.main(["retry", PLAYLIST_ID]) == 0
        creation = _result(tmp_path)["playlist_creation"]
        assert len(creation["tracks_added"]) == 3
        assert creation["tracks_failed"] == []

    def test_expired_refresh_token_keeps_result(self, spotify, youtube, tmp_path):
        """An expired token aborts retry and leaves the saved failures untouched."""
        cli.main(["search", PLAYLIST_ID])
        youtube.add_video_to_playlist.side_effect = [
            AddOutcome.ok(),
            AddOutcome.failure(FailureKind.VIDEO_NOT_FOUND, "gone"),
            AddOutcome.ok(),
        ]
        cli.main(["create", PLAYLIST_ID])
        before = _result(tmp_path)["playlist_creation"]

        youtube.check_connection.side_effect = YouTubeAuthError("Token refresh failed: invalid_grant")

        assert cli.main(["retry", PLAYLIST_ID]) == 1
        assert _result(tmp_path)["playlist_creation"] == before
        assert before["tracks_failed"][0]["errorType"] == "VIDEO_NOT_FOUND"

    def test_create_with_rejected_token(self, spotify, youtube):
        cli.main(["search", PLAYLIST_ID])
        youtube.check_connection.side_effect = YouTubeAuthError("Credentials rejected: 401")

        assert cli.main(["create", PLAYLIST_ID]) == 1
        youtube.create_playlist.assert_not_called()

    def test_retry_without_result(self, youtube):
        assert cli.main(["retry", PLAYLIST_ID]) == 1


class TestStatusCommand:
    """Test cases for the status command."""

    def test_status_after_search(self, spotify, youtube):
        cli.main(["search", PLAYLIST_ID, "--batch-size", "1"])

        assert cli.main(["status", PLAYLIST_ID]) == 0

    def test_status_without_state(self):
        assert cli.main(["status", PLAYLIST_ID]) == 1
