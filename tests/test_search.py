"""Unit tests for TrackSearcher."""

from unittest.mock import Mock

import pytest

from spotify2youtube.core.models import QuotaExceededError, ServiceError, Track, VideoCandidate
from spotify2youtube.core.pacing import no_delay
from spotify2youtube.core.queries import generate_queries
from spotify2youtube.core.search import TrackSearcher


@pytest.fixture
def track():
    return Track(id="1", name="Song", artists=("Artist",))


@pytest.fixture
def good_video():
    return VideoCandidate(id="vid1", title="Artist - Song (Official Video)", channel="Artist")


@pytest.fixture
def search():
    """Create a mock video search."""
    client = Mock()
    client.search_videos = Mock(return_value=[])
    return client


class TestTrackSearcher:
    """Test cases for TrackSearcher.resolve."""

    def test_stops_at_first_match(self, track, good_video, search):
        """Only the first query is run when it yields an accepted candidate."""
        search.search_videos.return_value = [good_video]
        searcher = TrackSearcher(search, pacing=no_delay())

        result = searcher.resolve(track)

        assert result.found
        assert result.video == good_video
        assert result.queries_attempted == ["Artist Song official"]
        assert 0.0 < result.confidence <= 1.0
        search.search_videos.assert_called_once_with("Artist Song official", 5)

    def test_tries_next_query_when_nothing_acceptable(self, track, good_video, search):
        junk = VideoCandidate(id="junk", title="Unrelated karaoke", channel="")
        search.search_videos.side_effect = [[junk], [], [good_video]]
        searcher = TrackSearcher(search, pacing=no_delay())

        result = searcher.resolve(track)

        assert result.video == good_video
        assert len(result.queries_attempted) == 3

    def test_not_found_after_all_queries(self, track, search):
        searcher = TrackSearcher(search, pacing=no_delay())

        result = searcher.resolve(track)

        assert not result.found
        assert result.confidence == 0.0
        assert result.queries_attempted == generate_queries(track)

    def test_failed_query_counts_as_empty(self, track, good_video, search):
        """A service error on one query does not end the lookup."""
        search.search_videos.side_effect = [ServiceError("boom"), [good_video]]
        searcher = TrackSearcher(search, pacing=no_delay())

        result = searcher.resolve(track)

        assert result.found
        assert len(result.queries_attempted) == 2

    def test_quota_exhaustion_propagates(self, track, search):
        search.search_videos.side_effect = QuotaExceededError("quota")
        searcher = TrackSearcher(search, pacing=no_delay())

        with pytest.raises(QuotaExceededError):
            searcher.resolve(track)

    def test_unexpected_error_gives_not_found(self, track, search):
        search.search_videos.side_effect = RuntimeError("bad payload")
        searcher = TrackSearcher(search, pacing=no_delay())

        result = searcher.resolve(track)

        assert not result.found
        assert result.queries_attempted == ["Artist Song official"]

    def test_pauses_between_queries(self, track, search, monkeypatch):
        sleep = Mock()
        monkeypatch.setattr("spotify2youtube.core.pacing.time.sleep", sleep)
        searcher = TrackSearcher(search, pacing=lambda: 0.2)

        searcher.resolve(track)

        assert sleep.call_count == len(generate_queries(track)) - 1
