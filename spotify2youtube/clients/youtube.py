"""
YouTube Data API v3 Client

Searches with an API key and writes playlists with OAuth credentials built
from a stored refresh token. Includes retry logic for rate limiting and
transient errors.
"""

import json
import logging
import time
from typing import Callable, TypeVar

import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from spotify2youtube.core.failures import FailureKind, classify_add_error, describe
from spotify2youtube.core.models import (
    AddOutcome, CredentialError, DestinationPlaylist, QuotaExceededError, ServiceError,
    VideoCandidate,
)

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
SCOPES = ["https://www.googleapis.com/auth/youtube"]
MUSIC_CATEGORY_ID = "10"
QUOTA_REASONS = ("quotaExceeded", "dailyLimitExceeded")
RATE_LIMIT_REASONS = ("rateLimitExceeded", "userRateLimitExceeded")
AUTH_REASONS = (
    "keyInvalid", "keyExpired", "accessNotConfigured", "ipRefererBlocked",
    "authError", "invalidCredentials",
)

T = TypeVar('T')


class YouTubeAuthError(CredentialError):
    """YouTube authentication failed."""
    pass


class YouTubeAPIError(ServiceError):
    """YouTube API operation failed."""

    def __init__(self, message: str, status: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status = status
        self.reason = reason


class YouTubeNetworkError(YouTubeAPIError):
    """The API could not be reached."""
    pass


class YouTubeQuotaExceededError(YouTubeAPIError, QuotaExceededError):
    """YouTube API quota exceeded."""
    pass


def _error_reason(e: HttpError) -> str | None:
    """Pull the first error reason (e.g. 'quotaExceeded') out of an HttpError."""
    try:
        data = json.loads(e.content.decode("utf-8") if isinstance(e.content, bytes) else e.content)
        errors = data.get("error", {}).get("errors") or []
        if errors:
            return errors[0].get("reason")
    except (ValueError, AttributeError, TypeError):
        pass
    details = getattr(e, "error_details", None)
    if isinstance(details, list) and details and isinstance(details[0], dict):
        return details[0].get("reason")
    return None


def build_credentials(refresh_token: str, client_id: str, client_secret: str) -> Credentials:
    return Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=client_id,
        client_secret=client_secret,
        scopes=SCOPES,
    )


def run_authorization_flow(client_id: str, client_secret: str) -> str:
    """Run the browser consent flow once and return the refresh token."""
    client_config = {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": ["http://localhost"],
        }
    }
    try:
        flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
        credentials = flow.run_local_server(port=0, access_type="offline", prompt="consent")
    except Exception as e:
        raise YouTubeAuthError(f"Authorization failed: {e}")
    if not credentials.refresh_token:
        raise YouTubeAuthError("Authorization did not return a refresh token")
    return credentials.refresh_token


class YouTubeClient:
    """YouTube Data API client with retry logic."""

    def __init__(self, api_key: str | None = None, credentials: Credentials | None = None,
                 privacy: str = "private"):
        self._privacy = privacy
        self._authorized = credentials is not None
        if not api_key and not credentials:
            raise YouTubeAuthError("An API key or OAuth credentials are required")
        try:
            if credentials:
                self._service = build("youtube", "v3", credentials=credentials,
                                      cache_discovery=False)
            else:
                self._service = build("youtube", "v3", developerKey=api_key,
                                      cache_discovery=False)
            logger.info("YouTube client initialized")
        except Exception as e:
            raise YouTubeAuthError(f"Failed to initialize YouTube client: {e}")

    def _retry(self, operation: Callable[[], T], name: str, max_retries: int = 3) -> T:
        """Execute operation with retry logic for transient errors."""
        for attempt in range(max_retries):
            try:
                return operation()
            except HttpError as e:
                status = getattr(e.resp, "status", 0) or 0
                reason = _error_reason(e)

                # Quota exceeded - don't retry
                if reason in QUOTA_REASONS:
                    raise YouTubeQuotaExceededError(f"Quota exceeded on {name}: {e}", status, reason)

                # Rejected key or token - every later call would fail the same way
                if status == 401 or reason in AUTH_REASONS:
                    raise YouTubeAuthError(f"Credentials rejected on {name}: {reason or status}")

                # Rate limit - wait and retry once
                if status in (403, 429) and reason in RATE_LIMIT_REASONS and attempt == 0:
                    logger.warning(f"Rate limited on {name}, waiting 60s...")
                    time.sleep(60)
                    continue

                # Server error - retry with backoff
                if status >= 500 and attempt < max_retries - 1:
                    wait = 2 ** attempt
                    logger.warning(f"Server error on {name}, retrying in {wait}s...")
                    time.sleep(wait)
                    continue

                raise YouTubeAPIError(f"API error on {name}: {e}", status, reason)

            except RefreshError as e:
                raise YouTubeAuthError(f"Token refresh failed on {name}: {e}") from e

            except (ConnectionError, TimeoutError, OSError, httplib2.HttpLib2Error) as e:
                if attempt < max_retries - 1:
                    wait = 2 ** attempt
                    logger.warning(f"Network error on {name}, retrying in {wait}s...")
                    time.sleep(wait)
                    continue
                raise YouTubeNetworkError(f"Network error on {name}: {e}")

        raise YouTubeAPIError(f"{name} failed after {max_retries} attempts")

    def check_connection(self) -> None:
        """Make a 1-unit call so rejected credentials fail before any state is touched."""
        def do_check():
            if self._authorized:
                return self._service.channels().list(part="id", mine=True).execute()
            return self._service.videoCategories().list(part="id", regionCode="US").execute()

        self._retry(do_check, "connection check")
        logger.info("YouTube connection test successful")

    def search_videos(self, query: str, limit: int = 5) -> list[VideoCandidate]:
        """Search music videos. Costs 100 quota units."""
        def do_search():
            return self._service.search().list(
                part="snippet",
                q=query,
                type="video",
                videoCategoryId=MUSIC_CATEGORY_ID,
                order="relevance",
                maxResults=limit
            ).execute()

        response = self._retry(do_search, f"search '{query}'")
        candidates = []
        for item in response.get("items", []):
            candidate = self._extract_candidate(item)
            if candidate:
                candidates.append(candidate)
        logger.debug(f"{len(candidates)} results for '{query}'")
        return candidates

    def _extract_candidate(self, item: dict) -> VideoCandidate | None:
        """Extract VideoCandidate from a search result item."""
        try:
            video_id = item.get("id", {}).get("videoId", "")
            snippet = item.get("snippet", {})
            if not video_id:
                return None
            return VideoCandidate(
                id=video_id,
                title=snippet.get("title", ""),
                channel=snippet.get("channelTitle", ""),
                published_at=snippet.get("publishedAt", ""),
            )
        except AttributeError:
            return None

    def create_playlist(self, title: str, description: str = "",
                        privacy: str | None = None) -> DestinationPlaylist:
        """Create a playlist on the authorized channel. Costs 50 quota units."""
        def do_create():
            return self._service.playlists().insert(
                part="snippet,status",
                body={
                    "snippet": {"title": title, "description": description},
                    "status": {"privacyStatus": privacy or self._privacy},
                }
            ).execute()

        response = self._retry(do_create, f"create playlist '{title}'")
        snippet = response.get("snippet", {})
        logger.info(f"Created YouTube playlist: {response['id']}")
        return DestinationPlaylist(
            id=response["id"],
            title=snippet.get("title", title),
            description=snippet.get("description", description),
        )

    def add_video_to_playlist(self, playlist_id: str, video_id: str) -> AddOutcome:
        """Add video to playlist. Failures are classified, never raised."""
        def do_insert():
            return self._service.playlistItems().insert(
                part="snippet",
                body={
                    "snippet": {
                        "playlistId": playlist_id,
                        "resourceId": {"kind": "youtube#video", "videoId": video_id}
                    }
                }
            ).execute()

        try:
            self._retry(do_insert, f"add {video_id}")
            return AddOutcome.ok()
        except YouTubeNetworkError as e:
            logger.debug(f"Failed to add {video_id}: {e}")
            return AddOutcome.failure(FailureKind.NETWORK_ERROR, describe(FailureKind.NETWORK_ERROR))
        except YouTubeAPIError as e:
            kind = classify_add_error(e.status, e.reason)
            if kind is FailureKind.UNKNOWN and e.status:
                message = f"HTTP {e.status}: {e}"
            else:
                message = describe(kind, e.reason)
            logger.debug(f"Failed to add {video_id}: {message} ({kind.value})")
            return AddOutcome.failure(kind, message)
