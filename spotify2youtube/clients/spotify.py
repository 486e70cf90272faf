"""Spotify Web API Client - client credentials flow"""

import logging
import re
import time
from typing import Any

import requests

from spotify2youtube.core.models import CredentialError, PlaylistRef, ServiceError, Track

logger = logging.getLogger(__name__)

API_URL = "https://api.spotify.com/v1"
TOKEN_URL = "https://accounts.spotify.com/api/token"
PAGE_LIMIT = 50
TOKEN_MARGIN_SECONDS = 300

_PLAYLIST_ID = re.compile(r"^[a-zA-Z0-9]{22}$")
_PLAYLIST_PATTERNS = [
    re.compile(r"spotify:playlist:([a-zA-Z0-9]{22})"),
    re.compile(r"open\.spotify\.com/playlist/([a-zA-Z0-9]{22})"),
    re.compile(r"spotify\.com/playlist/([a-zA-Z0-9]{22})"),
]


class SpotifyAuthError(CredentialError):
    pass


class SpotifyAPIError(ServiceError):
    pass


class SpotifySchemaError(Exception):
    pass


def extract_playlist_id(value: str) -> str:
    """Accept a bare playlist id, a spotify: URI or an open.spotify.com URL."""
    value = value.strip()
    if _PLAYLIST_ID.match(value):
        return value
    for pattern in _PLAYLIST_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    raise ValueError(f"Invalid Spotify playlist ID or URL: {value}")


class SpotifyClient:
    def __init__(self, client_id: str, client_secret: str,
                 session: requests.Session | None = None):
        self._client_id = client_id
        self._client_secret = client_secret
        self._token: str | None = None
        self._token_expires: float = 0
        self._session = session or requests.Session()
        logger.info("Spotify client initialized")

    def _refresh_token(self) -> None:
        logger.debug("Requesting Spotify access token")
        try:
            response = self._session.post(
                TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
                timeout=10
            )
        except requests.RequestException as e:
            raise SpotifyAuthError(f"Token request failed: {e}")

        if response.status_code != 200:
            raise SpotifyAuthError(f"Token request rejected ({response.status_code}): {response.text[:200]}")

        data = response.json()
        self._token = data["access_token"]
        self._token_expires = time.time() + data.get("expires_in", 3600)
        logger.info("Spotify token obtained")

    def _ensure_token(self) -> None:
        if not self._token or time.time() >= self._token_expires - TOKEN_MARGIN_SECONDS:
            self._refresh_token()

    def check_connection(self) -> None:
        self._ensure_token()
        logger.info("Spotify connection test successful")

    def _get(self, url: str, params: dict | None = None) -> dict:
        if not url.startswith("http"):
            url = f"{API_URL}{url}"

        for attempt in range(3):
            self._ensure_token()
            try:
                response = self._session.get(
                    url,
                    headers={"authorization": f"Bearer {self._token}"},
                    params=params,
                    timeout=10
                )
            except requests.RequestException as e:
                raise SpotifyAPIError(f"Request to {url} failed: {e}")

            if response.status_code == 401 and attempt == 0:
                # Token revoked or expired early
                self._token = None
                continue
            if response.status_code == 429 and attempt < 2:
                wait = int(response.headers.get("Retry-After", "1"))
                logger.warning(f"Spotify rate limit, waiting {wait}s...")
                time.sleep(wait)
                continue
            if response.status_code != 200:
                logger.error(f"Spotify error {response.status_code}: {response.text[:200]}")
                raise SpotifyAPIError(f"Spotify API error {response.status_code} for {url}")
            return response.json()

        raise SpotifyAPIError(f"Request to {url} failed after retries")

    def get_playlist(self, playlist_id: str) -> PlaylistRef:
        data = self._get(f"/playlists/{playlist_id}", params={"fields": "id,name,tracks.total,external_urls"})
        try:
            playlist = PlaylistRef(
                id=data["id"],
                name=data["name"],
                total_tracks=int(data["tracks"]["total"]),
                url=data.get("external_urls", {}).get("spotify", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SpotifySchemaError(f"Unexpected playlist response: {e}")
        logger.info(f"Retrieved playlist: \"{playlist.name}\" ({playlist.total_tracks} tracks)")
        return playlist

    def get_playlist_tracks(self, playlist_id: str, max_tracks: int | None = None) -> list[Track]:
        """Return playlist tracks in playlist order, skipping local/unavailable items."""
        tracks: list[Track] = []
        url: str | None = f"/playlists/{playlist_id}/tracks"
        params: dict | None = {"limit": PAGE_LIMIT}

        while url and (max_tracks is None or len(tracks) < max_tracks):
            data = self._get(url, params)
            if "items" not in data:
                raise SpotifySchemaError("Response missing 'items'")

            for item in data["items"]:
                track = self._extract_track(item)
                if track:
                    tracks.append(track)

            url = data.get("next")
            params = None  # next already carries offset/limit
            if url:
                time.sleep(0.1)

        if max_tracks is not None:
            tracks = tracks[:max_tracks]
        logger.info(f"Retrieved {len(tracks)} tracks from Spotify")
        return tracks

    def _extract_track(self, item: dict[str, Any]) -> Track | None:
        track_data = item.get("track") if isinstance(item, dict) else None
        if not track_data or not track_data.get("id"):
            return None
        try:
            artists = tuple(a.get("name", "") for a in track_data.get("artists") or [] if a.get("name"))
            return Track(
                id=track_data["id"],
                name=track_data.get("name", ""),
                artists=artists,
                url=(track_data.get("external_urls") or {}).get("spotify", ""),
            )
        except (AttributeError, TypeError) as e:
            logger.debug(f"Track extraction failed: {e}")
            return None
