"""Configuration from environment variables."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "data"
DEFAULT_BATCH_SIZE = 50
PRIVACY_STATUSES = ("private", "unlisted", "public")

SEARCH_VARS = ["SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "YOUTUBE_API_KEY"]
GOOGLE_VARS = ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"]
PLAYLIST_WRITE_VARS = GOOGLE_VARS + ["YOUTUBE_REFRESH_TOKEN"]


class ConfigError(Exception):
    pass


@dataclass
class Config:
    data_dir: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    youtube_api_key: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    youtube_refresh_token: str = ""
    playlist_id: str = ""
    playlist_name: str = ""
    playlist_privacy: str = "private"


def data_dir_from_env() -> Path:
    return Path(os.environ.get("DATA_DIR", DEFAULT_DATA_DIR))


def _client_secrets(data_dir: Path) -> tuple[str, str]:
    """Fall back to a client_secrets.json downloaded from the Google console."""
    secrets_file = data_dir / "client_secrets.json"
    if not secrets_file.exists():
        return "", ""
    try:
        secrets = json.loads(secrets_file.read_text())
        creds = secrets.get("installed") or secrets.get("web") or {}
        return creds.get("client_id", ""), creds.get("client_secret", "")
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to parse {secrets_file}: {e}")
        return "", ""


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def load_config(required: list[str] | None = None) -> Config:
    data_dir = data_dir_from_env()
    env = {key: os.environ.get(key, "") for key in SEARCH_VARS + PLAYLIST_WRITE_VARS}

    if not (env["GOOGLE_CLIENT_ID"] and env["GOOGLE_CLIENT_SECRET"]):
        client_id, client_secret = _client_secrets(data_dir)
        env["GOOGLE_CLIENT_ID"] = env["GOOGLE_CLIENT_ID"] or client_id
        env["GOOGLE_CLIENT_SECRET"] = env["GOOGLE_CLIENT_SECRET"] or client_secret

    missing = [var for var in required or [] if not env.get(var)]
    if missing:
        raise ConfigError(f"Missing config: {', '.join(missing)}")

    privacy = os.environ.get("YOUTUBE_PLAYLIST_PRIVACY", "private").lower()
    if privacy not in PRIVACY_STATUSES:
        raise ConfigError(f"YOUTUBE_PLAYLIST_PRIVACY must be one of {', '.join(PRIVACY_STATUSES)}")

    return Config(
        data_dir=data_dir,
        batch_size=_positive_int("SEARCH_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        spotify_client_id=env["SPOTIFY_CLIENT_ID"],
        spotify_client_secret=env["SPOTIFY_CLIENT_SECRET"],
        youtube_api_key=env["YOUTUBE_API_KEY"],
        google_client_id=env["GOOGLE_CLIENT_ID"],
        google_client_secret=env["GOOGLE_CLIENT_SECRET"],
        youtube_refresh_token=env["YOUTUBE_REFRESH_TOKEN"],
        playlist_id=os.environ.get("SPOTIFY_PLAYLIST_ID", ""),
        playlist_name=os.environ.get("YOUTUBE_PLAYLIST_NAME", ""),
        playlist_privacy=privacy,
    )
