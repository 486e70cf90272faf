#!/usr/bin/env python3
"""Spotify to YouTube playlist converter - command line entry point.

Phase 1 (`search`) matches a batch of tracks per run so a large playlist can be
spread over several days of API quota. Phase 2 (`create`) builds the YouTube
playlist from the saved matches, and `retry` re-attempts failed additions.
"""

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path

from spotify2youtube.clients.spotify import SpotifyClient, SpotifySchemaError, extract_playlist_id
from spotify2youtube.clients.youtube import YouTubeClient, build_credentials, run_authorization_flow
from spotify2youtube.config import (
    GOOGLE_VARS, PLAYLIST_WRITE_VARS, SEARCH_VARS, Config, ConfigError,
    data_dir_from_env, load_config,
)
from spotify2youtube.core import progress, summary
from spotify2youtube.core.build import PlaylistBuilder
from spotify2youtube.core.models import (
    CredentialError, EmptyPlaylistError, MissingProgressError, NoMatchesError, ServiceError,
)
from spotify2youtube.core.search import TrackSearcher
from spotify2youtube.core.session import SearchSession
from spotify2youtube.core.storage import ProgressStore, StorageError

LOG_FILE_NAME = "spotify2youtube.log"

logger = logging.getLogger(__name__)


def setup_logging(data_dir: Path) -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    data_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler(data_dir / LOG_FILE_NAME, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )


def _playlist_id(args: argparse.Namespace, config: Config) -> str:
    value = args.playlist or config.playlist_id
    if not value:
        raise ConfigError("No Spotify playlist given (argument or SPOTIFY_PLAYLIST_ID)")
    try:
        return extract_playlist_id(value)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _playlist_youtube(config: Config) -> YouTubeClient:
    credentials = build_credentials(
        config.youtube_refresh_token, config.google_client_id, config.google_client_secret
    )
    youtube = YouTubeClient(credentials=credentials, privacy=config.playlist_privacy)
    youtube.check_connection()
    return youtube


def cmd_search(args: argparse.Namespace) -> int:
    config = load_config(SEARCH_VARS)
    playlist_id = _playlist_id(args, config)
    batch_size = args.batch_size or config.batch_size
    store = ProgressStore(config.data_dir)

    spotify = SpotifyClient(config.spotify_client_id, config.spotify_client_secret)
    youtube = YouTubeClient(api_key=config.youtube_api_key)
    spotify.check_connection()
    youtube.check_connection()

    record = progress.load(store, playlist_id, batch_size)

    if record is None:
        playlist = spotify.get_playlist(playlist_id)
        tracks = spotify.get_playlist_tracks(playlist_id, playlist.total_tracks)
        if not tracks:
            raise EmptyPlaylistError(f"No tracks found in playlist {playlist_id}")
        if len(tracks) < playlist.total_tracks:
            logger.warning(f"{playlist.total_tracks - len(tracks)} tracks are local or unavailable, skipping")
        record = progress.new_progress(
            dataclasses.replace(playlist, total_tracks=len(tracks)), batch_size
        )
        logger.info(f"Starting new search for \"{playlist.name}\"")
    else:
        tracks = spotify.get_playlist_tracks(playlist_id, record.playlist.total_tracks)

    if progress.is_complete(record):
        logger.info("All tracks have been processed")
        summary.log_progress(record)
        return 0

    session = SearchSession(TrackSearcher(youtube), store)
    try:
        result = session.run(record, tracks, batch_size)
    finally:
        summary.log_progress(record)

    logger.info(f"Session: {result.processed} processed, {result.found} found, "
                f"{result.not_found} not found "
                f"in {result.duration:.1f}s")
    if result.quota_exhausted:
        logger.warning("Search quota exhausted, run again after the daily reset")
        return 1
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    config = load_config(PLAYLIST_WRITE_VARS)
    playlist_id = _playlist_id(args, config)
    store = ProgressStore(config.data_dir)

    record = store.load_progress(playlist_id)
    if record is None or not record.results:
        raise MissingProgressError(
            f"No search results in {store.progress_path(playlist_id)}, run 'search' first"
        )
    if store.result_path(playlist_id).exists() and not args.force:
        raise ConfigError(
            f"{store.result_path(playlist_id)} already exists, use 'retry' or pass --force"
        )

    summary.log_progress(record)
    if not progress.is_complete(record):
        logger.warning(f"Search is not complete, {progress.remaining(record)} tracks not searched; "
                       f"proceeding with {record.cursor.processed_count} tracks")

    builder = PlaylistBuilder(_playlist_youtube(config))
    build = builder.build(record, title=args.name or config.playlist_name or None)
    store.save_build(record, build)
    summary.log_build(build)
    return 0


def cmd_retry(args: argparse.Namespace) -> int:
    config = load_config(PLAYLIST_WRITE_VARS)
    playlist_id = _playlist_id(args, config)
    store = ProgressStore(config.data_dir)

    loaded = store.load_build(playlist_id)
    if loaded is None:
        raise MissingProgressError(
            f"No playlist result in {store.result_path(playlist_id)}, run 'create' first"
        )
    record, build = loaded
    if not build.failed:
        logger.info("No failed tracks to retry")
        summary.log_build(build)
        return 0

    builder = PlaylistBuilder(_playlist_youtube(config))
    build = builder.retry(build)
    store.save_build(record, build)
    summary.log_build(build)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    config = load_config()
    playlist_id = _playlist_id(args, config)
    store = ProgressStore(config.data_dir)

    loaded = store.load_build(playlist_id)
    if loaded is not None:
        record, build = loaded
        summary.log_progress(record)
        summary.log_build(build)
        return 0

    record = store.load_progress(playlist_id)
    if record is None:
        raise MissingProgressError(f"Nothing saved for playlist {playlist_id}")
    summary.log_progress(record)
    return 0


def cmd_authorize(args: argparse.Namespace) -> int:
    config = load_config(GOOGLE_VARS)
    token = run_authorization_flow(config.google_client_id, config.google_client_secret)
    logger.info("Authorization complete, store this value as YOUTUBE_REFRESH_TOKEN")
    print(f"YOUTUBE_REFRESH_TOKEN={token}")
    return 0


def _batch_size(value: str) -> int:
    size = int(value)
    if size <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {size}")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spotify2youtube",
        description="Convert a Spotify playlist into a YouTube playlist",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="search YouTube for the next batch of tracks")
    search.add_argument("playlist", nargs="?", help="Spotify playlist id, URI or URL")
    search.add_argument("--batch-size", type=_batch_size, help="tracks to search this session")
    search.set_defaults(func=cmd_search)

    create = commands.add_parser("create", help="create the YouTube playlist from search results")
    create.add_argument("playlist", nargs="?", help="Spotify playlist id, URI or URL")
    create.add_argument("--name", help="title of the new YouTube playlist")
    create.add_argument("--force", action="store_true", help="create again even if a result exists")
    create.set_defaults(func=cmd_create)

    retry = commands.add_parser("retry", help="retry videos that failed to be added")
    retry.add_argument("playlist", nargs="?", help="Spotify playlist id, URI or URL")
    retry.set_defaults(func=cmd_retry)

    status = commands.add_parser("status", help="show saved progress")
    status.add_argument("playlist", nargs="?", help="Spotify playlist id, URI or URL")
    status.set_defaults(func=cmd_status)

    authorize = commands.add_parser("authorize", help="obtain a YouTube refresh token")
    authorize.set_defaults(func=cmd_authorize)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(data_dir_from_env())

    try:
        return args.func(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except (MissingProgressError, NoMatchesError, EmptyPlaylistError) as e:
        logger.error(str(e))
        return 1
    except StorageError as e:
        logger.error(f"State file error: {e}")
        return 1
    except CredentialError as e:
        logger.error(f"Authentication failed: {e}")
        return 1
    except (SpotifySchemaError, ServiceError) as e:
        logger.error(f"API error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
