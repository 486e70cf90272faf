"""JSON files for search progress and playlist build results, one pair per playlist."""

import json
import logging
import os
import tempfile
from pathlib import Path

from spotify2youtube.core.models import BuildRecord, ProgressRecord, utc_now
from spotify2youtube.core.progress import check_invariants

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A state file exists but cannot be read or is inconsistent."""
    pass


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def _read_json(path: Path) -> dict:
    try:
        return json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        raise StorageError(f"Cannot read {path}: {e}") from e


class ProgressStore:
    def __init__(self, data_dir: Path = Path("data")):
        self._dir = Path(data_dir)

    def progress_path(self, playlist_id: str) -> Path:
        return self._dir / f"{playlist_id}-search-progress.json"

    def result_path(self, playlist_id: str) -> Path:
        return self._dir / f"{playlist_id}-playlist-result.json"

    def _parse_progress(self, data: dict, path: Path) -> ProgressRecord:
        try:
            record = ProgressRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed progress in {path}: {e}") from e
        problems = check_invariants(record)
        if problems:
            raise StorageError(f"Inconsistent progress in {path}: {'; '.join(problems)}")
        return record

    def load_progress(self, playlist_id: str) -> ProgressRecord | None:
        path = self.progress_path(playlist_id)
        if not path.exists():
            return None
        logger.info(f"Loading progress from {path}")
        return self._parse_progress(_read_json(path), path)

    def save_progress(self, record: ProgressRecord) -> None:
        path = self.progress_path(record.playlist.id)
        _atomic_write(path, record.to_dict())
        logger.debug(f"Progress saved to {path}")

    def load_build(self, playlist_id: str) -> tuple[ProgressRecord, BuildRecord] | None:
        path = self.result_path(playlist_id)
        if not path.exists():
            return None
        logger.info(f"Loading playlist result from {path}")
        data = _read_json(path)

        # Some files carry the build section at the top level
        section = data.get("playlist_creation")
        if section is None and "tracks_added" in data:
            section = data
        if section is None:
            raise StorageError(f"No playlist_creation section in {path}")

        progress = self._parse_progress(data, path)
        try:
            build = BuildRecord.from_dict(section)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed build result in {path}: {e}") from e
        return progress, build

    def save_build(self, progress: ProgressRecord, build: BuildRecord) -> None:
        path = self.result_path(progress.playlist.id)
        data = progress.to_dict()
        data["playlist_creation"] = build.to_dict()
        data["completion_date"] = utc_now()
        _atomic_write(path, data)
        logger.info(f"Playlist result saved to {path}")
