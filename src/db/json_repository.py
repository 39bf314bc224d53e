"""Implementation of GroupStateRepository using one JSON file per group"""

import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from src.core.config import get_settings
from src.core.exceptions import RepositoryError
from src.core.logger import get_logger
from src.core.models import GroupStateModel

logger = get_logger(__name__)


class JSONFileGroupStateRepository:
    """
    Documents live in <directory>/<group_id>.json, the directory defaults to the configured storage directory.

    Saving writes <group_id>.json_new first and then renames it over the old file, so a crash halfway through a write
    never leaves a truncated document behind.
    """

    def __init__(self, directory: Optional[Path] = None) -> None:
        self.directory = Path(directory) if directory is not None else get_settings().storage_dir

    def load(self, group_id: str) -> Optional[GroupStateModel]:
        path = self._path(group_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return None

        try:
            return GroupStateModel.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Failed to deserialize %s: %s", path, exc)
            return None

    def save(self, group_id: str, state: GroupStateModel) -> None:
        path = self._path(group_id)
        new_path = path.with_name(f"{path.name}_new")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            new_path.write_text(state.model_dump_json(), encoding="utf-8")
            os.replace(new_path, path)
        except OSError as exc:
            raise RepositoryError(f"Failed to save state of group {group_id}") from exc

    def _path(self, group_id: str) -> Path:
        if not group_id or Path(group_id).name != group_id or group_id.startswith("."):
            raise RepositoryError(f"Invalid group id: {group_id!r}")
        return self.directory / f"{group_id}.json"
