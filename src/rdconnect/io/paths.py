"""Local state file path management."""

from pathlib import Path
from typing import Optional

from ..config.settings import settings


def get_state_path(filename: str, state_dir: Optional[Path] = None) -> Path:
    directory = state_dir or settings.state_dir
    directory.mkdir(parents=True, exist_ok=True)
    return directory / filename
