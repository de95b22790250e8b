from __future__ import annotations

from datetime import datetime
from pathlib import Path

LOG_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def session_log_path(output_dir: Path, started_at: datetime) -> Path:
    return output_dir / f"transcription_{started_at.strftime(LOG_TIMESTAMP_FORMAT)}.log"
