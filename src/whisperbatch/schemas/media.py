from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MediaFile:
    path: Path
    relative_directory: Path
    base_name: str

    @property
    def display_name(self) -> str:
        return (self.relative_directory / self.path.name).as_posix()


@dataclass(frozen=True)
class OutputTarget:
    directory: Path
    artifact_path: Path
