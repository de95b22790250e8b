from __future__ import annotations

from pathlib import Path
from typing import Iterable

from whisperbatch.infra.config import PRIMARY_ARTIFACT_SUFFIX
from whisperbatch.schemas.media import MediaFile, OutputTarget


def _matches(path: Path, extensions: frozenset[str]) -> bool:
    return path.suffix.lstrip(".").lower() in extensions


def enumerate_media(input_path: Path, extensions: Iterable[str]) -> list[MediaFile]:
    """Recursively collect media files, ordered by full path."""
    wanted = frozenset(ext.lstrip(".").lower() for ext in extensions)
    files: list[MediaFile] = []
    for path in sorted(input_path.rglob("*")):
        if not path.is_file() or not _matches(path, wanted):
            continue
        files.append(
            MediaFile(
                path=path.resolve(),
                relative_directory=path.parent.relative_to(input_path),
                base_name=path.stem,
            )
        )
    return files


def build_output_target(media: MediaFile, output_path: Path) -> OutputTarget:
    directory = output_path / media.relative_directory
    return OutputTarget(
        directory=directory,
        artifact_path=directory / f"{media.base_name}{PRIMARY_ARTIFACT_SUFFIX}",
    )


def is_complete(target: OutputTarget) -> bool:
    return target.artifact_path.is_file()
