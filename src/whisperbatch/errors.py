from __future__ import annotations

from pathlib import Path


class WhisperBatchError(Exception):
    """Base class for errors that stop a batch run."""


class ConfigError(WhisperBatchError):
    """Missing or invalid command-line argument."""


class PreconditionError(WhisperBatchError):
    """Engine tooling or credentials unavailable before processing starts."""


class InvocationError(WhisperBatchError):
    def __init__(self, path: Path, exit_code: int | None, detail: str = "") -> None:
        self.path = path
        self.exit_code = exit_code
        message = f"Transcription failed for {path}"
        if exit_code is not None:
            message += f" (exit {exit_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
