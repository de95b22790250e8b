from __future__ import annotations

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Protocol

from whisperbatch.errors import InvocationError, PreconditionError
from whisperbatch.infra.config import HF_TOKEN_ENV, RunConfig
from whisperbatch.infra.device import DeviceProbe
from whisperbatch.schemas.media import MediaFile

WHISPER_EXECUTABLE = "whisper"
WHISPERX_EXECUTABLE = "whisperx"

OutputSink = Callable[[str], None]


class TranscriptionEngine(Protocol):
    name: str
    executable: str

    def build_command(self, media: MediaFile, output_dir: Path) -> list[str]:
        ...

    def run(self, media: MediaFile, output_dir: Path, on_output: OutputSink) -> int:
        ...


def _language_args(language: str | None) -> list[str]:
    if language is None:
        return []
    return ["--language", language]


class SubprocessEngine(ABC):
    """Runs one engine process per file, streaming merged stdout/stderr."""

    name = "subprocess"
    executable = ""

    @abstractmethod
    def build_command(self, media: MediaFile, output_dir: Path) -> list[str]:
        ...

    def run(self, media: MediaFile, output_dir: Path, on_output: OutputSink) -> int:
        command = self.build_command(media, output_dir)
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise InvocationError(media.path, None, str(exc)) from exc
        with proc:
            if proc.stdout is None:
                raise InvocationError(media.path, None, "engine output pipe unavailable")
            try:
                for line in proc.stdout:
                    on_output(line.rstrip("\r\n"))
            except KeyboardInterrupt:
                proc.terminate()
                proc.wait()
                raise
            return proc.wait()


class WhisperEngine(SubprocessEngine):
    name = "whisper"
    executable = WHISPER_EXECUTABLE

    def __init__(self, model_id: str, device: str, language: str | None) -> None:
        self.model_id = model_id
        self.device = device
        self.language = language

    def build_command(self, media: MediaFile, output_dir: Path) -> list[str]:
        return [
            self.executable,
            str(media.path),
            "--model",
            self.model_id,
            "--device",
            self.device,
            "--output_dir",
            str(output_dir),
            "--output_format",
            "all",
            *_language_args(self.language),
            "--verbose",
            "False",
        ]


class WhisperXEngine(SubprocessEngine):
    name = "whisperx"
    executable = WHISPERX_EXECUTABLE

    def __init__(
        self,
        model_id: str,
        device: str,
        language: str | None,
        hf_token: str,
    ) -> None:
        self.model_id = model_id
        self.device = device
        self.language = language
        self.hf_token = hf_token

    def build_command(self, media: MediaFile, output_dir: Path) -> list[str]:
        command = [
            self.executable,
            str(media.path),
            "--model",
            self.model_id,
            "--device",
            self.device,
            "--output_dir",
            str(output_dir),
            "--output_format",
            "all",
            "--diarize",
            "--hf_token",
            self.hf_token,
            *_language_args(self.language),
        ]
        # whisperx defaults to float16, which CPU backends reject.
        if self.device == "cpu":
            command += ["--compute_type", "int8"]
        return command


def read_hf_token() -> str:
    return os.getenv(HF_TOKEN_ENV, "").strip()


def check_preconditions(config: RunConfig) -> None:
    """Fail before touching any media file if the engine cannot run."""
    executable = WHISPERX_EXECUTABLE if config.diarize else WHISPER_EXECUTABLE
    if shutil.which(executable) is None:
        raise PreconditionError(
            f"'{executable}' not found in PATH. Install it before running"
            + (" with diarization." if config.diarize else ".")
        )
    if config.diarize and not read_hf_token():
        raise PreconditionError(
            f"{HF_TOKEN_ENV} environment variable is required for diarization."
        )


def select_engine(config: RunConfig, device: DeviceProbe) -> TranscriptionEngine:
    if config.diarize:
        # Diarization models have no language-suffixed variants.
        return WhisperXEngine(
            model_id=config.model_size,
            device=device.engine_device,
            language=config.model.language,
            hf_token=read_hf_token(),
        )
    return WhisperEngine(
        model_id=config.model.model_id,
        device=device.engine_device,
        language=config.model.language,
    )
