from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

from whisperbatch.infra.config import RunConfig
from whisperbatch.infra.device import DeviceProbe
from whisperbatch.schemas.media import MediaFile

SEPARATOR = "-" * 40


def printable(text: str) -> str:
    """Escape undecodable filename bytes (surrogates) so they can be written."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def format_elapsed(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60}m {total % 60}s"


class SessionLogger:
    """Writes progress to the terminal and appends it to the session log file.

    Engine output is teed line by line to both destinations as it arrives.
    Per-file completion records go to the log file only; the terminal gets
    the shorter "Completed in" form.
    """

    def __init__(self, log_path: Path, console: Console | None = None) -> None:
        self.log_path = log_path
        self.console = console or Console(highlight=False)
        self._handle: TextIO = log_path.open("a", encoding="utf-8", errors="backslashreplace")
        self._file = Console(
            file=self._handle,
            color_system=None,
            force_terminal=False,
            highlight=False,
            soft_wrap=True,
            width=200,
        )

    def __enter__(self) -> "SessionLogger":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    def _log(self, text: str) -> None:
        self._file.out(printable(text), highlight=False)
        self._handle.flush()

    def banner(self, config: RunConfig, device: DeviceProbe, started_at: datetime) -> None:
        diarization = "enabled" if config.diarize else "disabled"
        model_id = config.model_size if config.diarize else config.model.model_id
        rows = [
            ("Input folder", str(config.input_path)),
            ("Model", model_id),
            ("Language", config.model.description),
            ("Device", f"{device.engine_device} ({device.name})"),
            ("Diarization", diarization),
            ("Output", str(config.output_path)),
        ]
        self.console.print(Rule("Whisper Batch Transcription", style="cyan"))
        for label, value in rows:
            self.console.print(Text.assemble((f"{label}: ", "bold"), printable(value)))
        self.console.print(Rule(style="cyan"))

        self._log(f"Transcription started: {started_at.isoformat(sep=' ', timespec='seconds')}")
        for label, value in rows[1:5]:
            self._log(f"{label}: {value}")
        self._log(SEPARATOR)

    def discovered(self, total: int, skipped: int) -> None:
        pending = total - skipped
        self.console.print(
            f"Found {total} media files: {skipped} already transcribed, {pending} to process"
        )
        self.console.print()

    def processing(self, index: int, total: int, media: MediaFile) -> None:
        self.console.print(
            Text.assemble(
                (f"[{index}/{total}]", "cyan"),
                " Processing: ",
                printable(media.display_name),
            )
        )

    def engine_output(self, line: str) -> None:
        self.console.out(printable(line), highlight=False)
        self._log(line)

    def skipped(self, index: int, total: int, media: MediaFile, artifact: Path) -> None:
        self.console.print(
            Text.assemble(
                (f"[{index}/{total}]", "cyan"),
                " Skipping: ",
                printable(media.display_name),
                f" ({printable(artifact.name)} already exists)",
            )
        )
        self._log(f"[{index}/{total}] {media.display_name}: skipped, {artifact.name} already exists")

    def completed(self, index: int, total: int, media: MediaFile, seconds: float) -> None:
        self.console.print(f"  [green]Completed in {int(seconds)}s[/green]")
        self._log(f"[{index}/{total}] {media.display_name}: {int(seconds)}s")

    def failed(
        self,
        index: int,
        total: int,
        media: MediaFile,
        seconds: float,
        exit_code: int | None,
    ) -> None:
        status = f"exit {exit_code}" if exit_code is not None else "not started"
        self.console.print(f"  [red]Failed ({status}) after {int(seconds)}s[/red]")
        self._log(f"[{index}/{total}] {media.display_name}: FAILED ({status}) after {int(seconds)}s")

    def summary(
        self,
        *,
        processed: int,
        skipped: int,
        failed: int,
        elapsed_seconds: float,
        finished_at: datetime,
        aborted: bool,
    ) -> None:
        elapsed = format_elapsed(elapsed_seconds)
        headline = "Aborted" if aborted else "Completed"
        style = "red" if failed else "green"
        self.console.print()
        self.console.print(Rule(style="cyan"))
        self.console.print(
            f"[{style}]{headline}:[/{style}] processed={processed} "
            f"skipped={skipped} failed={failed}"
        )
        self.console.print(f"Total time: {elapsed}")
        self.console.print(Text.assemble("Log: ", printable(str(self.log_path))))
        self.console.print(Rule(style="cyan"))

        self._log(SEPARATOR)
        self._log(
            f"Transcription {headline.lower()}: {finished_at.isoformat(sep=' ', timespec='seconds')}"
        )
        self._log(f"Processed: {processed} Skipped: {skipped} Failed: {failed}")
        self._log(f"Total time: {elapsed}")
