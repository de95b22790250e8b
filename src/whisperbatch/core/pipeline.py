from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Callable

from rich.console import Console

from whisperbatch.core.discovery import build_output_target, enumerate_media, is_complete
from whisperbatch.core.engine import (
    OutputSink,
    TranscriptionEngine,
    check_preconditions,
    select_engine,
)
from whisperbatch.core.session_log import SessionLogger
from whisperbatch.errors import InvocationError
from whisperbatch.infra.config import RunConfig
from whisperbatch.infra.device import DeviceProbe
from whisperbatch.infra.storage import ensure_directory, session_log_path
from whisperbatch.schemas.media import MediaFile, OutputTarget

EngineFactory = Callable[[RunConfig, DeviceProbe], TranscriptionEngine]


@dataclass(frozen=True)
class BatchRequest:
    config: RunConfig
    device: DeviceProbe


@dataclass(frozen=True)
class BatchProgress:
    processed: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass(frozen=True)
class BatchResult:
    total: int
    processed: int
    skipped: int
    failed: int
    elapsed_seconds: float
    log_path: Path
    status: str
    message: str


def _partition(
    files: list[MediaFile], output_path: Path
) -> tuple[list[tuple[MediaFile, OutputTarget]], BatchProgress]:
    pending: list[tuple[MediaFile, OutputTarget]] = []
    progress = BatchProgress()
    for media in files:
        target = build_output_target(media, output_path)
        if is_complete(target):
            progress = replace(progress, skipped=progress.skipped + 1)
        else:
            pending.append((media, target))
    return pending, progress


def _invoke(
    engine: TranscriptionEngine,
    media: MediaFile,
    target: OutputTarget,
    on_output: OutputSink,
) -> None:
    ensure_directory(target.directory)
    exit_code = engine.run(media, target.directory, on_output)
    if exit_code != 0:
        raise InvocationError(media.path, exit_code)


def run_batch(
    request: BatchRequest,
    *,
    engine_factory: EngineFactory = select_engine,
    preflight: Callable[[RunConfig], None] = check_preconditions,
    console: Console | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> BatchResult:
    """Transcribe every pending file under the input folder, one at a time.

    Raises PreconditionError before anything is written when the engine
    cannot run. Per-file failures are reported through the result; under
    the fail-fast policy the first one stops the batch.
    """
    config = request.config
    preflight(config)
    engine = engine_factory(config, request.device)

    ensure_directory(config.output_path)
    started_at = datetime.now()
    log_path = session_log_path(config.output_path, started_at)
    batch_start = clock()

    with SessionLogger(log_path, console=console) as logger:
        logger.banner(config, request.device, started_at)
        files = enumerate_media(config.input_path, config.extensions)
        pending, progress = _partition(files, config.output_path)
        logger.discovered(len(files), progress.skipped)

        total = len(pending)
        aborted = False
        try:
            for index, (media, target) in enumerate(pending, start=1):
                # Another input with the same stem may have written this transcript.
                if is_complete(target):
                    logger.skipped(index, total, media, target.artifact_path)
                    progress = replace(progress, skipped=progress.skipped + 1)
                    continue
                logger.processing(index, total, media)
                file_start = clock()
                try:
                    _invoke(engine, media, target, logger.engine_output)
                except InvocationError as exc:
                    logger.failed(index, total, media, clock() - file_start, exc.exit_code)
                    progress = replace(progress, failed=progress.failed + 1)
                    if config.fail_fast:
                        aborted = True
                        break
                    continue
                logger.completed(index, total, media, clock() - file_start)
                progress = replace(progress, processed=progress.processed + 1)
        except KeyboardInterrupt:
            logger.summary(
                processed=progress.processed,
                skipped=progress.skipped,
                failed=progress.failed,
                elapsed_seconds=clock() - batch_start,
                finished_at=datetime.now(),
                aborted=True,
            )
            raise

        elapsed = clock() - batch_start
        logger.summary(
            processed=progress.processed,
            skipped=progress.skipped,
            failed=progress.failed,
            elapsed_seconds=elapsed,
            finished_at=datetime.now(),
            aborted=aborted,
        )

    if progress.failed:
        status = "failed"
        message = (
            f"Batch aborted after {progress.failed} failure(s)."
            if aborted
            else f"Batch finished with {progress.failed} failure(s)."
        )
    elif not files:
        status = "done"
        message = "No media files found."
    else:
        status = "done"
        message = "Batch complete."
    return BatchResult(
        total=len(files),
        processed=progress.processed,
        skipped=progress.skipped,
        failed=progress.failed,
        elapsed_seconds=elapsed,
        log_path=log_path,
        status=status,
        message=message,
    )
