from __future__ import annotations

from pathlib import Path

import typer

from whisperbatch.core.pipeline import BatchRequest, run_batch
from whisperbatch.errors import ConfigError, PreconditionError
from whisperbatch.infra.config import (
    CONTINUE_ON_ERROR,
    FAIL_FAST,
    build_run_config,
    normalize_device,
)
from whisperbatch.infra.device import choose_engine_device, probe_device
from whisperbatch.infra.doctor import collect_doctor_report, render_doctor_report

app = typer.Typer(
    name="whisperbatch",
    add_completion=False,
    help="Batch transcription of media folders with whisper/whisperx.",
)


@app.command("transcribe")
def transcribe_command(
    input_folder: Path | None = typer.Argument(
        None, help="Folder to scan recursively for media files."
    ),
    model_size: str = typer.Argument(
        "small", help="tiny|base|small|medium|large-v3"
    ),
    language: str = typer.Argument(
        "multi", help="en|es|multi (unknown values mean multi)."
    ),
    extension_filter: str = typer.Argument(
        "", help="Only process this extension (e.g. mp4). Empty means all supported."
    ),
    diarize: str = typer.Argument(
        "false",
        help=(
            "true|false. Diarization requires whisperx and HF_TOKEN; the token is "
            "passed on the whisperx command line, so other local users can see it "
            "in the process list."
        ),
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Output folder (default: ./output/transcripts_<model>_<language>).",
    ),
    device: str = typer.Option("auto", "--device", help="auto|cpu|cuda"),
    continue_on_error: bool = typer.Option(
        False,
        "--continue-on-error",
        help="Keep going after a failed file instead of aborting the batch.",
    ),
) -> None:
    """Transcribe every media file under a folder, skipping finished ones."""
    try:
        config = build_run_config(
            input_path=input_folder,
            model_size=model_size,
            language=language,
            extension_filter=extension_filter,
            diarize=diarize,
            output_dir=output_dir,
            failure_policy=CONTINUE_ON_ERROR if continue_on_error else FAIL_FAST,
            device=device,
        )
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    selected_device = choose_engine_device(config.requested_device, probe_device())
    try:
        result = run_batch(BatchRequest(config=config, device=selected_device))
    except PreconditionError as exc:
        typer.echo(f"[failed] {exc}", err=True)
        raise typer.Exit(code=2) from exc

    typer.echo(
        f"[{result.status}] {result.message}\n"
        f"- files discovered: {result.total}\n"
        f"- processed: {result.processed}\n"
        f"- skipped: {result.skipped}\n"
        f"- failed: {result.failed}\n"
        f"- output: {config.output_path}\n"
        f"- run log: {result.log_path}"
    )
    if result.status == "failed":
        raise typer.Exit(code=1)


@app.command("doctor")
def doctor_command(
    device: str = typer.Option("auto", "--device", help="auto|cpu|cuda"),
) -> None:
    """Check runtime readiness (whisper/ffmpeg/whisperx/token/device)."""
    try:
        device = normalize_device(device)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--device") from exc
    report = collect_doctor_report(device)
    typer.echo(render_doctor_report(report))
    if not report.ok:
        raise typer.Exit(code=1)


def run() -> None:
    """Console-script entrypoint."""
    app()
