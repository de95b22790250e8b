from __future__ import annotations

import io
from datetime import datetime
from pathlib import Path

from rich.console import Console

from whisperbatch.core.session_log import SessionLogger, format_elapsed
from whisperbatch.infra.storage import session_log_path
from whisperbatch.schemas.media import MediaFile


def _media() -> MediaFile:
    return MediaFile(
        path=Path("/data/input/talks/intro.mp4"),
        relative_directory=Path("talks"),
        base_name="intro",
    )


def test_session_log_path_embeds_timestamp(tmp_path: Path) -> None:
    path = session_log_path(tmp_path, datetime(2024, 3, 9, 14, 5, 7))
    assert path == tmp_path / "transcription_20240309-140507.log"


def test_format_elapsed_splits_minutes_and_seconds() -> None:
    assert format_elapsed(0) == "0m 0s"
    assert format_elapsed(125.9) == "2m 5s"


def test_engine_output_is_teed_without_markup(tmp_path: Path) -> None:
    buffer = io.StringIO()
    log_path = tmp_path / "session.log"

    with SessionLogger(log_path, console=Console(file=buffer, width=120)) as logger:
        logger.engine_output("[00:00.000 --> 00:02.000] [bold]hello[/bold]")

    expected = "[00:00.000 --> 00:02.000] [bold]hello[/bold]"
    assert expected in buffer.getvalue()
    assert log_path.read_text(encoding="utf-8").splitlines() == [expected]


def test_completion_records_go_to_log(tmp_path: Path) -> None:
    buffer = io.StringIO()
    log_path = tmp_path / "session.log"

    with SessionLogger(log_path, console=Console(file=buffer, width=120)) as logger:
        logger.processing(1, 2, _media())
        logger.completed(1, 2, _media(), 42.7)
        logger.failed(2, 2, _media(), 3.2, 1)

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "[1/2] talks/intro.mp4: 42s",
        "[2/2] talks/intro.mp4: FAILED (exit 1) after 3s",
    ]
    console_text = buffer.getvalue()
    assert "Processing: talks/intro.mp4" in console_text
    assert "Completed in 42s" in console_text


def test_log_file_is_appended_not_overwritten(tmp_path: Path) -> None:
    log_path = tmp_path / "session.log"
    log_path.write_text("previous run\n", encoding="utf-8")

    with SessionLogger(log_path, console=Console(file=io.StringIO())) as logger:
        logger.engine_output("next run")

    assert log_path.read_text(encoding="utf-8") == "previous run\nnext run\n"
