from __future__ import annotations

from pathlib import Path

import pytest

from whisperbatch.errors import ConfigError
from whisperbatch.infra.config import (
    FAIL_FAST,
    SUPPORTED_EXTENSIONS,
    build_run_config,
    default_output_path,
    normalize_extension_filter,
    normalize_language_mode,
    parse_diarize_flag,
    resolve_model,
)


@pytest.mark.parametrize(
    ("model_size", "language", "model_id", "flag", "description"),
    [
        ("small", "en", "small.en", "en", "English-only"),
        ("tiny", "en", "tiny.en", "en", "English-only"),
        ("large-v3", "en", "large-v3", "en", "English-only"),
        ("medium", "es", "medium", "es", "Spanish-only"),
        ("large-v3", "es", "large-v3", "es", "Spanish-only"),
        ("base", "multi", "base", None, "Multilingual (auto-detect)"),
        ("base", "fr", "base", None, "Multilingual (auto-detect)"),
    ],
)
def test_resolve_model_maps_language_modes(
    model_size: str, language: str, model_id: str, flag: str | None, description: str
) -> None:
    resolved = resolve_model(model_size, language)
    assert resolved.model_id == model_id
    assert resolved.language == flag
    assert resolved.description == description


def test_unknown_language_mode_falls_back_to_multi() -> None:
    assert normalize_language_mode("klingon") == "multi"
    assert normalize_language_mode(None) == "multi"
    assert normalize_language_mode(" EN ") == "en"


def test_build_run_config_applies_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    input_dir = tmp_path / "media"
    input_dir.mkdir()

    config = build_run_config(input_path=input_dir)

    assert config.model_size == "small"
    assert config.language_mode == "multi"
    assert config.extension_filter is None
    assert config.extensions == SUPPORTED_EXTENSIONS
    assert config.diarize is False
    assert config.failure_policy == FAIL_FAST
    assert config.model.model_id == "small"
    assert config.output_path == (tmp_path / "output" / "transcripts_small_multi").resolve()


def test_output_path_is_reproducible_and_encodes_diarization(tmp_path: Path) -> None:
    first = default_output_path("medium", "en", True, root=tmp_path)
    second = default_output_path("medium", "en", True, root=tmp_path)
    assert first == second
    assert first.name == "transcripts_medium_en_diarized"
    assert default_output_path("medium", "en", False, root=tmp_path).name == (
        "transcripts_medium_en"
    )


def test_custom_output_dir_overrides_default(tmp_path: Path) -> None:
    input_dir = tmp_path / "media"
    input_dir.mkdir()
    config = build_run_config(
        input_path=input_dir,
        language="en",
        extension_filter=".MP4",
        diarize="true",
        output_dir=tmp_path / "custom",
    )
    assert config.output_path == (tmp_path / "custom").resolve()
    assert config.extensions == ("mp4",)
    assert config.diarize is True


def test_build_run_config_rejects_missing_input(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Input directory not found"):
        build_run_config(input_path=tmp_path / "nope")
    with pytest.raises(ConfigError, match="required"):
        build_run_config(input_path=None)


def test_build_run_config_rejects_file_as_input(tmp_path: Path) -> None:
    media = tmp_path / "clip.mp4"
    media.write_bytes(b"x")
    with pytest.raises(ConfigError):
        build_run_config(input_path=media)


def test_build_run_config_rejects_unknown_model_size(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Unsupported model size"):
        build_run_config(input_path=tmp_path, model_size="huge")


def test_extension_filter_empty_means_no_filter() -> None:
    assert normalize_extension_filter("") is None
    assert normalize_extension_filter(None) is None
    assert normalize_extension_filter(".WebM") == "webm"


def test_diarize_flag_parsing() -> None:
    assert parse_diarize_flag("true") is True
    assert parse_diarize_flag("False") is False
    assert parse_diarize_flag("") is False
    with pytest.raises(ConfigError, match="Invalid diarize value"):
        parse_diarize_flag("maybe")
