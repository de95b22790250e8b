from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from whisperbatch.errors import ConfigError

SUPPORTED_MODEL_SIZES: tuple[str, ...] = ("tiny", "base", "small", "medium", "large-v3")
# No ".en" variant is published for these.
MULTILINGUAL_ONLY_MODELS = frozenset({"large-v3"})
LANGUAGE_MODES: tuple[str, ...] = ("en", "es", "multi")
SUPPORTED_EXTENSIONS: tuple[str, ...] = (
    "mkv",
    "mp4",
    "m4v",
    "webm",
    "mp3",
    "wav",
    "m4a",
    "ogg",
)
SUPPORTED_DEVICES = {"auto", "cpu", "cuda"}
PRIMARY_ARTIFACT_SUFFIX = ".txt"
DEFAULT_OUTPUT_ROOT = Path("output")
HF_TOKEN_ENV = "HF_TOKEN"

FAIL_FAST = "fail-fast"
CONTINUE_ON_ERROR = "continue"
FAILURE_POLICIES = {FAIL_FAST, CONTINUE_ON_ERROR}

_TRUE_VALUES = {"true", "1", "yes", "y", "on"}
_FALSE_VALUES = {"false", "0", "no", "n", "off", ""}


@dataclass(frozen=True)
class ResolvedModel:
    model_id: str
    language: str | None
    description: str


@dataclass(frozen=True)
class RunConfig:
    input_path: Path
    model_size: str
    language_mode: str
    extension_filter: str | None
    diarize: bool
    output_path: Path
    model: ResolvedModel
    failure_policy: str = FAIL_FAST
    requested_device: str = "auto"

    @property
    def extensions(self) -> tuple[str, ...]:
        if self.extension_filter:
            return (self.extension_filter,)
        return SUPPORTED_EXTENSIONS

    @property
    def fail_fast(self) -> bool:
        return self.failure_policy == FAIL_FAST


def normalize_model_size(value: str) -> str:
    size = value.strip().lower()
    if size not in SUPPORTED_MODEL_SIZES:
        raise ConfigError(
            f"Unsupported model size '{value}'. Allowed: {', '.join(SUPPORTED_MODEL_SIZES)}"
        )
    return size


def normalize_language_mode(value: str | None) -> str:
    """Unknown or empty values fall back to multilingual auto-detect."""
    mode = (value or "").strip().lower()
    return mode if mode in LANGUAGE_MODES else "multi"


def normalize_extension_filter(value: str | None) -> str | None:
    if value is None:
        return None
    ext = value.strip().lstrip(".").lower()
    return ext or None


def parse_diarize_flag(value: str | bool | None) -> bool:
    if isinstance(value, bool):
        return value
    flag = (value or "").strip().lower()
    if flag in _TRUE_VALUES:
        return True
    if flag in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid diarize value '{value}'. Use true or false.")


def normalize_device(value: str) -> str:
    device = value.strip().lower()
    if device not in SUPPORTED_DEVICES:
        raise ConfigError(
            f"Unsupported device '{value}'. Allowed: {', '.join(sorted(SUPPORTED_DEVICES))}"
        )
    return device


def normalize_failure_policy(value: str) -> str:
    policy = value.strip().lower()
    if policy not in FAILURE_POLICIES:
        raise ConfigError(
            f"Unsupported failure policy '{value}'. Allowed: {sorted(FAILURE_POLICIES)}"
        )
    return policy


def resolve_model(model_size: str, language_mode: str) -> ResolvedModel:
    mode = normalize_language_mode(language_mode)
    if mode == "en":
        model_id = (
            model_size if model_size in MULTILINGUAL_ONLY_MODELS else f"{model_size}.en"
        )
        return ResolvedModel(model_id=model_id, language="en", description="English-only")
    if mode == "es":
        return ResolvedModel(model_id=model_size, language="es", description="Spanish-only")
    return ResolvedModel(
        model_id=model_size,
        language=None,
        description="Multilingual (auto-detect)",
    )


def default_output_path(
    model_size: str,
    language_mode: str,
    diarize: bool,
    root: Path = DEFAULT_OUTPUT_ROOT,
) -> Path:
    name = f"transcripts_{model_size}_{language_mode}"
    if diarize:
        name += "_diarized"
    return (root / name).resolve()


def build_run_config(
    *,
    input_path: Path | None,
    model_size: str = "small",
    language: str | None = "multi",
    extension_filter: str | None = None,
    diarize: str | bool | None = False,
    output_dir: Path | None = None,
    failure_policy: str = FAIL_FAST,
    device: str = "auto",
) -> RunConfig:
    if input_path is None:
        raise ConfigError("Input folder is required.")
    if not input_path.exists() or not input_path.is_dir():
        raise ConfigError(f"Input directory not found: {input_path}")
    size = normalize_model_size(model_size)
    mode = normalize_language_mode(language)
    diarize_flag = parse_diarize_flag(diarize)
    if output_dir is not None:
        output_path = output_dir.expanduser().resolve()
    else:
        output_path = default_output_path(size, mode, diarize_flag)
    return RunConfig(
        input_path=input_path.expanduser().resolve(),
        model_size=size,
        language_mode=mode,
        extension_filter=normalize_extension_filter(extension_filter),
        diarize=diarize_flag,
        output_path=output_path,
        model=resolve_model(size, mode),
        failure_policy=normalize_failure_policy(failure_policy),
        requested_device=normalize_device(device),
    )
