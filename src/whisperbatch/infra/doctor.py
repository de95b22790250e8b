from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from whisperbatch.core.engine import WHISPER_EXECUTABLE, WHISPERX_EXECUTABLE, read_hf_token
from whisperbatch.infra.config import HF_TOKEN_ENV
from whisperbatch.infra.device import choose_engine_device, probe_device


@dataclass(frozen=True)
class DoctorCheck:
    name: str
    ok: bool
    detail: str
    required: bool = True


@dataclass(frozen=True)
class DoctorReport:
    checks: tuple[DoctorCheck, ...]

    @property
    def ok(self) -> bool:
        return all(check.ok for check in self.checks if check.required)


def _which(command: str) -> Path | None:
    path = shutil.which(command)
    return Path(path) if path else None


def get_ffmpeg_version(ffmpeg: Path) -> str | None:
    proc = subprocess.run(
        [str(ffmpeg), "-version"],
        capture_output=True,
        text=True,
        check=False,
    )
    if proc.returncode != 0 or not proc.stdout:
        return None
    return proc.stdout.splitlines()[0].strip()


def _executable_check(name: str, command: str, *, required: bool) -> DoctorCheck:
    path = _which(command)
    return DoctorCheck(name=name, ok=path is not None, detail=f"path={path}", required=required)


def collect_doctor_report(device: str = "auto") -> DoctorReport:
    whisper_check = _executable_check("whisper", WHISPER_EXECUTABLE, required=True)

    ffmpeg_path = _which("ffmpeg")
    version = (get_ffmpeg_version(ffmpeg_path) if ffmpeg_path else None) or "unknown"
    ffmpeg_check = DoctorCheck(
        name="ffmpeg",
        ok=ffmpeg_path is not None,
        detail=f"path={ffmpeg_path} version={version}",
    )

    whisperx_check = _executable_check(
        "whisperx (diarization)", WHISPERX_EXECUTABLE, required=False
    )
    has_token = bool(read_hf_token())
    token_check = DoctorCheck(
        name=f"{HF_TOKEN_ENV} (diarization)",
        ok=has_token,
        detail="set" if has_token else "not set",
        required=False,
    )

    probe = probe_device()
    selected = choose_engine_device(device, probe)
    device_check = DoctorCheck(
        name="Device",
        ok=True,
        detail=(
            f"requested={device} detected={probe.kind} ({probe.name}) "
            f"selected={selected.engine_device}"
        ),
    )

    return DoctorReport(
        checks=(whisper_check, ffmpeg_check, whisperx_check, token_check, device_check),
    )


def render_doctor_report(report: DoctorReport) -> str:
    header = "whisperbatch doctor: OK" if report.ok else "whisperbatch doctor: FAIL"
    lines = [header]
    for check in report.checks:
        if check.ok:
            status = "PASS"
        else:
            status = "FAIL" if check.required else "WARN"
        lines.append(f"- [{status}] {check.name}: {check.detail}")
    return "\n".join(lines)
