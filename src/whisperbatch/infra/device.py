from __future__ import annotations

from dataclasses import dataclass

ACCELERATED = "accelerated"
CPU = "cpu"


@dataclass(frozen=True)
class DeviceProbe:
    kind: str
    name: str

    @property
    def engine_device(self) -> str:
        return "cuda" if self.kind == ACCELERATED else "cpu"


CPU_FALLBACK = DeviceProbe(kind=CPU, name="CPU")


def _detect_with_torch() -> DeviceProbe | None:
    try:
        import torch
    except Exception:
        return None
    try:
        if not torch.cuda.is_available():
            return None
        return DeviceProbe(kind=ACCELERATED, name=torch.cuda.get_device_name(0))
    except Exception:
        return None


def probe_device() -> DeviceProbe:
    """Best-effort accelerator detection; any failure means CPU."""
    return _detect_with_torch() or CPU_FALLBACK


def choose_engine_device(requested: str, probe: DeviceProbe) -> DeviceProbe:
    if requested == "cpu":
        return CPU_FALLBACK
    if requested == "cuda" and probe.kind != ACCELERATED:
        return DeviceProbe(kind=ACCELERATED, name="CUDA (forced)")
    return probe
