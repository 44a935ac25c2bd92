"""Runtime telemetry helpers for genotype and body-building diagnostics."""

from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Optional

from ..config import settings

__all__ = [
    "BuildSample",
    "EventSample",
    "TelemetrySink",
    "build_sample",
    "disable_telemetry",
    "enable_from_settings",
    "enable_telemetry",
    "flush_all",
    "log_event",
]


@dataclass(slots=True)
class EventSample:
    timestamp: float
    category: str
    entity_id: str
    event_type: str
    details: dict = field(default_factory=dict)


@dataclass(slots=True)
class BuildSample:
    timestamp: float
    group: int
    segments: int
    joints: int
    root_control_id: Optional[int]
    width: float
    height: float


class TelemetrySink:
    """Buffered JSONL telemetry writer."""

    def __init__(self, kind: str, *, directory: Optional[Path] = None, flush_interval: int = 32) -> None:
        base = Path(directory) if directory is not None else Path(settings.LOG_DIRECTORY) / "telemetry"
        base.mkdir(parents=True, exist_ok=True)
        # Timestamped so separate runs never share a file
        timestamp = int(time.time())
        self.path = base / f"{kind}_{timestamp}.jsonl"
        self._buffer: list[dict] = []
        self._lock = threading.Lock()
        self._flush_interval = max(1, flush_interval)
        self._counter = 0

    def write(self, payload: EventSample | BuildSample) -> None:
        with self._lock:
            self._buffer.append(asdict(payload))
            self._counter += 1
            if self._counter >= self._flush_interval:
                self._flush_locked()

    def flush(self) -> None:
        with self._lock:
            self._flush_locked()

    def _flush_locked(self) -> None:
        if not self._buffer:
            self._counter = 0
            return
        with self.path.open("a", encoding="utf-8") as handle:
            for row in self._buffer:
                handle.write(json.dumps(row, ensure_ascii=False) + os.linesep)
        self._buffer.clear()
        self._counter = 0


_event_sink: Optional[TelemetrySink] = None
_build_sink: Optional[TelemetrySink] = None


def enable_telemetry(kind: str = "all", directory: Optional[Path] = None) -> None:
    global _event_sink, _build_sink
    if kind not in ("events", "builds", "all"):
        raise ValueError(f"Unknown telemetry kind: {kind}")
    if kind in ("events", "all") and _event_sink is None:
        _event_sink = TelemetrySink("events", directory=directory)
    if kind in ("builds", "all") and _build_sink is None:
        _build_sink = TelemetrySink("builds", directory=directory)


def enable_from_settings(directory: Optional[Path] = None) -> bool:
    """Turn on every sink when ``TELEMETRY_ENABLED`` is set."""

    if not settings.TELEMETRY_ENABLED:
        return False
    enable_telemetry("all", directory=directory)
    return True


def disable_telemetry() -> None:
    """Flush and drop every active sink."""

    global _event_sink, _build_sink
    flush_all()
    _event_sink = None
    _build_sink = None


def active_sinks() -> Dict[str, TelemetrySink]:
    sinks: Dict[str, TelemetrySink] = {}
    if _event_sink is not None:
        sinks["events"] = _event_sink
    if _build_sink is not None:
        sinks["builds"] = _build_sink
    return sinks


def log_event(
    category: str,
    event_type: str,
    entity_id: str = "SYSTEM",
    details: Optional[dict] = None,
) -> None:
    """Log a generic event."""
    if _event_sink is None:
        return
    sample = EventSample(
        timestamp=time.time(),
        category=category,
        entity_id=entity_id,
        event_type=event_type,
        details=details or {},
    )
    _event_sink.write(sample)


def build_sample(
    *,
    group: int,
    segments: int,
    joints: int,
    root_control_id: Optional[int],
    width: float,
    height: float,
) -> None:
    if _build_sink is None:
        return
    sample = BuildSample(
        timestamp=time.time(),
        group=group,
        segments=segments,
        joints=joints,
        root_control_id=root_control_id,
        width=width,
        height=height,
    )
    _build_sink.write(sample)


def flush_all() -> None:
    if _event_sink:
        _event_sink.flush()
    if _build_sink:
        _build_sink.flush()
