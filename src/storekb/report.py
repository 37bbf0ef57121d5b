"""Aggregate results of a multi-source scan."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from storekb.chunks.payloads import ChunkRecord, SourceKind


@dataclass
class ScanError:
    source: str
    message: str


@dataclass
class ScanReport:
    """Combined outcome of ``Scanner.scan_all``.

    ``data`` and ``summary`` always carry every source kind; kinds that were
    disabled or failed map to an empty list and a count of zero.
    """

    success: bool
    data: Dict[str, List[ChunkRecord]]
    summary: Dict[str, int]
    errors: List[ScanError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def failed_sources(self) -> List[str]:
        return [error.source for error in self.errors]

    @property
    def total(self) -> int:
        return sum(self.summary.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": {kind: [chunk.to_dict() for chunk in chunks] for kind, chunks in self.data.items()},
            "summary": dict(self.summary),
            "errors": [{"source": error.source, "message": error.message} for error in self.errors],
            "duration": self.duration,
        }


class ResultAggregator:
    """Collects per-source outcomes in the order they are recorded."""

    def __init__(self, clock=time.perf_counter) -> None:
        self._clock = clock
        self._start = clock()
        self._data: Dict[str, List[ChunkRecord]] = {kind.value: [] for kind in SourceKind}
        self._errors: List[ScanError] = []

    def record_success(self, kind: SourceKind, chunks: List[ChunkRecord]) -> None:
        self._data[kind.value] = list(chunks)

    def record_failure(self, kind: SourceKind, message: Optional[str]) -> None:
        self._data[kind.value] = []
        self._errors.append(ScanError(source=kind.value, message=message or "Unknown error"))

    def build(self) -> ScanReport:
        return ScanReport(
            success=not self._errors,
            data=dict(self._data),
            summary={kind: len(chunks) for kind, chunks in self._data.items()},
            errors=list(self._errors),
            duration=max(self._clock() - self._start, 0.0),
        )
