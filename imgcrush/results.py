from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class FileResult:
    """
    Outcome of optimizing a single file.

    Immutable so it can be handed to the report (or another thread) as-is.
    """
    path: Path
    size_before: int
    size_after: int
    winner: Optional[str] = None  # None if the original was left untouched
    failed: Tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return self.winner is not None

    @property
    def saved_bytes(self) -> int:
        return max(0, self.size_before - self.size_after)

    @property
    def saved_percent(self) -> float:
        if self.size_before <= 0:
            return 0.0
        return (self.saved_bytes / self.size_before) * 100.0


@dataclass
class RunTotals:
    """Running before/after sums for a batch. add() is safe to call from worker threads."""
    files: int = 0
    size_before: int = 0
    size_after: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, result: FileResult) -> None:
        with self._lock:
            self.files += 1
            self.size_before += result.size_before
            self.size_after += result.size_after

    @property
    def saved_bytes(self) -> int:
        return max(0, self.size_before - self.size_after)

    @property
    def saved_percent(self) -> float:
        if self.size_before <= 0:
            return 0.0
        return (self.saved_bytes / self.size_before) * 100.0

    def as_row(self, label: str = "Total") -> FileResult:
        return FileResult(path=Path(label), size_before=self.size_before, size_after=self.size_after)
