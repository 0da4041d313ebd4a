from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class OptimizeSettings:
    """
    All user-configurable knobs for a batch.

    Pure data, no logic, so the CLI (or a test) can build one in a line.
    """

    # ----- Tool discovery -----
    # Searched before IMGCRUSH_TOOLS_DIR, the bundled vendor/ dir and PATH.
    tools_dir: Optional[Path] = None

    # Seconds before a single optimizer run is killed and counted as failed.
    timeout: float = 120.0

    # ----- Scheduling -----
    # Number of files processed at once. 1 means strictly sequential.
    workers: int = 1

    # ----- Candidates -----
    # Parent for the per-run work directory (None = system temp dir).
    temp_dir: Optional[Path] = None

    # Decode the winning candidate with Pillow before it replaces the original.
    verify_candidates: bool = True
