from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .results import FileResult, RunTotals

PATH_WIDTH = 50
NUM_WIDTH = 12
HEADER = ("File", "KB removed", "% removed")


def format_header() -> str:
    name, kb, pct = HEADER
    return f"{name:<{PATH_WIDTH}} {kb:>{NUM_WIDTH}} {pct:>{NUM_WIDTH}}"


def format_divider() -> str:
    return "-" * (PATH_WIDTH + 2 * NUM_WIDTH + 2)


def format_row(r: FileResult) -> str:
    kb = r.saved_bytes / 1024
    return f"{str(r.path):<{PATH_WIDTH}} {kb:>{NUM_WIDTH}.2f} {r.saved_percent:>{NUM_WIDTH}.2f}"


def format_total(totals: RunTotals) -> str:
    return format_row(totals.as_row())


@dataclass(frozen=True)
class FileReport:
    path: str
    size_before: int
    size_after: int
    saved_bytes: int
    saved_percent: float
    changed: bool
    winner: Optional[str]
    failed: List[str]


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[FileReport]


def build_report(results: List[FileResult], totals: RunTotals) -> BatchReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    files: List[FileReport] = []
    for r in results:
        files.append(
            FileReport(
                path=str(r.path),
                size_before=r.size_before,
                size_after=r.size_after,
                saved_bytes=r.saved_bytes,
                saved_percent=round(r.saved_percent, 2),
                changed=r.changed,
                winner=r.winner,
                failed=list(r.failed),
            )
        )

    summary_dict = {
        "files": totals.files,
        "changed": sum(1 for r in results if r.changed),
        "size_before": totals.size_before,
        "size_after": totals.size_after,
        "saved_bytes": totals.saved_bytes,
        "saved_percent": round(totals.saved_percent, 2),
    }

    return BatchReport(created_utc=created_utc, summary=summary_dict, files=files)


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    text = json.dumps(asdict(report), indent=2, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")


def save_report_csv(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fields = ["path", "size_before", "size_after", "saved_bytes", "saved_percent", "changed", "winner", "failed"]
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for fr in report.files:
            row = asdict(fr)
            row["winner"] = fr.winner or ""
            row["failed"] = ";".join(fr.failed)
            writer.writerow(row)
