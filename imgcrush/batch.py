from __future__ import annotations

import logging
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from .engine import STAGING_PREFIX, process_file
from .errors import NotFoundError, ScopeNotFoundError
from .registry import DEFAULT_REGISTRY, Registry
from .results import FileResult, RunTotals
from .settings import OptimizeSettings

logger = logging.getLogger(__name__)


def check_scope(root: Path) -> Path:
    root = Path(root)
    if not root.is_dir():
        raise ScopeNotFoundError(root)
    return root


def iter_images(root: Path, registry: Registry = DEFAULT_REGISTRY) -> Iterable[Tuple[Path, str]]:
    """
    Yield (path, extension) for every file under root that a registered extension matches.

    Files are grouped by extension in registry order and sorted within a
    group. Matching is an exact, case-sensitive suffix test on ".<ext>"; a file
    is yielded only for the first extension it matches. Symlinks are never
    yielded.
    """
    files = sorted(
        p for p in Path(root).rglob("*")
        if p.is_file() and not p.is_symlink() and not p.name.startswith(STAGING_PREFIX)
    )

    seen = set()
    for ext in registry.extensions:
        suffix = f".{ext}"
        for f in files:
            if f in seen or not f.name.endswith(suffix):
                continue
            seen.add(f)
            yield f, ext


def run_batch(
    root: Path,
    settings: Optional[OptimizeSettings] = None,
    registry: Registry = DEFAULT_REGISTRY,
    on_result: Optional[Callable[[FileResult], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> tuple[List[FileResult], RunTotals]:
    """
    Optimize every matching file under root.

    Only a missing root is fatal (ScopeNotFoundError, raised before anything is
    touched); a file that fails is logged and left out of the totals.
    """
    root = check_scope(root)
    settings = settings or OptimizeSettings()

    results: List[FileResult] = []
    totals = RunTotals()

    image_list = list(iter_images(root, registry))
    logger.info("found %d file(s) under %s", len(image_list), root)

    with tempfile.TemporaryDirectory(prefix="imgcrush-", dir=settings.temp_dir) as work_dir:

        def handle(item: Tuple[Path, str]) -> Optional[FileResult]:
            if cancel_event and cancel_event.is_set():
                return None
            path, ext = item
            try:
                return process_file(path, ext, registry, settings, Path(work_dir))
            except NotFoundError:
                logger.info("skipping %s: file disappeared", path)
            except OSError as exc:
                logger.error("skipping %s: %s", path, exc)
            return None

        if settings.workers > 1:
            with ThreadPoolExecutor(max_workers=settings.workers) as pool:
                outcomes = pool.map(handle, image_list)
                for r in outcomes:
                    _record(r, results, totals, on_result)
        else:
            for item in image_list:
                if cancel_event and cancel_event.is_set():
                    break
                _record(handle(item), results, totals, on_result)

    return results, totals


def _record(
    r: Optional[FileResult],
    results: List[FileResult],
    totals: RunTotals,
    on_result: Optional[Callable[[FileResult], None]],
) -> None:
    if r is None:
        return
    results.append(r)
    totals.add(r)
    if on_result:
        on_result(r)
