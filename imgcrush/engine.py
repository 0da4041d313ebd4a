from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import NamedTuple, Optional, Sequence, Tuple

from PIL import Image

from .errors import NotFoundError, OptimizerFailed
from .invoker import invoke
from .registry import Registry, image_format_for
from .results import FileResult
from .settings import OptimizeSettings

logger = logging.getLogger(__name__)

# Prefix of the file the winner is copied to before it is renamed over the original.
STAGING_PREFIX = ".imgcrush-"


class Selection(NamedTuple):
    size_after: int
    winner: Optional[str]


def size_of(path: Path) -> int:
    try:
        return Path(path).stat().st_size
    except FileNotFoundError as exc:
        raise NotFoundError(path) from exc


def process_file(
    path: Path,
    extension: str,
    registry: Registry,
    settings: OptimizeSettings,
    work_dir: Optional[Path] = None,
) -> FileResult:
    """
    Run every optimizer registered for `extension` on `path` and keep the smallest output.

    Candidates live in a private temp directory that is removed however this returns.
    Optimizer failures are recorded on the result, never raised.
    """
    path = Path(path)
    size_before = size_of(path)

    failed = []
    with tempfile.TemporaryDirectory(prefix="file-", dir=work_dir) as tmp:
        candidates = []
        for index, spec in enumerate(registry.optimizers_for(extension)):
            out_path = Path(tmp) / f"{index:02d}_{spec.name}{path.suffix}"
            try:
                invoke(spec, path, out_path, settings)
            except OptimizerFailed as exc:
                logger.info("%s", exc)
                failed.append(spec.name)
                continue
            candidates.append((spec.name, out_path))

        selection = select_candidate(
            path,
            candidates,
            size_before,
            image_format=image_format_for(extension),
            verify=settings.verify_candidates,
        )

    return FileResult(
        path=path,
        size_before=size_before,
        size_after=selection.size_after,
        winner=selection.winner,
        failed=tuple(failed),
    )


def select_candidate(
    original: Path,
    candidates: Sequence[Tuple[str, Path]],
    size_before: int,
    image_format: Optional[str] = None,
    verify: bool = True,
) -> Selection:
    """
    Replace `original` with the smallest candidate that beats `size_before`.

    candidates are (optimizer name, path) in registration order; among equal
    sizes the earlier one wins. Every candidate file is gone when this returns.
    """
    original = Path(original)

    sized = []
    for index, (name, cand_path) in enumerate(candidates):
        try:
            sized.append((size_of(cand_path), index, name, Path(cand_path)))
        except NotFoundError:
            logger.info("candidate from %s vanished: %s", name, cand_path)
    sized.sort(key=lambda item: (item[0], item[1]))

    winner = None
    for size, _index, name, cand_path in sized:
        if size >= size_before:
            break
        if verify and not _is_valid_image(cand_path, image_format):
            logger.warning("discarding %s output for %s: not a valid image", name, original)
            continue
        winner = (size, name, cand_path)
        break

    for _size, _index, name, cand_path in sized:
        if winner is None or cand_path != winner[2]:
            cand_path.unlink(missing_ok=True)

    if winner is None:
        return Selection(size_after=size_before, winner=None)

    size, name, cand_path = winner
    try:
        _finalize_output(cand_path, original)
    finally:
        cand_path.unlink(missing_ok=True)

    logger.debug("%s: %s won (%d -> %d bytes)", original, name, size_before, size)
    return Selection(size_after=size_of(original), winner=name)


def _finalize_output(winner: Path, original: Path) -> None:
    # Same directory as the original: the rename must not cross filesystems.
    fd, tmp_name = tempfile.mkstemp(prefix=STAGING_PREFIX, suffix=original.suffix, dir=str(original.parent))
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        shutil.copyfile(winner, tmp_path)
        shutil.copymode(original, tmp_path)
        tmp_path.replace(original)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _is_valid_image(path: Path, image_format: Optional[str]) -> bool:
    try:
        with Image.open(path) as im:
            decoded_format = im.format
            im.verify()
        # verify() only checks PNG chunk data; other formats need a full decode.
        if decoded_format != "PNG":
            with Image.open(path) as im:
                im.load()
    except (OSError, SyntaxError, ValueError, IndexError, Image.DecompressionBombError) as exc:
        logger.debug("verify failed for %s: %s", path, exc)
        return False
    return image_format is None or decoded_format == image_format
