from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path

from .errors import OptimizerFailed
from .registry import OptimizerSpec
from .settings import OptimizeSettings
from .tools import find_tool

logger = logging.getLogger(__name__)

WINDOWS_CREATIONFLAGS = (
    getattr(subprocess, "CREATE_NO_WINDOW", 0) if sys.platform.startswith("win") else 0
)


def invoke(
    spec: OptimizerSpec,
    input_path: Path,
    output_path: Path,
    settings: OptimizeSettings,
) -> Path:
    """
    Run one optimizer on input_path, leaving its result at output_path.

    input_path is never written to. On any failure output_path is removed and
    OptimizerFailed is raised.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    executable = find_tool(spec.binary, settings.tools_dir)
    if executable is None:
        raise OptimizerFailed(spec.name, input_path, f"{spec.binary} not installed")

    if spec.in_place:
        try:
            shutil.copyfile(input_path, output_path)
        except OSError as exc:
            _discard(output_path)
            raise OptimizerFailed(spec.name, input_path, f"could not stage copy: {exc}") from exc

    command = spec.build_command(executable, input_path, output_path)
    logger.debug("running %s", command)

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            timeout=settings.timeout,
            creationflags=WINDOWS_CREATIONFLAGS,
        )
    except subprocess.TimeoutExpired:
        _discard(output_path)
        raise OptimizerFailed(spec.name, input_path, f"timed out after {settings.timeout:g}s")
    except OSError as exc:
        _discard(output_path)
        raise OptimizerFailed(spec.name, input_path, f"could not start: {exc}") from exc

    if result.returncode != 0:
        _discard(output_path)
        stderr = result.stderr.decode("utf-8", "replace").strip()
        reason = f"exit code {result.returncode}"
        if stderr:
            reason += f": {stderr.splitlines()[-1]}"
        raise OptimizerFailed(spec.name, input_path, reason)

    if not output_path.is_file() or output_path.stat().st_size == 0:
        _discard(output_path)
        raise OptimizerFailed(spec.name, input_path, "produced no output")

    return output_path


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("could not remove candidate %s: %s", path, exc)
