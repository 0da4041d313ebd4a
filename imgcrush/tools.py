from __future__ import annotations

import os
import platform
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .registry import Registry

TOOLS_DIR_ENV = "IMGCRUSH_TOOLS_DIR"
VENDOR_ROOT = Path(__file__).resolve().parent.parent / "vendor"


def find_tool(name: str, tools_dir: Optional[Path] = None) -> Optional[str]:
    """
    Resolve an optimizer binary to an executable path, or None if it is absent.

    Absolute names are taken as-is. Otherwise the explicit tools_dir, the
    IMGCRUSH_TOOLS_DIR directory and the bundled vendor/ tree are searched
    before falling back to PATH.
    """
    direct = Path(name)
    if direct.is_absolute():
        return str(direct) if direct.is_file() else None

    for base in _search_dirs(tools_dir):
        for filename in (name, f"{name}.exe"):
            path = base / filename
            if path.is_file():
                return str(path)

    return shutil.which(name)


def tool_status(registry: Registry, tools_dir: Optional[Path] = None) -> Dict[str, Optional[str]]:
    """Map each registered optimizer name to its resolved binary (None when missing)."""
    return {
        name: find_tool(spec.binary, tools_dir)
        for name, spec in registry.optimizers.items()
    }


def _search_dirs(tools_dir: Optional[Path]) -> List[Path]:
    dirs: List[Path] = []
    if tools_dir is not None:
        dirs.append(Path(tools_dir))

    env_dir = os.environ.get(TOOLS_DIR_ENV)
    if env_dir:
        dirs.append(Path(env_dir))

    platform_key = detect_platform()
    dirs.extend(
        [
            VENDOR_ROOT / platform_key / detect_arch(),
            VENDOR_ROOT / platform_key,
            VENDOR_ROOT,
        ]
    )
    return dirs


def detect_platform() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def detect_arch() -> str:
    machine = platform.machine().lower()
    if machine in {"arm64", "aarch64"}:
        return "arm64"
    if machine in {"x86_64", "amd64"}:
        return "x64"
    return machine
