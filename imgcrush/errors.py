from __future__ import annotations

from pathlib import Path


class ImgCrushError(Exception):
    """Base class for everything imgcrush raises on purpose."""


class ScopeNotFoundError(ImgCrushError):
    """The root directory of a batch is missing or is not a directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        super().__init__(f"directory not found: {self.root}")


class NotFoundError(ImgCrushError, FileNotFoundError):
    """A file disappeared between enumeration and probing."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        ImgCrushError.__init__(self, f"file not found: {self.path}")


class OptimizerFailed(ImgCrushError):
    """One optimizer could not produce a candidate for one file."""

    def __init__(self, name: str, path: Path, reason: str) -> None:
        self.name = name
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{name} failed on {self.path}: {reason}")


class RegistryError(ImgCrushError, ValueError):
    """The optimizer/format table is inconsistent."""
