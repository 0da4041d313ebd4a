from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple

from .errors import RegistryError


@dataclass(frozen=True)
class OptimizerSpec:
    """
    One external lossless compressor.

    command[0] is the binary name (or an absolute path). The remaining items
    are argument templates where "{input}" and "{output}" are substituted.

    in_place tools only rewrite the file they are given, so the invoker first
    copies the original to the candidate path and points the tool at that copy.
    """
    name: str
    command: Tuple[str, ...]
    in_place: bool = False

    @property
    def binary(self) -> str:
        return self.command[0]

    def build_command(self, executable: str, input_path, output_path) -> List[str]:
        args = [a.format(input=str(input_path), output=str(output_path)) for a in self.command[1:]]
        return [executable, *args]


@dataclass(frozen=True)
class Registry:
    """Extension -> ordered optimizer names, plus the specs those names resolve to."""
    optimizers: Mapping[str, OptimizerSpec]
    formats: Mapping[str, Tuple[str, ...]]

    def __post_init__(self) -> None:
        for key, spec in self.optimizers.items():
            if key != spec.name:
                raise RegistryError(f"optimizer registered as {key!r} is named {spec.name!r}")
            if not spec.command:
                raise RegistryError(f"optimizer {spec.name!r} has an empty command")

        for ext, names in self.formats.items():
            if not ext or ext.startswith("."):
                raise RegistryError(f"invalid extension {ext!r} (expected e.g. 'png')")
            if len(set(names)) != len(names):
                raise RegistryError(f"duplicate optimizer for extension {ext!r}")
            for name in names:
                if name not in self.optimizers:
                    raise RegistryError(f"extension {ext!r} refers to unknown optimizer {name!r}")

    @property
    def extensions(self) -> Tuple[str, ...]:
        return tuple(self.formats)

    def optimizers_for(self, extension: str) -> List[OptimizerSpec]:
        return [self.optimizers[name] for name in self.formats.get(extension, ())]


def build_registry(
    specs: Iterable[OptimizerSpec],
    formats: Mapping[str, Iterable[str]],
) -> Registry:
    optimizers: dict[str, OptimizerSpec] = {}
    for spec in specs:
        if spec.name in optimizers:
            raise RegistryError(f"optimizer {spec.name!r} registered twice")
        optimizers[spec.name] = spec
    return Registry(
        optimizers=optimizers,
        formats={ext: tuple(names) for ext, names in formats.items()},
    )


OPTIMIZERS = (
    OptimizerSpec("optipng", ("optipng", "-quiet", "-o7", "-out", "{output}", "{input}")),
    OptimizerSpec("pngcrush", ("pngcrush", "-q", "-rem", "alla", "-reduce", "{input}", "{output}")),
    OptimizerSpec("pngout", ("pngout", "-q", "-y", "{input}", "{output}")),
    OptimizerSpec("advpng", ("advpng", "-z", "-4", "-q", "{output}"), in_place=True),
    OptimizerSpec("zopflipng", ("zopflipng", "-y", "{input}", "{output}")),
    OptimizerSpec(
        "jpegtran",
        ("jpegtran", "-copy", "none", "-optimize", "-progressive", "-outfile", "{output}", "{input}"),
    ),
    OptimizerSpec("jpegoptim", ("jpegoptim", "-q", "--strip-all", "{output}"), in_place=True),
    OptimizerSpec("gifsicle", ("gifsicle", "-O3", "{input}", "-o", "{output}")),
)

DEFAULT_REGISTRY = build_registry(
    OPTIMIZERS,
    {
        "png": ("optipng", "pngcrush", "pngout", "advpng", "zopflipng"),
        "jpg": ("jpegtran", "jpegoptim"),
        "jpeg": ("jpegtran", "jpegoptim"),
        "gif": ("gifsicle",),
    },
)

# Pillow format name a verified candidate must decode as.
EXT_TO_FORMAT = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "gif": "GIF",
}


def image_format_for(extension: str) -> Optional[str]:
    return EXT_TO_FORMAT.get(extension.lower())
