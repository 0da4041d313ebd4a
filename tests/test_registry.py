"""
Tests for the optimizer / format table.
"""

import pytest

from imgcrush.errors import RegistryError
from imgcrush.registry import (
    DEFAULT_REGISTRY,
    OptimizerSpec,
    Registry,
    build_registry,
    image_format_for,
)


class TestDefaultRegistry:

    def test_every_extension_resolves(self):
        for ext in DEFAULT_REGISTRY.extensions:
            specs = DEFAULT_REGISTRY.optimizers_for(ext)
            assert specs
            assert all(isinstance(s, OptimizerSpec) for s in specs)

    def test_png_order_is_registration_order(self):
        names = [s.name for s in DEFAULT_REGISTRY.optimizers_for("png")]
        assert names[:3] == ["optipng", "pngcrush", "pngout"]

    def test_extensions_are_case_sensitive(self):
        assert DEFAULT_REGISTRY.optimizers_for("PNG") == []
        assert DEFAULT_REGISTRY.optimizers_for("bmp") == []


class TestValidation:

    def test_unknown_optimizer_rejected(self):
        spec = OptimizerSpec("optipng", ("optipng", "{input}"))
        with pytest.raises(RegistryError, match="unknown optimizer 'pngcrush'"):
            build_registry([spec], {"png": ["optipng", "pngcrush"]})

    def test_leading_dot_rejected(self):
        spec = OptimizerSpec("optipng", ("optipng", "{input}"))
        with pytest.raises(RegistryError):
            build_registry([spec], {".png": ["optipng"]})

    def test_duplicate_spec_rejected(self):
        spec = OptimizerSpec("optipng", ("optipng", "{input}"))
        with pytest.raises(RegistryError, match="registered twice"):
            build_registry([spec, spec], {"png": ["optipng"]})

    def test_mismatched_key_rejected(self):
        spec = OptimizerSpec("optipng", ("optipng", "{input}"))
        with pytest.raises(RegistryError):
            Registry(optimizers={"other": spec}, formats={})

    def test_registry_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_registry([], {"png": ["missing"]})


def test_build_command_substitutes_paths(tmp_path):
    spec = OptimizerSpec("gifsicle", ("gifsicle", "-O3", "{input}", "-o", "{output}"))
    src = tmp_path / "a b.gif"
    dst = tmp_path / "out.gif"

    command = spec.build_command("/opt/bin/gifsicle", src, dst)

    assert command == ["/opt/bin/gifsicle", "-O3", str(src), "-o", str(dst)]
    assert spec.binary == "gifsicle"


def test_image_format_for():
    assert image_format_for("png") == "PNG"
    assert image_format_for("jpeg") == "JPEG"
    assert image_format_for("tiff") is None
