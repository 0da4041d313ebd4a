"""
Shared fixtures.

External optimizers are simulated by a tiny Python script run through
sys.executable, so the invoker really spawns processes.
"""

import sys
import textwrap

import pytest
from PIL import Image

from imgcrush.registry import OptimizerSpec, build_registry
from imgcrush.settings import OptimizeSettings

FAKE_TOOL = textwrap.dedent(
    """
    import shutil
    import sys
    import time

    mode, *args = sys.argv[1:]

    if mode == "write":
        with open(args[2], "wb") as f:
            f.write(b"x" * int(args[0]))
    elif mode == "partial":
        with open(args[2], "wb") as f:
            f.write(b"x" * int(args[0]))
        sys.exit(1)
    elif mode == "fail":
        sys.stderr.write("boom\\n")
        sys.exit(3)
    elif mode == "shrink":
        with open(args[1], "r+b") as f:
            f.truncate(int(args[0]))
    elif mode == "copy":
        shutil.copyfile(args[0], args[1])
    elif mode == "resave":
        from PIL import Image
        with Image.open(args[0]) as im:
            im.save(args[1], format=im.format, optimize=True, compress_level=9)
    elif mode == "sleep":
        time.sleep(float(args[0]))
    """
)


@pytest.fixture
def fake_tool(tmp_path):
    script = tmp_path / "fake_tool.py"
    script.write_text(FAKE_TOOL, encoding="utf-8")

    def make(name, mode, *args, in_place=False):
        if in_place:
            command = (sys.executable, str(script), mode, *args, "{output}")
        else:
            command = (sys.executable, str(script), mode, *args, "{input}", "{output}")
        return OptimizerSpec(name, command, in_place=in_place)

    return make


@pytest.fixture
def scope(tmp_path):
    root = tmp_path / "images"
    root.mkdir()
    return root


@pytest.fixture
def settings(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    return OptimizeSettings(timeout=30.0, temp_dir=work, verify_candidates=False)


@pytest.fixture
def scenario_registry(fake_tool):
    """a.png: optipng -> 800, pngcrush -> 750, pngout fails; b.gif: gifsicle -> 1800."""
    return build_registry(
        [
            fake_tool("optipng", "write", "800"),
            fake_tool("pngcrush", "write", "750"),
            fake_tool("pngout", "fail"),
            fake_tool("gifsicle", "write", "1800"),
        ],
        {"png": ["optipng", "pngcrush", "pngout"], "gif": ["gifsicle"]},
    )


def write_bytes(path, size):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\0" * size)
    return path


def write_png(path, size=(64, 64)):
    """An uncompressed, noisy-enough PNG that a compress_level=9 resave will shrink."""
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size)
    for x in range(size[0]):
        for y in range(size[1]):
            image.putpixel((x, y), ((x * 4) % 256, (y * 4) % 256, 128))
    image.save(path, format="PNG", compress_level=0)
    return path
