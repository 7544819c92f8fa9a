import io
import json
import os
import sys
import tempfile
import zipfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Keep CLI imports from writing into the repository's logs/ directory
os.environ.setdefault("MCSUITE_LOG_DIR", tempfile.mkdtemp(prefix="mcsuite-logs-"))

BLOCK = "assets/minecraft/textures/block"


def png_bytes(colour=(200, 30, 30, 255), size=(16, 16)) -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGBA", size, colour).save(buffer, format="PNG")
    return buffer.getvalue()


def zip_bytes(files) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def pack_files():
    return {
        "pack.mcmeta": json.dumps({"pack": {"pack_format": 15, "description": "X"}}),
        f"{BLOCK}/diamond_ore.png": png_bytes((90, 200, 190, 255)),
        f"{BLOCK}/wool_red.png": png_bytes((180, 40, 40, 255)),
        f"{BLOCK}/stone.png": png_bytes((120, 120, 120, 255)),
        "assets/minecraft/textures/item/apple.png": png_bytes((220, 20, 30, 255)),
        "assets/minecraft/textures/gui/widgets.png": png_bytes((10, 200, 10, 255)),
        "assets/minecraft/lang/en_us.json": "{}",
    }


@pytest.fixture
def pack_path(tmp_path, pack_files) -> Path:
    path = tmp_path / "MyPack.zip"
    path.write_bytes(zip_bytes(pack_files))
    return path


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def make_zip():
    return zip_bytes
