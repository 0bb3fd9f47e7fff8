import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import exam_atlas
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from exam_atlas.core.models.files import FileRef  # noqa: E402


# Common test fixtures
@pytest.fixture
def png_bytes() -> bytes:
    """A small white PNG."""
    img = Image.new("RGB", (40, 20), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_file(png_bytes) -> FileRef:
    return FileRef("1.png", png_bytes)


@pytest.fixture
def sample_image(tmp_path: Path, png_bytes) -> Path:
    """A PNG written to disk."""
    path = tmp_path / "2.1-6.png"
    path.write_bytes(png_bytes)
    return path
