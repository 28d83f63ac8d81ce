import pytest
from PIL import Image

from billboard.layout import Bounds


def save_image(path, size, color=(255, 0, 0, 255), fmt="PNG"):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format=fmt)
    return path


@pytest.fixture
def bounds():
    """600x300 billboard at (100, 50) in the viewport."""
    return Bounds(left=100, top=50, right=700, bottom=350)


@pytest.fixture
def public_dir(tmp_path):
    public = tmp_path / "public"
    save_image(public / "billboard.png", (400, 300), color=(20, 120, 40, 255))
    save_image(public / "images" / "people" / "wide.png", (200, 100), color=(255, 0, 0, 255))
    save_image(public / "images" / "logos" / "square.png", (80, 80), color=(0, 0, 255, 255))
    return public


@pytest.fixture
def background_file(public_dir):
    return public_dir / "billboard.png"
