import re

import pytest

from image_store import ImageNotFoundError, ImageStore, InvalidImageError


@pytest.fixture
def store(public_dir):
    return ImageStore(public_dir)


def test_list_images_filters_by_extension(store, public_dir):
    (public_dir / "images" / "people" / "notes.txt").write_text("not an image")
    (public_dir / "images" / "people" / "a.JPG").write_bytes(b"x")

    assert store.list_images("people") == [
        "/images/people/a.JPG",
        "/images/people/wide.png",
    ]
    assert store.list_images("logos") == ["/images/logos/square.png"]


def test_list_images_creates_missing_bucket(tmp_path):
    store = ImageStore(tmp_path / "empty")
    assert store.list_images("logos") == []
    assert (tmp_path / "empty" / "images" / "logos").is_dir()


def test_unknown_bucket_is_rejected(store):
    with pytest.raises(InvalidImageError):
        store.list_images("backgrounds")


def test_save_upload_prefixes_timestamp(store, public_dir):
    url = store.save_upload("face.png", "image/png", b"data", bucket="people")

    assert re.fullmatch(r"/images/people/\d+-face\.png", url)
    saved = public_dir / url.lstrip("/")
    assert saved.read_bytes() == b"data"


def test_save_upload_defaults_to_logos(store):
    assert store.save_upload("brand.svg", "image/svg+xml", b"<svg/>", bucket="other").startswith(
        "/images/logos/"
    )


def test_save_upload_drops_directory_parts(store):
    url = store.save_upload("../../etc/evil.png", "image/png", b"x")
    assert re.fullmatch(r"/images/logos/\d+-evil\.png", url)


@pytest.mark.parametrize("filename,content_type,message", [
    ("", "image/png", "No file provided"),
    ("doc.pdf", "application/pdf", "Invalid file type"),
    ("page.html", "text/html", "Invalid file type"),
])
def test_save_upload_rejects(store, filename, content_type, message):
    with pytest.raises(InvalidImageError, match=message):
        store.save_upload(filename, content_type, b"x")


def test_delete_image(store, public_dir):
    store.delete_image("/images/logos/square.png")
    assert not (public_dir / "images" / "logos" / "square.png").exists()


@pytest.mark.parametrize("path", [
    "/etc/passwd",
    "images/logos/square.png",
    "/images/../billboard.png",
    "/images/",
])
def test_delete_rejects_paths_outside_images(store, public_dir, path):
    with pytest.raises(InvalidImageError, match="Invalid path"):
        store.delete_image(path)
    assert (public_dir / "billboard.png").exists()


def test_delete_requires_path(store):
    with pytest.raises(InvalidImageError, match="No image path provided"):
        store.delete_image("")


def test_delete_missing_file(store):
    with pytest.raises(ImageNotFoundError, match="File not found"):
        store.delete_image("/images/logos/gone.png")
