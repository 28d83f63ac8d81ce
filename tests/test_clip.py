import pytest
from PIL import Image

from billboard.clip import build_clip_mask, build_clip_path, clipped, flatten_path
from billboard.layout import EditableArea
from billboard.presets import BEZIER_STEPS


@pytest.fixture
def area():
    return EditableArea.for_canvas(400, 300)


def test_flatten_path_is_closed_polygon():
    polygon = flatten_path()
    assert polygon[0] == (0.0389, 0.9944)
    # move + curve samples + line + curve samples; closing line is dropped
    assert len(polygon) == 1 + BEZIER_STEPS + 1 + BEZIER_STEPS
    assert (0.0009, 0.0014) in polygon
    assert (0.9986, 0.0014) in polygon
    assert polygon[-1] == (0.9563, 0.9972)


def test_clip_path_maps_into_editable_area(area):
    for x, y in build_clip_path(area):
        assert area.x <= x <= area.x + area.width
        assert area.y <= y <= area.y + area.height


def test_clip_mask_covers_sign_face_only(area):
    mask = build_clip_mask((400, 300), area)
    assert mask.size == (400, 300)

    cx, cy = area.to_canvas(0.5, 0.5)
    assert mask.getpixel((int(cx), int(cy))) == 255
    assert mask.getpixel((0, 0)) == 0

    # Left of the curved edge near the bottom of the face
    ox, oy = area.to_canvas(0.005, 0.9)
    assert mask.getpixel((int(ox), int(oy))) == 0

    # Below the face
    bx, by = area.to_canvas(0.5, 1.1)
    assert mask.getpixel((int(bx), int(by))) == 0


def test_clipped_confines_drawing(area):
    canvas = Image.new("RGBA", (400, 300), (255, 0, 0, 255))
    with clipped(canvas, area) as layer:
        layer.paste((0, 0, 255, 255), (0, 0, 400, 300))

    cx, cy = area.to_canvas(0.5, 0.5)
    assert canvas.getpixel((int(cx), int(cy))) == (0, 0, 255, 255)
    assert canvas.getpixel((0, 0)) == (255, 0, 0, 255)
    assert canvas.getpixel((399, 299)) == (255, 0, 0, 255)


def test_clipped_leaves_canvas_untouched_on_error(area):
    canvas = Image.new("RGBA", (400, 300), (255, 0, 0, 255))
    with pytest.raises(RuntimeError):
        with clipped(canvas, area) as layer:
            layer.paste((0, 0, 255, 255), (0, 0, 400, 300))
            raise RuntimeError("boom")

    cx, cy = area.to_canvas(0.5, 0.5)
    assert canvas.getpixel((int(cx), int(cy))) == (255, 0, 0, 255)


def test_clipped_requires_rgba(area):
    with pytest.raises(ValueError):
        with clipped(Image.new("RGB", (400, 300)), area):
            pass
