import pytest

from billboard.layout import (
    Bounds,
    EditableArea,
    GeometryMapper,
    MappedBox,
    clamp_position,
    contain_fit,
    resize_from_corner,
)


@pytest.fixture
def area():
    return EditableArea.for_canvas(2000, 1000)


def test_editable_area_fractions(area):
    assert area.x == pytest.approx(370)
    assert area.y == pytest.approx(205)
    assert area.width == pytest.approx(1260)
    assert area.height == pytest.approx(427.5)


def test_scale_ratio_is_area_width_over_billboard_width(bounds, area):
    mapper = GeometryMapper(bounds, area)
    assert mapper.scale_ratio == pytest.approx(1260 / 600)


@pytest.mark.parametrize("x,y,w,h", [
    (100, 50, 60, 60),
    (250, 120, 300, 100),
    (640, 290, 60, 60),
])
def test_map_box_uses_one_ratio(bounds, area, x, y, w, h):
    mapper = GeometryMapper(bounds, area)
    ratio = mapper.scale_ratio
    box = mapper.map_box(x, y, w, h)

    assert box.x == pytest.approx(area.x + (x - bounds.left) * ratio)
    assert box.y == pytest.approx(area.y + (y - bounds.top) * ratio)
    assert box.width == pytest.approx(w * ratio)
    assert box.height == pytest.approx(h * ratio)


def test_font_size_scales_with_same_ratio(bounds, area):
    mapper = GeometryMapper(bounds, area)
    assert mapper.scale_font(24) == pytest.approx(24 * mapper.scale_ratio)


def test_zero_width_bounds_rejected(area):
    with pytest.raises(ValueError):
        GeometryMapper(Bounds(left=10, top=0, right=10, bottom=100), area)


def test_contain_fit_same_aspect_fills_box():
    box = MappedBox(x=10, y=20, width=200, height=100)
    placed = contain_fit(400, 200, box)
    assert placed == MappedBox(x=10, y=20, width=200, height=100)


def test_contain_fit_wide_image_centres_vertically():
    placed = contain_fit(400, 100, MappedBox(x=0, y=0, width=200, height=200))
    assert placed.width == pytest.approx(200)
    assert placed.height == pytest.approx(50)
    assert placed.x == pytest.approx(0)
    assert placed.y == pytest.approx(75)


def test_contain_fit_tall_image_centres_horizontally():
    placed = contain_fit(100, 400, MappedBox(x=0, y=0, width=200, height=200))
    assert placed.width == pytest.approx(50)
    assert placed.height == pytest.approx(200)
    assert placed.x == pytest.approx(75)
    assert placed.y == pytest.approx(0)


def test_clamp_position_keeps_box_inside(bounds):
    assert clamp_position(50, 20, 100, 100, bounds) == (100, 50)
    assert clamp_position(690, 340, 100, 100, bounds) == (600, 250)
    assert clamp_position(300, 100, 100, 100, bounds) == (300, 100)


def test_resize_bottom_right_grows_from_top_left(bounds):
    start = MappedBox(x=200, y=100, width=100, height=50)
    box = resize_from_corner("br", start, 60, bounds)
    assert (box.x, box.y) == (200, 100)
    assert box.width == pytest.approx(160)
    assert box.height == pytest.approx(80)


def test_resize_top_left_anchors_bottom_right(bounds):
    start = MappedBox(x=200, y=100, width=200, height=100)
    box = resize_from_corner("tl", start, 50, bounds)
    assert box.width == pytest.approx(150)
    assert box.height == pytest.approx(75)
    assert box.x + box.width == pytest.approx(400)
    assert box.y + box.height == pytest.approx(200)


@pytest.mark.parametrize("corner", ["tl", "tr", "bl", "br"])
@pytest.mark.parametrize("delta", [-300, -40, 0, 25, 500])
def test_resize_preserves_aspect_ratio(bounds, corner, delta):
    start = MappedBox(x=300, y=150, width=120, height=80)
    box = resize_from_corner(corner, start, delta, bounds)
    assert box.width / box.height == pytest.approx(start.width / start.height)


def test_resize_clamps_to_minimum_size(bounds):
    start = MappedBox(x=200, y=100, width=120, height=60)
    box = resize_from_corner("br", start, -200, bounds)
    assert min(box.width, box.height) == pytest.approx(50)
    assert box.width >= 50 and box.height >= 50
    assert box.width / box.height == pytest.approx(2)


def test_resize_stays_inside_bounds(bounds):
    start = MappedBox(x=600, y=250, width=80, height=80)
    box = resize_from_corner("br", start, 200, bounds)
    assert box.width == pytest.approx(280)
    assert box.x >= bounds.left and box.x + box.width <= bounds.right
    assert box.y >= bounds.top and box.y + box.height <= bounds.bottom


def test_resize_unknown_corner(bounds):
    with pytest.raises(ValueError):
        resize_from_corner("mid", MappedBox(0, 0, 100, 100), 10, bounds)
