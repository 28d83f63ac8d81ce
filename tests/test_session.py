import pytest

from billboard.layout import Bounds
from billboard.presets import ElementKind
from billboard.session import (
    BillboardSession,
    ElementNotFoundError,
    InvalidActionError,
    SessionNotFoundError,
    SessionStore,
)


@pytest.fixture
def session(bounds):
    return BillboardSession(bounds=bounds)


def test_add_person_keeps_natural_aspect(session, bounds):
    person = session.add_person("/images/people/a.png", (300, 600))
    assert person.kind is ElementKind.PERSON
    assert person.height == pytest.approx(150)
    assert person.width == pytest.approx(75)
    assert (person.x, person.y) == (bounds.left + 50, bounds.top + 50)
    assert session.selected_id == person.id


def test_add_logo_starts_near_right_edge(session, bounds):
    logo = session.add_logo("/images/logos/a.png", (100, 100))
    assert logo.height == pytest.approx(120)
    assert logo.x == pytest.approx(bounds.right - 200)
    assert logo.y == pytest.approx(bounds.top + 50)


def test_narrow_image_grows_to_minimum_size(session):
    person = session.add_person("/images/people/thin.png", (30, 100))
    assert person.width == pytest.approx(50)
    assert person.width / person.height == pytest.approx(0.3)


def test_add_text_defaults_and_stacking(session, bounds):
    first = session.add_text()
    second = session.add_text()
    assert first.content == "EDIT ME"
    assert first.font_size == 24
    assert (first.width, first.height) == (300, 100)
    assert (first.x, first.y) == (bounds.left + 50, bounds.top + 50)
    assert (second.x, second.y) == (bounds.left + 70, bounds.top + 70)
    assert session.selected_id == second.id


def test_ids_are_never_reused(session):
    first = session.add_text()
    session.delete(first.id)
    second = session.add_text()
    assert second.id != first.id


def test_actions_require_bounds():
    session = BillboardSession()
    with pytest.raises(InvalidActionError):
        session.add_text()


def test_single_selection(session):
    a = session.add_text()
    b = session.add_text()
    session.select(a.id)
    assert session.selected_id == a.id
    session.select(None)
    assert session.selected is None
    with pytest.raises(ElementNotFoundError):
        session.select("missing")
    assert b.id != a.id


def test_move_is_clamped_to_bounds(session, bounds):
    text = session.add_text()
    session.move(text.id, -1000, 10000)
    assert text.x == bounds.left
    assert text.y == bounds.bottom - text.height


def test_resize_keeps_aspect_and_minimum(session):
    person = session.add_person("/images/people/a.png", (200, 100))
    ratio = person.width / person.height
    session.resize(person.id, "br", -1000)
    assert person.width / person.height == pytest.approx(ratio)
    assert min(person.width, person.height) == pytest.approx(50)


def test_streamed_drag_resizes_from_drag_start(session):
    person = session.add_person("/images/people/sq.png", (100, 100))
    assert person.width == pytest.approx(150)

    session.begin_resize(person.id)
    for total_dx in (5, 10, 20):
        session.resize(person.id, "br", total_dx)
    assert person.width == pytest.approx(170)
    assert person.height == pytest.approx(170)
    assert (person.x, person.y) == (150, 100)

    session.end_resize()
    session.resize(person.id, "br", 10)
    assert person.width == pytest.approx(180)


def test_drag_start_only_applies_to_its_element(session):
    first = session.add_person("/images/people/sq.png", (100, 100))
    second = session.add_logo("/images/logos/sq.png", (100, 100))
    session.begin_resize(first.id)

    session.resize(second.id, "tl", -10)
    session.resize(second.id, "tl", -10)
    assert second.width == pytest.approx(140)


def test_begin_resize_unknown_element(session):
    with pytest.raises(ElementNotFoundError):
        session.begin_resize("person-42")


def test_resize_rejects_unknown_corner(session):
    text = session.add_text()
    with pytest.raises(InvalidActionError):
        session.resize(text.id, "middle", 10)


def test_update_text_sets_plain_upper_content(session):
    text = session.add_text()
    session.update_text(text.id, "<p>Hello</p><p><strong>World</strong></p>")
    assert text.content == "HELLO\nWORLD"
    assert text.styled_content == "<p>Hello</p><p><strong>World</strong></p>"


def test_text_only_actions_reject_images(session):
    logo = session.add_logo("/images/logos/a.png", (100, 100))
    with pytest.raises(InvalidActionError):
        session.update_text(logo.id, "<p>x</p>")
    with pytest.raises(InvalidActionError):
        session.update_font_size(logo.id, 30)


def test_delete_selected_clears_selection(session):
    session.add_text()
    selected = session.add_text()
    deleted = session.delete_selected()
    assert deleted.id == selected.id
    assert session.selected_id is None
    assert len(session.elements) == 1
    assert session.delete_selected() is None


def test_snapshot_is_isolated_from_later_edits(session):
    text = session.add_text()
    snapshot = session.snapshot()
    session.move(text.id, text.x + 100, text.y)
    session.add_text()
    assert len(snapshot) == 1
    assert snapshot[0].x != text.x


def test_invalid_bounds_rejected(session):
    with pytest.raises(InvalidActionError):
        session.update_bounds(Bounds(left=10, top=10, right=10, bottom=50))


def test_session_store():
    store = SessionStore()
    session = store.create()
    assert store.get(session.id) is session
    store.remove(session.id)
    with pytest.raises(SessionNotFoundError):
        store.get(session.id)
