import pytest

from content_filter import ContentFilter
from flower_drawer import (
    FlowerDrawing, PALETTE, CANVAS_SIZE, encode_image, decode_image, DATA_URL_PREFIX,
)


@pytest.fixture
def drawing():
    return FlowerDrawing()


def scribble(d):
    d.brush_size = 20
    d.begin_stroke(20, 100)
    d.stroke_to(180, 100)
    d.end_stroke()


def test_starts_transparent(drawing):
    assert drawing.image.size == (CANVAS_SIZE, CANVAS_SIZE)
    assert drawing.coverage() == 0
    assert drawing.color == PALETTE[0]


def test_stroke_paints_in_the_chosen_colour(drawing):
    drawing.color = PALETTE[3]
    scribble(drawing)
    assert drawing.image.getpixel((100, 100)) == PALETTE[3] + (255,)
    assert drawing.image.getpixel((100, 10)) == (0, 0, 0, 0)
    assert not drawing.drawing


def test_stroke_to_without_begin_does_nothing(drawing):
    drawing.stroke_to(50, 50)
    assert drawing.coverage() == 0


def test_clear(drawing):
    scribble(drawing)
    drawing.clear()
    assert drawing.coverage() == 0


def test_empty_canvas_is_refused(drawing):
    message, data = drawing.submit(ContentFilter())
    assert data is None
    assert 'draw something' in message


def test_a_single_dot_is_not_enough(drawing):
    drawing.brush_size = 4
    drawing.begin_stroke(100, 100)
    drawing.end_stroke()
    assert drawing.coverage() < 0.03
    assert drawing.submit(ContentFilter())[1] is None


def test_submission_is_a_png_data_url(drawing):
    scribble(drawing)
    message, data = drawing.submit(ContentFilter())
    assert data.startswith(DATA_URL_PREFIX)
    assert decode_image(data).getpixel((100, 100)) == drawing.image.getpixel((100, 100))


def test_filter_can_refuse(drawing):
    scribble(drawing)
    message, data = drawing.submit(ContentFilter(lambda img: [('weapon', 0.9)]))
    assert data is None
    assert "doesn't look like a flower" in message


def test_decode_accepts_bare_base64(drawing):
    scribble(drawing)
    bare = encode_image(drawing.image)[len(DATA_URL_PREFIX):]
    assert decode_image(bare).size == (CANVAS_SIZE, CANVAS_SIZE)
