from PIL import Image

from guff.reconcile import (
    TrimmedCell,
    center_offset,
    reconcile_frames,
    recenter,
    shared_canvas_size,
    trim_background,
)

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def _cell_with_square(size, square, origin, color=BLACK):
    image = Image.new("RGB", (size, size), WHITE)
    image.paste(Image.new("RGB", (square, square), color), origin)
    return image


def test_trim_background_crops_to_content():
    cell = _cell_with_square(30, 10, (5, 8))

    trimmed = trim_background(cell)

    assert (trimmed.width, trimmed.height) == (10, 10)
    assert trimmed.image.getpixel((0, 0)) == BLACK


def test_trim_background_ignores_near_background_noise():
    cell = _cell_with_square(30, 10, (10, 10))
    cell.putpixel((1, 1), (240, 240, 240))

    trimmed = trim_background(cell, threshold=20)

    assert (trimmed.width, trimmed.height) == (10, 10)


def test_trim_background_keeps_blank_cell_whole():
    trimmed = trim_background(Image.new("RGB", (12, 7), WHITE))

    assert (trimmed.width, trimmed.height) == (12, 7)


def test_shared_canvas_and_offsets():
    small = TrimmedCell(Image.new("RGB", (10, 10), BLACK), 10, 10)
    large = TrimmedCell(Image.new("RGB", (20, 20), BLACK), 20, 20)

    canvas = shared_canvas_size([small, large])

    assert canvas == (20, 20)
    assert center_offset(canvas, small) == (5, 5)
    assert center_offset(canvas, large) == (0, 0)


def test_center_offset_rounds_half_up():
    cell = TrimmedCell(Image.new("RGB", (3, 4), BLACK), 3, 4)

    assert center_offset((8, 8), cell) == (3, 2)


def test_recenter_pastes_onto_white_canvas():
    small = TrimmedCell(Image.new("RGB", (10, 10), BLACK), 10, 10)
    large = TrimmedCell(Image.new("RGB", (20, 20), BLACK), 20, 20)

    frames = recenter([small, large])

    assert [f.size for f in frames] == [(20, 20), (20, 20)]
    assert frames[0].getpixel((4, 4)) == WHITE
    assert frames[0].getpixel((5, 5)) == BLACK
    assert frames[0].getpixel((14, 14)) == BLACK
    assert frames[0].getpixel((15, 15)) == WHITE


def test_reconcile_frames_keeps_subject_scale_consistent():
    small_subject = _cell_with_square(40, 10, (15, 15))
    large_subject = _cell_with_square(40, 20, (3, 17))

    frames = reconcile_frames([small_subject, large_subject], (40, 40))

    assert [f.size for f in frames] == [(40, 40), (40, 40)]
    # small square sits in a 20x20 canvas and is doubled to 20x20 output pixels
    assert min(frames[0].getpixel((2, 2))) > 225
    assert max(frames[0].getpixel((20, 20))) < 30
    assert max(frames[1].getpixel((2, 2))) < 30
