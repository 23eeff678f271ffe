import numpy as np
import pytest
from PIL import Image

from canvas import Canvas
from shapes import Shape
from tool_config import Tool

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def _changed(canvas):
    """Mask of pixels that are no longer opaque white."""
    return ~(canvas.pixels == WHITE).all(axis=-1)


def test_new_canvas_is_opaque_white(canvas):
    assert (canvas.width, canvas.height) == (5, 5)
    assert canvas.data.shape == (5 * 5 * 4,)
    assert (canvas.data == 255).all()
    assert canvas.done.shape == (5, 5)
    assert not canvas.done.any()


def test_data_is_a_view_of_the_buffer(canvas):
    canvas.data[0] = 7
    assert canvas.pixels[0, 0, 0] == 7


def test_resize_notifies_listeners(canvas):
    calls = []
    canvas.add_resize_listener(lambda w, h: calls.append((w, h)))
    canvas.resize(8, 3)
    assert calls == [(8, 3)]
    assert canvas.pixels.shape == (3, 8, 4)
    assert canvas.done.shape == (3, 8)


def test_removed_listener_is_not_called(canvas):
    calls = []
    listener = lambda w, h: calls.append((w, h))
    canvas.add_resize_listener(listener)
    canvas.remove_resize_listener(listener)
    canvas.resize(2, 2)
    assert calls == []


def test_resize_with_image_draws_at_origin():
    image = Image.new("RGBA", (2, 2), (255, 0, 0, 128))
    canvas = Canvas(4, 3, image=image)
    assert (canvas.pixels[:2, :2] == (255, 0, 0, 128)).all()
    assert (canvas.pixels[2:, :] == 0).all()
    assert (canvas.pixels[:, 2:] == 0).all()


def test_resize_with_larger_rgb_image_crops():
    image = Image.new("RGB", (10, 10), (0, 0, 255))
    canvas = Canvas(3, 2, image=image)
    assert (canvas.pixels == (0, 0, 255, 255)).all()


@pytest.mark.parametrize("width, height", [(0, 4), (4, 0), (-1, 3)])
def test_invalid_size(width, height):
    with pytest.raises(ValueError):
        Canvas(width, height)


def test_set_color(canvas):
    assert canvas.set_color(1, 2, 3, 4)
    assert canvas.color == (1, 2, 3, 4)
    assert not canvas.set_color(256, 0, 0)
    assert not canvas.set_color(0, 0, 0, -1)
    assert not canvas.set_color(0.5, 0, 0)
    assert not canvas.set_color(True, 0, 0)
    assert not canvas.set_color(0, 0, 0, False)
    assert canvas.color == (1, 2, 3, 4)


def test_brush_paints_shape(canvas):
    canvas.set_color(*RED)
    canvas.config.set_thickness(1)
    canvas.start_stroke()
    canvas.tool_action(2, 2)

    expected = np.zeros((5, 5), dtype=bool)
    expected[2, 1:4] = True
    expected[1:4, 2] = True
    np.testing.assert_array_equal(_changed(canvas), expected)
    assert (canvas.pixels[expected] == RED).all()


@pytest.mark.parametrize("shape, painted", [
    (Shape.CIRCLE, 13),
    (Shape.SQUARE, 25),
    (Shape.DIAMOND, 5),
])
def test_brush_footprint_per_shape(shape, painted):
    canvas = Canvas(7, 7)
    canvas.config.set_shape(shape)
    canvas.config.set_thickness(2)
    canvas.start_stroke()
    canvas.tool_action(3, 3)
    assert _changed(canvas).sum() == painted


def test_stroke_mask_composites_each_pixel_once(canvas):
    canvas.config.set_opacity(50)
    canvas.start_stroke()
    canvas.tool_action(2, 2)
    canvas.tool_action(2, 2)
    np.testing.assert_array_equal(canvas.pixels[2, 2], [128, 128, 128, 255])

    canvas.start_stroke()
    canvas.tool_action(2, 2)
    np.testing.assert_array_equal(canvas.pixels[2, 2], [64, 64, 64, 255])


def test_tool_action_clips_to_buffer(canvas):
    canvas.set_color(*RED)
    canvas.config.set_thickness(2)
    canvas.start_stroke()
    canvas.tool_action(0, 0)
    assert tuple(canvas.pixels[0, 0]) == RED
    assert tuple(canvas.pixels[2, 2]) == WHITE

    before = canvas.pixels.copy()
    canvas.tool_action(-10, -10)
    canvas.tool_action(40, 2)
    np.testing.assert_array_equal(canvas.pixels, before)


def test_airbrush_zero_density_still_uses_up_the_stroke(canvas):
    canvas.config.set_tool("airbrush")
    canvas.config.set_density(0)
    canvas.config.set_thickness(2)
    canvas.start_stroke()
    canvas.tool_action(2, 2)
    assert not _changed(canvas).any()
    assert canvas.done[2, 2]

    canvas.config.set_density(100)
    canvas.tool_action(2, 2)
    assert not _changed(canvas).any()

    canvas.start_stroke()
    canvas.tool_action(2, 2)
    assert _changed(canvas).sum() == 13


def test_airbrush_sprays_part_of_the_footprint():
    canvas = Canvas(21, 21, rng=np.random.default_rng(3))
    canvas.config.set_tool(Tool.AIRBRUSH)
    canvas.config.set_thickness(10)
    canvas.config.set_density(50)
    canvas.start_stroke()
    canvas.tool_action(10, 10)
    painted = _changed(canvas).sum()
    assert 0 < painted < canvas.done.sum()


def test_airbrush_is_reproducible_with_seeded_rng():
    results = []
    for _ in range(2):
        canvas = Canvas(9, 9, rng=np.random.default_rng(42))
        canvas.config.set_tool("airbrush")
        canvas.config.set_thickness(4)
        canvas.start_stroke()
        canvas.tool_action(4, 4)
        results.append(canvas.pixels.copy())
    np.testing.assert_array_equal(results[0], results[1])


def test_eraser_decays_alpha_once_per_stroke(canvas):
    canvas.config.set_tool("eraser")
    canvas.config.set_opacity(50)
    canvas.config.set_thickness(0)
    canvas.start_stroke()
    canvas.tool_action(1, 1)
    canvas.tool_action(1, 1)
    np.testing.assert_array_equal(canvas.pixels[1, 1], [255, 255, 255, 128])

    canvas.start_stroke()
    canvas.tool_action(1, 1)
    np.testing.assert_array_equal(canvas.pixels[1, 1], [255, 255, 255, 64])


def test_tool_line_leaves_no_gaps():
    canvas = Canvas(5, 3)
    canvas.config.set_thickness(0)
    canvas.start_stroke()
    canvas.tool_line(0, 0, 4, 0)
    changed = _changed(canvas)
    assert changed[0].all()
    assert not changed[1:].any()


def test_filler_uses_colour_and_opacity(canvas):
    canvas.set_color(*RED)
    canvas.config.set_opacity(50)
    assert canvas.filler(2, 2) == 25
    assert (canvas.pixels == (255, 0, 0, 128)).all()


def test_tool_action_dispatches_fill(canvas):
    canvas.set_color(*RED)
    canvas.config.set_tool("filler")
    canvas.tool_action(4, 4)
    assert (canvas.pixels == RED).all()


def test_picker_exact_pixel(canvas):
    canvas.pixels[3, 1] = (10, 20, 30, 40)
    canvas.config.set_thickness(1)
    assert canvas.picker(1, 3) == (10, 20, 30, 40)
    assert canvas.color == (10, 20, 30, 40)


def test_picker_averages_over_shape(canvas):
    canvas.pixels[2, 2] = (0, 0, 0, 255)
    canvas.config.set_thickness(2)
    before = canvas.pixels.copy()
    # 13 pixels in the circle, one of them black: 12 * 255 // 13 == 235
    assert canvas.picker(2, 2) == (235, 235, 235, 255)
    np.testing.assert_array_equal(canvas.pixels, before)


def test_picker_via_tool_action(canvas):
    canvas.pixels[0, 0] = (1, 2, 3, 4)
    canvas.config.set_tool("picker")
    canvas.config.set_thickness(0)
    canvas.tool_action(0, 0)
    assert canvas.color == (1, 2, 3, 4)


def test_picker_outside_buffer_keeps_colour(canvas):
    canvas.set_color(9, 9, 9, 9)
    canvas.config.set_thickness(1)
    assert canvas.picker(7, 0) == (9, 9, 9, 9)
    canvas.config.set_thickness(3)
    assert canvas.picker(-20, -20) == (9, 9, 9, 9)


def test_undo_redo_round_trip(canvas):
    before = canvas.pixels.copy()
    canvas.snapshot()
    canvas.set_color(*RED)
    canvas.start_stroke()
    canvas.tool_action(2, 2)
    after = canvas.pixels.copy()

    assert canvas.undo()
    np.testing.assert_array_equal(canvas.pixels, before)
    assert canvas.redo()
    np.testing.assert_array_equal(canvas.pixels, after)


def test_new_snapshot_invalidates_redo(canvas):
    canvas.snapshot()
    canvas.filler(0, 0)
    assert canvas.undo()
    canvas.snapshot()
    assert not canvas.redo()


def test_undo_on_empty_history(canvas):
    before = canvas.pixels.copy()
    assert not canvas.can_undo()
    assert not canvas.undo()
    assert not canvas.redo()
    np.testing.assert_array_equal(canvas.pixels, before)


def test_snapshot_is_not_affected_by_later_strokes(canvas):
    canvas.snapshot()
    canvas.tool_action(2, 2)
    entry = canvas.history.undo_stack[-1]
    assert (entry.pixels == 255).all()
    assert canvas.can_undo()


def test_undo_across_resize_restores_dimensions(canvas):
    calls = []
    canvas.add_resize_listener(lambda w, h: calls.append((w, h)))
    canvas.snapshot()
    canvas.resize(2, 3)
    assert canvas.undo()
    assert (canvas.width, canvas.height) == (5, 5)
    assert canvas.done.shape == (5, 5)
    assert calls == [(2, 3), (5, 5)]


def test_history_limit():
    canvas = Canvas(2, 2, history_limit=1)
    canvas.snapshot()
    canvas.snapshot()
    assert canvas.undo()
    assert not canvas.undo()


def test_unknown_tool_is_a_programming_error(canvas):
    canvas.config.tool = "smudge"
    with pytest.raises(ValueError):
        canvas.tool_action(2, 2)


def test_unknown_shape_is_a_programming_error(canvas):
    canvas.config.shape = "star"
    with pytest.raises(ValueError):
        canvas.tool_action(2, 2)
