"""Tests for zoom/pan state and the pan gesture state machine."""

import pytest

from maskpaint.core.viewport import ViewportController, ViewportState, PanState


@pytest.fixture
def controller():
    return ViewportController()


def test_defaults(controller):
    assert controller.state == ViewportState(zoom=1.0, pan_x=0.0, pan_y=0.0)
    assert controller.pan_state == PanState.IDLE


def test_zoom_in_steps_and_clamps(controller):
    values = [controller.zoom_in() for _ in range(12)]
    assert values[:8] == [1.25, 1.5, 1.75, 2.0, 2.25, 2.5, 2.75, 3.0]
    assert values[-1] == 3.0


def test_zoom_out_steps_and_clamps(controller):
    assert controller.zoom_out() == 0.75
    assert controller.zoom_out() == 0.5
    assert controller.zoom_out() == 0.5


@pytest.mark.parametrize("requested,expected", [(10, 3.0), (-1, 0.5), (0.49, 0.5), (1.6, 1.6)])
def test_set_zoom_clamps_silently(controller, requested, expected):
    assert controller.set_zoom(requested) == expected
    assert controller.zoom == expected


def test_pan_gesture_accumulates_deltas(controller):
    controller.begin_pan(100, 100)
    assert controller.is_panning
    assert controller.update_pan(110, 95)
    assert controller.update_pan(130, 90)
    assert controller.state.pan == (30, -10)
    controller.end_pan()
    assert controller.pan_state == PanState.IDLE


def test_moves_without_pan_gesture_are_ignored(controller):
    assert not controller.update_pan(500, 500)
    assert controller.state.pan == (0, 0)

    controller.begin_pan(0, 0)
    controller.update_pan(10, 10)
    controller.end_pan()
    assert not controller.update_pan(999, 999)
    assert controller.state.pan == (10, 10)


def test_new_pan_gesture_starts_from_new_position(controller):
    controller.begin_pan(0, 0)
    controller.update_pan(20, 0)
    controller.end_pan()
    controller.begin_pan(500, 500)
    controller.update_pan(505, 500)
    assert controller.state.pan == (25, 0)


def test_zoom_does_not_change_pan(controller):
    controller.begin_pan(0, 0)
    controller.update_pan(40, 60)
    controller.end_pan()
    controller.zoom_in()
    assert controller.state.pan == (40, 60)


def test_zoom_at_keeps_anchor_fixed(controller):
    controller.begin_pan(0, 0)
    controller.update_pan(30, 20)
    controller.end_pan()
    before = controller.state
    anchor = (230.0, 120.0)
    canvas_before = ((anchor[0] - before.pan_x) / before.zoom, (anchor[1] - before.pan_y) / before.zoom)

    controller.zoom_at(anchor[0], anchor[1], 2.0)
    after = controller.state
    canvas_after = ((anchor[0] - after.pan_x) / after.zoom, (anchor[1] - after.pan_y) / after.zoom)

    assert after.zoom == 2.0
    assert canvas_after == pytest.approx(canvas_before)


def test_zoom_at_clamps(controller):
    assert controller.zoom_at(0, 0, 50) == 3.0


@pytest.mark.parametrize("actions", [
    [],
    ["in", "in", "pan"],
    ["out", "pan", "out", "pan", "in"],
    ["pan", "pan", "in", "in", "in", "in", "in", "in", "in", "in", "in"],
])
def test_reset_view_always_restores_defaults(controller, actions):
    for action in actions:
        if action == "in":
            controller.zoom_in()
        elif action == "out":
            controller.zoom_out()
        else:
            controller.begin_pan(0, 0)
            controller.update_pan(17, -23)
            controller.end_pan()
    controller.reset_view()
    assert controller.state == ViewportState(zoom=1.0, pan_x=0.0, pan_y=0.0)
    controller.reset_view()
    assert controller.state == ViewportState(zoom=1.0, pan_x=0.0, pan_y=0.0)
