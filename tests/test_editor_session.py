"""Tests for the editing session: load states, gestures and export wiring."""

import threading

import numpy as np
import pytest
from PIL import Image

from maskpaint.core.config import EditorConfig
from maskpaint.core.coordinates import PointerInput
from maskpaint.core.editor_session import EditorSession, LoadState
from maskpaint.core.errors import EditorNotReadyError, ImageDecodeError
from maskpaint.core.paint_engine import Tool

from conftest import make_image


def at(x, y):
    return PointerInput.from_mouse(x, y)


def mask_array(result) -> np.ndarray:
    return np.array(result.binary_mask)


def stroke(session, *points):
    session.pointer_down(at(*points[0]))
    for point in points[1:]:
        session.pointer_move(at(*point))
    session.pointer_up()


class TestLoading:
    def test_new_session_is_inert(self):
        session = EditorSession()
        assert session.state == LoadState.EMPTY
        assert not session.pointer_down(at(10, 10))
        assert not session.pointer_move(at(12, 10))
        assert not session.pointer_up()
        assert not session.has_mask()
        with pytest.raises(EditorNotReadyError):
            session.export()
        with pytest.raises(EditorNotReadyError):
            session.clear_mask()

    def test_load_fixes_canvas_size(self, gradient_image):
        session = EditorSession()
        states = []
        session.add_state_changed_callback(states.append)
        source = session.load(gradient_image)
        assert source.size == (800, 533)
        assert session.canvas_size == (800, 533)
        assert states == [LoadState.LOADING, LoadState.READY]
        assert session.is_ready

    def test_max_bound_comes_from_config(self):
        session = EditorSession(EditorConfig(max_bound=400))
        session.load(make_image(1200, 800))
        assert session.canvas_size == (400, 267)

    def test_decode_failure_sets_failed_state(self, tmp_path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"nope")
        session = EditorSession()
        states = []
        session.add_state_changed_callback(states.append)
        with pytest.raises(ImageDecodeError):
            session.load(broken)
        assert session.state == LoadState.FAILED
        assert "broken.png" in session.error
        assert states == [LoadState.LOADING, LoadState.FAILED]
        assert not session.pointer_down(at(1, 1))

    def test_load_async_reaches_ready(self, image_file):
        session = EditorSession()
        thread = session.load_async(image_file)
        thread.join(timeout=10)
        assert session.state == LoadState.READY
        assert session.canvas_size == (800, 533)

    def test_load_async_failure_is_reported(self, tmp_path):
        session = EditorSession()
        states = []
        session.add_state_changed_callback(states.append)
        session.load_async(tmp_path / "missing.png").join(timeout=10)
        assert session.state == LoadState.FAILED
        assert states[-1] == LoadState.FAILED
        assert session.error

    def test_load_async_uses_dispatch(self, image_file):
        scheduled = []
        session = EditorSession()
        session.load_async(image_file, dispatch=lambda func, *args: scheduled.append((func, args))).join(timeout=10)
        # Nothing happens until the owner runs the scheduled call
        assert session.state == LoadState.LOADING
        assert not session.pointer_down(at(5, 5))
        func, args = scheduled[0]
        assert func(*args) is False
        assert session.state == LoadState.READY

    def test_stale_async_result_is_discarded(self, image_file):
        scheduled = []
        session = EditorSession()
        session.load_async(image_file, dispatch=lambda func, *args: scheduled.append((func, args))).join(timeout=10)
        session.load(make_image(300, 900))
        func, args = scheduled[0]
        func(*args)
        assert session.canvas_size == (267, 800)

    def test_new_image_releases_previous_layers(self, session, gradient_image):
        old_layers = session._layers
        session.load(make_image(300, 900))
        assert not old_layers.base.available
        assert not old_layers.mask.available
        assert session.canvas_size == (267, 800)

    def test_close_releases_layers(self, gradient_image):
        session = EditorSession()
        session.load(gradient_image)
        layers = session._layers
        session.close()
        assert session.state == LoadState.CLOSED
        assert not layers.base.available
        assert not layers.mask.available
        with pytest.raises(EditorNotReadyError):
            session.load(gradient_image)

    def test_oversized_image_fails_sync_load(self, tmp_path, monkeypatch):
        path = tmp_path / "huge.png"
        make_image(400, 400).save(path)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        session = EditorSession()
        with pytest.raises(ImageDecodeError):
            session.load(path)
        assert session.state == LoadState.FAILED
        assert "huge.png" in session.error

    def test_oversized_image_fails_async_load(self, tmp_path, monkeypatch):
        path = tmp_path / "huge.png"
        make_image(400, 400).save(path)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        session = EditorSession()
        states = []
        session.add_state_changed_callback(states.append)
        session.load_async(path).join(timeout=10)
        assert session.state == LoadState.FAILED
        assert states == [LoadState.LOADING, LoadState.FAILED]

    def test_unexpected_decoder_error_fails_load(self, gradient_image, monkeypatch):
        session = EditorSession()

        def explode(locator):
            raise RuntimeError("decoder crashed")

        monkeypatch.setattr(session._fitter, "decode", explode)
        with pytest.raises(ImageDecodeError, match="decoder crashed"):
            session.load(gradient_image)
        assert session.state == LoadState.FAILED

        session.load_async(gradient_image).join(timeout=10)
        assert session.state == LoadState.FAILED
        assert "decoder crashed" in session.error

    def test_dispatched_load_notifies_on_owner_thread(self, image_file):
        scheduled = []
        threads = []
        session = EditorSession()
        session.load_async(image_file, dispatch=lambda func, *args: scheduled.append((func, args))).join(timeout=10)
        session.add_state_changed_callback(lambda state: threads.append(threading.current_thread()))
        func, args = scheduled[0]
        func(*args)
        assert session.state == LoadState.READY
        assert threads == [threading.current_thread()]

    def test_close_discards_pending_async_load(self, image_file):
        scheduled = []
        session = EditorSession()
        session.load_async(image_file, dispatch=lambda func, *args: scheduled.append((func, args))).join(timeout=10)
        session.close()
        func, args = scheduled[0]
        func(*args)
        assert session.state == LoadState.CLOSED
        assert session.source is None


class TestPainting:
    def test_stroke_exports_once_on_pointer_up(self, session, exports):
        session.pointer_down(at(100, 100))
        session.pointer_move(at(105, 100))
        session.pointer_move(at(110, 100))
        assert exports == []
        assert session.pointer_up()
        assert len(exports) == 1
        assert session.last_export is exports[0]
        assert exports[0].size == (800, 533)

    def test_pointer_leave_ends_stroke(self, session, exports):
        session.pointer_down(at(100, 100))
        assert session.pointer_leave()
        assert len(exports) == 1
        assert not session.gesture_active

        # Re-entering without a fresh pointer-down paints nothing
        assert not session.pointer_move(at(300, 300))
        assert mask_array(session.export())[300, 300] == 0
        assert len(exports) == 1

    def test_pointer_up_without_gesture_does_nothing(self, session, exports):
        assert not session.pointer_up()
        assert not session.pointer_leave()
        assert exports == []

    def test_brush_size_is_clamped(self, session):
        session.brush_size = 3
        assert session.brush_size == 5
        session.brush_size = 400
        assert session.brush_size == 100

    def test_paint_respects_zoom_and_pan(self, session, exports):
        session.zoom_in()
        session.zoom_in()  # 1.5
        session.tool = Tool.PAN
        stroke(session, (0, 0), (30, 15))
        assert exports == []
        assert session.viewport.pan == (30, 15)

        session.tool = Tool.BRUSH
        # canvas (200, 100) -> screen 30 + 1.5 * 200, 15 + 1.5 * 100
        stroke(session, (330, 165))
        mask = mask_array(exports[-1])
        assert mask[100, 200] == 255
        assert mask[165, 330] == 0

    def test_zoom_change_mid_stroke_is_honoured(self, session, exports):
        session.pointer_down(at(100, 100))
        session.zoom_in()  # 1.25 while the stroke is active
        session.pointer_move(at(250, 250))
        session.pointer_up()
        mask = mask_array(exports[-1])
        assert mask[100, 100] == 255
        assert mask[200, 200] == 255
        assert mask[250, 250] == 0

    def test_bounds_origin_is_applied(self, session, exports):
        session.mapper.set_bounds_origin(40, 60)
        stroke(session, (140, 160))
        assert mask_array(exports[-1])[100, 100] == 255

    def test_has_mask(self, session):
        assert not session.has_mask()
        stroke(session, (50, 50))
        assert session.has_mask()

    def test_mask_and_base_images_share_size(self, session):
        assert session.mask_image().size == session.base_image().size == (800, 533)


class TestToolExclusivity:
    def test_pan_gesture_never_paints(self, session, exports):
        session.tool = Tool.PAN
        stroke(session, (100, 100), (140, 120), (160, 130))
        assert exports == []
        assert not session.has_mask()
        assert session.viewport.pan == (60, 30)

    def test_tool_is_latched_for_the_gesture(self, session, exports):
        session.pointer_down(at(100, 100))
        session.tool = Tool.PAN
        session.pointer_move(at(150, 100))
        session.pointer_up()
        assert session.viewport.pan == (0, 0)
        assert mask_array(exports[-1])[100, 150] == 255

    def test_paint_gesture_does_not_pan(self, session):
        stroke(session, (100, 100), (200, 200))
        assert session.viewport.pan == (0, 0)

    def test_pan_ends_on_leave(self, session):
        session.tool = Tool.PAN
        session.pointer_down(at(0, 0))
        session.pointer_move(at(10, 10))
        session.pointer_leave()
        assert not session.pointer_move(at(100, 100))
        assert session.viewport.pan == (10, 10)


class TestViewControls:
    def test_reset_view_keeps_paint(self, session):
        stroke(session, (50, 50))
        session.zoom_in()
        session.reset_view()
        assert session.viewport.zoom == 1.0
        assert session.viewport.pan == (0, 0)
        assert session.has_mask()

    def test_zoom_bounds(self, session):
        for _ in range(20):
            session.zoom_in()
        assert session.viewport.zoom == 3.0
        for _ in range(20):
            session.zoom_out()
        assert session.viewport.zoom == 0.5
        assert session.set_zoom(9) == 3.0

    def test_zoom_at_pointer(self, session):
        session.mapper.set_bounds_origin(10, 10)
        pointer = at(210, 110)
        before = session.to_canvas_space(pointer)
        session.zoom_at(pointer, 2.0)
        after = session.to_canvas_space(pointer)
        assert (after.x, after.y) == pytest.approx((before.x, before.y))


class TestClear:
    def test_clear_exports_black_mask_and_clean_preview(self, session, exports):
        stroke(session, (100, 100), (120, 110))
        session.clear_mask()
        assert len(exports) == 2
        result = exports[-1]
        assert not mask_array(result).any()
        assert np.array_equal(np.array(result.composite_preview), np.array(session.base_image()))
        assert not session.has_mask()

    def test_clear_during_stroke_ends_it(self, session, exports):
        session.pointer_down(at(100, 100))
        session.clear_mask()
        assert not session.gesture_active
        assert not session.pointer_move(at(120, 100))
        assert not mask_array(session.export()).any()


def test_scenario_paint_then_erase():
    session = EditorSession()
    session.load(make_image(1200, 800))
    assert session.canvas_size == (800, 533)

    session.tool = Tool.BRUSH
    session.brush_size = 30
    stroke(session, (400, 266))
    mask = mask_array(session.last_export)
    assert set(np.unique(mask)) == {0, 255}
    ys, xs = np.nonzero(mask)
    assert xs.min() >= 385 and xs.max() <= 415
    assert ys.min() >= 251 and ys.max() <= 281
    assert xs.max() - xs.min() + 1 == pytest.approx(30, abs=1)
    assert mask[266, 400] == 255

    session.tool = Tool.ERASER
    session.brush_size = 50
    stroke(session, (400, 266))
    assert not mask_array(session.last_export).any()
    session.close()
