"""Mask painting canvas widget using Cairo rendering."""

from typing import Optional, Callable
import io
import logging
import math

import gi
gi.require_version("Gtk", "4.0")
from gi.repository import Gtk, Gdk, GdkPixbuf

from PIL import Image

from maskpaint.core.coordinates import PointerInput
from maskpaint.core.editor_session import EditorSession, LoadState
from maskpaint.core.errors import MaskPaintError
from maskpaint.core.mask_exporter import ExportResult
from maskpaint.core.paint_engine import Tool
from maskpaint.utils.constants import ZOOM_STEP

logger = logging.getLogger(__name__)


def pil_to_pixbuf(image: Image.Image) -> GdkPixbuf.Pixbuf:
    """Convert a PIL image to a GdkPixbuf via an in-memory PNG."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    buffer.seek(0)

    loader = GdkPixbuf.PixbufLoader.new_with_type("png")
    loader.write(buffer.read())
    loader.close()
    return loader.get_pixbuf()


class MaskCanvas(Gtk.DrawingArea):
    """Displays the base image with the mask overlay and feeds pointer input to the session."""

    BACKGROUND = (0.1, 0.1, 0.1)
    CURSOR_COLOR = (1.0, 0.0, 0.4, 0.8)

    def __init__(
        self,
        session: EditorSession,
        on_mask_complete: Optional[Callable[[ExportResult], None]] = None,
        on_view_changed: Optional[Callable[[float], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        super().__init__()
        self._session = session
        self._on_mask_complete = on_mask_complete
        self._on_view_changed = on_view_changed
        self._on_error = on_error

        self._base_pixbuf: Optional[GdkPixbuf.Pixbuf] = None
        self._mask_pixbuf: Optional[GdkPixbuf.Pixbuf] = None

        # Cursor position for the brush preview
        self._cursor_x: float = 0
        self._cursor_y: float = 0
        self._cursor_inside: bool = False

        # GestureDrag reports offsets from the drag start
        self._drag_start_x: float = 0
        self._drag_start_y: float = 0

        self.add_css_class("mask-canvas")
        self.set_hexpand(True)
        self.set_vexpand(True)
        self.set_focusable(True)
        self.set_draw_func(self._on_draw)

        self._session.add_state_changed_callback(self._on_session_state_changed)
        self._session.add_mask_complete_callback(self._on_session_mask_complete)

        self._setup_event_controllers()

    @property
    def session(self) -> EditorSession:
        return self._session

    def _setup_event_controllers(self):
        """Set up pointer, scroll and key controllers."""
        # Drag controller for strokes and pan gestures (mouse and single touch)
        drag_controller = Gtk.GestureDrag()
        drag_controller.connect("drag-begin", self._on_drag_begin)
        drag_controller.connect("drag-update", self._on_drag_update)
        drag_controller.connect("drag-end", self._on_drag_end)
        self.add_controller(drag_controller)

        # Motion controller for the brush preview and pointer-leave
        motion_controller = Gtk.EventControllerMotion()
        motion_controller.connect("motion", self._on_motion)
        motion_controller.connect("enter", self._on_enter)
        motion_controller.connect("leave", self._on_leave)
        self.add_controller(motion_controller)

        # Scroll controller for zoom
        scroll_controller = Gtk.EventControllerScroll()
        scroll_controller.set_flags(Gtk.EventControllerScrollFlags.VERTICAL)
        scroll_controller.connect("scroll", self._on_scroll)
        self.add_controller(scroll_controller)

        # Key controller for keyboard zoom
        key_controller = Gtk.EventControllerKey()
        key_controller.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_controller)

    def _report_error(self, error: MaskPaintError):
        logger.error("%s", error)
        if self._on_error:
            self._on_error(str(error))

    # Session notifications
    def _on_session_state_changed(self, state: LoadState):
        """Refresh cached pixbufs when a new image becomes ready or goes away."""
        self._mask_pixbuf = None
        self._base_pixbuf = None
        if state == LoadState.READY:
            self._base_pixbuf = pil_to_pixbuf(self._session.base_image())
            self._refresh_mask_pixbuf()
        self._notify_view_changed()
        self.queue_draw()

    def _on_session_mask_complete(self, result: ExportResult):
        self._refresh_mask_pixbuf()
        self.queue_draw()
        if self._on_mask_complete:
            self._on_mask_complete(result)

    def _refresh_mask_pixbuf(self):
        if not self._session.is_ready:
            self._mask_pixbuf = None
            return
        self._mask_pixbuf = pil_to_pixbuf(self._session.mask_image())

    def _notify_view_changed(self):
        if self._on_view_changed:
            self._on_view_changed(self._session.viewport.zoom)

    # Pointer handling
    def _on_drag_begin(self, gesture, start_x, start_y):
        """Handle drag start."""
        self.grab_focus()
        self._drag_start_x = start_x
        self._drag_start_y = start_y
        try:
            if self._session.pointer_down(PointerInput.from_mouse(start_x, start_y)):
                self._after_pointer_event()
        except MaskPaintError as e:
            self._report_error(e)

    def _on_drag_update(self, gesture, offset_x, offset_y):
        """Handle drag update."""
        x = self._drag_start_x + offset_x
        y = self._drag_start_y + offset_y
        self._cursor_x = x
        self._cursor_y = y
        try:
            if self._session.pointer_move(PointerInput.from_mouse(x, y)):
                self._after_pointer_event()
        except MaskPaintError as e:
            self._report_error(e)

    def _on_drag_end(self, gesture, offset_x, offset_y):
        """Handle drag end."""
        try:
            self._session.pointer_up()
        except MaskPaintError as e:
            self._report_error(e)
        self.queue_draw()

    def _after_pointer_event(self):
        if self._session.gesture_active and self._session.tool.paints:
            self._refresh_mask_pixbuf()
        self.queue_draw()

    def _on_motion(self, controller, x, y):
        """Track the cursor for the brush preview and set the cursor shape."""
        self._cursor_x = x
        self._cursor_y = y
        self._cursor_inside = True

        if not self._session.is_ready:
            self.set_cursor(None)
        elif self._session.tool == Tool.PAN:
            name = "grabbing" if self._session.gesture_active else "grab"
            self.set_cursor(Gdk.Cursor.new_from_name(name, None))
        else:
            self.set_cursor(Gdk.Cursor.new_from_name("crosshair", None))
            self.queue_draw()

    def _on_enter(self, controller, x, y):
        """Handle mouse enter."""
        self.grab_focus()
        self._on_motion(controller, x, y)

    def _on_leave(self, controller):
        """Pointer left the canvas: any active gesture ends here."""
        self._cursor_inside = False
        self.set_cursor(None)
        try:
            self._session.pointer_leave()
        except MaskPaintError as e:
            self._report_error(e)
        self.queue_draw()

    def _on_scroll(self, controller, dx, dy):
        """Handle scroll for zoom around the cursor."""
        if not self._session.is_ready:
            return False

        step = ZOOM_STEP if dy < 0 else -ZOOM_STEP
        pointer = PointerInput.from_mouse(self._cursor_x, self._cursor_y)
        self._session.zoom_at(pointer, self._session.viewport.zoom + step)
        self._notify_view_changed()
        self.queue_draw()
        return True

    def _on_key_pressed(self, controller, keyval, keycode, state):
        """Handle keyboard shortcuts for zoom."""
        if not self._session.is_ready:
            return False

        ctrl_pressed = state & Gdk.ModifierType.CONTROL_MASK

        if ctrl_pressed and keyval in (Gdk.KEY_plus, Gdk.KEY_equal, Gdk.KEY_KP_Add):
            self.zoom_in()
            return True
        if ctrl_pressed and keyval in (Gdk.KEY_minus, Gdk.KEY_KP_Subtract):
            self.zoom_out()
            return True
        if keyval in (Gdk.KEY_0, Gdk.KEY_KP_0, Gdk.KEY_r, Gdk.KEY_R):
            self.reset_view()
            return True

        return False

    # View controls
    def zoom_in(self):
        self._session.zoom_in()
        self._notify_view_changed()
        self.queue_draw()

    def zoom_out(self):
        self._session.zoom_out()
        self._notify_view_changed()
        self.queue_draw()

    def reset_view(self):
        self._session.reset_view()
        self._notify_view_changed()
        self.queue_draw()

    def clear_mask(self):
        """Clear the mask; the resulting export arrives via the mask callback."""
        try:
            self._session.clear_mask()
        except MaskPaintError as e:
            self._report_error(e)

    # Rendering
    def _on_draw(self, area, cr, width, height):
        """Draw the image and mask onto the widget."""
        cr.set_source_rgb(*self.BACKGROUND)
        cr.rectangle(0, 0, width, height)
        cr.fill()

        state = self._session.state
        if state != LoadState.READY or self._base_pixbuf is None:
            messages = {
                LoadState.LOADING: "Loading image...",
                LoadState.FAILED: "Could not load image",
            }
            self._draw_message(cr, width, height, messages.get(state, "No image loaded"))
            return

        canvas_width, canvas_height = self._session.canvas_size
        # Untransformed canvas is centred in the widget
        origin_x = (width - canvas_width) / 2
        origin_y = (height - canvas_height) / 2
        self._session.mapper.set_bounds_origin(origin_x, origin_y)

        viewport = self._session.viewport
        cr.save()
        cr.translate(origin_x + viewport.pan_x, origin_y + viewport.pan_y)
        cr.scale(viewport.zoom, viewport.zoom)

        Gdk.cairo_set_source_pixbuf(cr, self._base_pixbuf, 0, 0)
        cr.paint()

        if self._mask_pixbuf is not None:
            Gdk.cairo_set_source_pixbuf(cr, self._mask_pixbuf, 0, 0)
            cr.paint()

        cr.restore()

        if self._cursor_inside and self._session.tool.paints:
            self._draw_brush_cursor(cr)

    def _draw_message(self, cr, width, height, text: str):
        cr.set_source_rgb(0.5, 0.5, 0.5)
        cr.select_font_face("Sans", 0, 0)
        cr.set_font_size(16)
        extents = cr.text_extents(text)
        cr.move_to((width - extents.width) / 2, (height + extents.height) / 2)
        cr.show_text(text)

    def _draw_brush_cursor(self, cr):
        """Outline of the brush disc at its on-screen size."""
        radius = self._session.brush_size / 2 * self._session.viewport.zoom
        cr.set_source_rgba(*self.CURSOR_COLOR)
        cr.set_line_width(1.5)
        cr.arc(self._cursor_x, self._cursor_y, radius, 0, 2 * math.pi)
        cr.stroke()

    def release(self):
        """Drop cached pixbufs and close the session."""
        self._session.remove_state_changed_callback(self._on_session_state_changed)
        self._session.remove_mask_complete_callback(self._on_session_mask_complete)
        self._base_pixbuf = None
        self._mask_pixbuf = None
        self._session.close()
