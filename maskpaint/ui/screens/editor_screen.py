"""Mask editor screen: toolbar, canvas and status bar."""

from pathlib import Path
from typing import Optional
import logging

import gi
gi.require_version("Gtk", "4.0")
from gi.repository import Gtk, Gio, GLib

from maskpaint.core.config import config_manager
from maskpaint.core.editor_session import EditorSession, LoadState
from maskpaint.core.errors import MaskPaintError
from maskpaint.core.mask_exporter import ExportResult
from maskpaint.core.paint_engine import Tool
from maskpaint.ui.widgets.mask_canvas import MaskCanvas
from maskpaint.ui.widgets.mask_toolbar import MaskToolbar
from maskpaint.utils.constants import IMAGE_EXTENSIONS, OUTPUT_FORMAT
from maskpaint.utils.image_io import (
    ImageLocator,
    describe_locator,
    get_unique_filename,
    is_valid_image,
)

logger = logging.getLogger(__name__)


class EditorScreen(Gtk.Box):
    """Main editor screen hosting one EditorSession."""

    def __init__(self, session: Optional[EditorSession] = None):
        super().__init__(orientation=Gtk.Orientation.VERTICAL)
        self._session = session or EditorSession(config_manager.config.editor)
        self._source_name = "mask"
        self._build_ui()
        self._session.add_state_changed_callback(self._on_state_changed)

    @property
    def session(self) -> EditorSession:
        return self._session

    def _build_ui(self):
        """Build the editor screen UI."""
        # Toolbar
        self._toolbar = MaskToolbar(
            on_open=self._on_open,
            on_tool_changed=self._on_tool_changed,
            on_brush_size_changed=self._on_brush_size_changed,
            on_zoom_in=self._on_zoom_in,
            on_zoom_out=self._on_zoom_out,
            on_reset_view=self._on_reset_view,
            on_clear_mask=self._on_clear_mask,
            on_save=self._on_save,
            tool=self._session.tool,
            brush_size=self._session.brush_size,
        )
        self.append(self._toolbar)

        # Canvas
        self._canvas = MaskCanvas(
            self._session,
            on_mask_complete=self._on_mask_complete,
            on_view_changed=self._toolbar.set_zoom,
            on_error=self._set_status,
        )
        frame = Gtk.Frame()
        frame.add_css_class("image-display-frame")
        frame.set_child(self._canvas)
        self.append(frame)

        # Status bar
        self._status_bar = Gtk.Label(label="Open an image to start painting a mask")
        self._status_bar.add_css_class("status-bar")
        self._status_bar.set_halign(Gtk.Align.START)
        self._status_bar.set_margin_start(12)
        self._status_bar.set_margin_end(12)
        self._status_bar.set_margin_top(4)
        self._status_bar.set_margin_bottom(4)
        self.append(self._status_bar)

    def _set_status(self, message: str):
        self._status_bar.set_text(message)

    # Loading
    def load_image(self, locator: ImageLocator):
        """Start loading an image off the UI thread."""
        if isinstance(locator, (str, Path)) and not str(locator).startswith(("http://", "https://", "data:")):
            self._source_name = Path(locator).stem or "mask"
        else:
            self._source_name = "mask"
        self._set_status(f"Loading {describe_locator(locator)}...")
        try:
            self._session.load_async(locator, dispatch=GLib.idle_add)
        except MaskPaintError as e:
            self._set_status(str(e))

    def _on_open(self):
        """Show a file dialog for the source image."""
        image_filter = Gtk.FileFilter()
        image_filter.set_name("Images")
        for extension in sorted(IMAGE_EXTENSIONS):
            image_filter.add_suffix(extension.lstrip("."))

        filters = Gio.ListStore.new(Gtk.FileFilter)
        filters.append(image_filter)

        dialog = Gtk.FileDialog()
        dialog.set_title("Open Image")
        dialog.set_filters(filters)
        dialog.open(self.get_root(), None, self._on_file_selected)

    def _on_file_selected(self, dialog: Gtk.FileDialog, result):
        """Handle file selection result."""
        try:
            file = dialog.open_finish(result)
        except GLib.Error:
            return  # User cancelled
        if file is None:
            return
        path = Path(file.get_path())
        if not is_valid_image(path):
            self._set_status(f"Unsupported image file: {path.name}")
            return
        self.load_image(path)

    def _on_state_changed(self, state: LoadState):
        self._toolbar.set_editor_ready(state == LoadState.READY)
        if state == LoadState.READY:
            source = self._session.source
            self._set_status(
                f"Loaded {source.native_width}x{source.native_height} image "
                f"(editing at {source.width}x{source.height})"
            )
        elif state == LoadState.FAILED:
            self._set_status(self._session.error or "Could not load image")

    # Tools and view
    def _on_tool_changed(self, tool: Tool):
        self._session.tool = tool

    def _on_brush_size_changed(self, size: int):
        self._session.brush_size = size

    def _on_zoom_in(self):
        self._canvas.zoom_in()

    def _on_zoom_out(self):
        self._canvas.zoom_out()

    def _on_reset_view(self):
        self._canvas.reset_view()

    # Mask
    def _on_mask_complete(self, result: ExportResult):
        has_mask = self._session.has_mask()
        self._toolbar.set_has_mask(has_mask)
        if has_mask:
            self._set_status(f"Mask updated ({result.size[0]}x{result.size[1]})")
        else:
            self._set_status("Mask cleared")

    def _on_clear_mask(self):
        self._canvas.clear_mask()

    def _on_save(self):
        """Write the binary mask and composite preview to the output directory."""
        try:
            result = self._session.last_export or self._session.export()
        except MaskPaintError as e:
            self._set_status(str(e))
            return

        extension = f".{OUTPUT_FORMAT}"
        try:
            config_manager.ensure_directories()
            output_dir = config_manager.config.get_output_path()
            mask_path = get_unique_filename(output_dir, f"{self._source_name}_mask", extension)
            result.binary_mask.save(mask_path, format=OUTPUT_FORMAT.upper())
            preview_path = get_unique_filename(output_dir, f"{self._source_name}_preview", extension)
            result.composite_preview.save(preview_path, format=OUTPUT_FORMAT.upper())
        except OSError as e:
            logger.error("Error saving mask: %s", e)
            self._set_status(f"Error saving mask: {e}")
            return

        logger.info("Saved mask to %s", mask_path)
        self._set_status(f"Saved: {mask_path.name}, {preview_path.name}")

    def release(self):
        """Close the session and drop the canvas surfaces."""
        self._session.remove_state_changed_callback(self._on_state_changed)
        self._canvas.release()
