"""Mask editor toolbar: tool selection, brush size, zoom and mask actions."""

from typing import Optional, Callable

import gi
gi.require_version("Gtk", "4.0")
from gi.repository import Gtk

from maskpaint.core.paint_engine import Tool
from maskpaint.utils.constants import MIN_BRUSH_SIZE, MAX_BRUSH_SIZE, BRUSH_SIZE_STEP


class MaskToolbar(Gtk.Box):
    """Toolbar with Brush/Eraser/Pan tools, brush size, zoom and clear."""

    def __init__(
        self,
        on_open: Optional[Callable[[], None]] = None,
        on_tool_changed: Optional[Callable[[Tool], None]] = None,
        on_brush_size_changed: Optional[Callable[[int], None]] = None,
        on_zoom_in: Optional[Callable[[], None]] = None,
        on_zoom_out: Optional[Callable[[], None]] = None,
        on_reset_view: Optional[Callable[[], None]] = None,
        on_clear_mask: Optional[Callable[[], None]] = None,
        on_save: Optional[Callable[[], None]] = None,
        tool: Tool = Tool.BRUSH,
        brush_size: int = 30,
    ):
        super().__init__(orientation=Gtk.Orientation.HORIZONTAL, spacing=8)
        self._on_open = on_open
        self._on_tool_changed = on_tool_changed
        self._on_brush_size_changed = on_brush_size_changed
        self._on_zoom_in = on_zoom_in
        self._on_zoom_out = on_zoom_out
        self._on_reset_view = on_reset_view
        self._on_clear_mask = on_clear_mask
        self._on_save = on_save

        self._tool_buttons: dict[Tool, Gtk.ToggleButton] = {}

        self.add_css_class("toolbar")
        self.set_margin_start(8)
        self.set_margin_end(8)
        self.set_margin_top(6)
        self.set_margin_bottom(6)
        self._build_ui(tool, brush_size)
        self.set_editor_ready(False)

    def _append_separator(self):
        separator = Gtk.Separator(orientation=Gtk.Orientation.VERTICAL)
        separator.set_margin_start(8)
        separator.set_margin_end(8)
        self.append(separator)

    def _build_ui(self, tool: Tool, brush_size: int):
        """Build the toolbar UI."""
        # Open image button
        self._open_button = Gtk.Button(label="Open Image")
        self._open_button.connect("clicked", self._on_open_clicked)
        self.append(self._open_button)

        self._append_separator()

        # Tool selection (radio group)
        tools = (
            (Tool.BRUSH, "Brush", "Paint areas to be edited by AI"),
            (Tool.ERASER, "Eraser", "Remove painted areas"),
            (Tool.PAN, "Pan", "Drag to move the view"),
        )
        group = None
        for tool_type, label, tooltip in tools:
            button = Gtk.ToggleButton(label=label)
            button.set_tooltip_text(tooltip)
            if group is not None:
                button.set_group(group)
            else:
                group = button
            button.set_active(tool_type == tool)
            button.connect("toggled", self._on_tool_toggled, tool_type)
            self._tool_buttons[tool_type] = button
            self.append(button)

        self._append_separator()

        # Brush size slider
        size_label = Gtk.Label(label="Size")
        size_label.add_css_class("caption")
        self.append(size_label)

        self._size_scale = Gtk.Scale.new_with_range(
            Gtk.Orientation.HORIZONTAL,
            MIN_BRUSH_SIZE,
            MAX_BRUSH_SIZE,
            BRUSH_SIZE_STEP,
        )
        self._size_scale.set_value(brush_size)
        self._size_scale.set_draw_value(False)
        self._size_scale.set_size_request(120, -1)
        self._size_scale.connect("value-changed", self._on_size_changed)
        self.append(self._size_scale)

        self._size_value = Gtk.Label(label=str(brush_size))
        self._size_value.set_width_chars(3)
        self.append(self._size_value)

        self._append_separator()

        # Zoom controls
        self._zoom_out_button = Gtk.Button(icon_name="zoom-out-symbolic")
        self._zoom_out_button.set_tooltip_text("Zoom Out")
        self._zoom_out_button.connect("clicked", self._on_zoom_out_clicked)
        self.append(self._zoom_out_button)

        self._zoom_label = Gtk.Label(label="100%")
        self._zoom_label.set_width_chars(5)
        self.append(self._zoom_label)

        self._zoom_in_button = Gtk.Button(icon_name="zoom-in-symbolic")
        self._zoom_in_button.set_tooltip_text("Zoom In")
        self._zoom_in_button.connect("clicked", self._on_zoom_in_clicked)
        self.append(self._zoom_in_button)

        # Spacer pushes the actions to the right
        spacer = Gtk.Box()
        spacer.set_hexpand(True)
        self.append(spacer)

        self._reset_button = Gtk.Button(label="Reset View")
        self._reset_button.connect("clicked", self._on_reset_view_clicked)
        self.append(self._reset_button)

        self._clear_button = Gtk.Button(label="Clear Mask")
        self._clear_button.connect("clicked", self._on_clear_mask_clicked)
        self._clear_button.set_sensitive(False)
        self.append(self._clear_button)

        self._save_button = Gtk.Button(label="Save Mask")
        self._save_button.add_css_class("suggested-action")
        self._save_button.set_tooltip_text("Save the binary mask and preview to the output folder")
        self._save_button.connect("clicked", self._on_save_clicked)
        self._save_button.set_sensitive(False)
        self.append(self._save_button)

    def _on_open_clicked(self, button):
        """Handle open button click."""
        if self._on_open:
            self._on_open()

    def _on_zoom_in_clicked(self, button):
        if self._on_zoom_in:
            self._on_zoom_in()

    def _on_zoom_out_clicked(self, button):
        if self._on_zoom_out:
            self._on_zoom_out()

    def _on_reset_view_clicked(self, button):
        if self._on_reset_view:
            self._on_reset_view()

    def _on_clear_mask_clicked(self, button):
        """Handle clear mask button click."""
        if self._on_clear_mask:
            self._on_clear_mask()

    def _on_save_clicked(self, button):
        if self._on_save:
            self._on_save()

    def _on_tool_toggled(self, button: Gtk.ToggleButton, tool: Tool):
        """Handle tool button toggle (only the newly active button reports)."""
        if button.get_active() and self._on_tool_changed:
            self._on_tool_changed(tool)

    def _on_size_changed(self, scale: Gtk.Scale):
        """Snap the slider to the step and report the new size."""
        value = int(round(scale.get_value() / BRUSH_SIZE_STEP) * BRUSH_SIZE_STEP)
        self._size_value.set_text(str(value))
        if self._on_brush_size_changed:
            self._on_brush_size_changed(value)

    def set_zoom(self, zoom: float):
        """Update the zoom percentage label."""
        self._zoom_label.set_text(f"{round(zoom * 100)}%")

    def set_has_mask(self, has_mask: bool):
        """Enable mask actions only when something is painted."""
        self._clear_button.set_sensitive(has_mask)
        self._save_button.set_sensitive(has_mask)

    def set_editor_ready(self, ready: bool):
        """Enable editing controls once an image is loaded."""
        for button in self._tool_buttons.values():
            button.set_sensitive(ready)
        self._size_scale.set_sensitive(ready)
        self._zoom_in_button.set_sensitive(ready)
        self._zoom_out_button.set_sensitive(ready)
        self._reset_button.set_sensitive(ready)
        if not ready:
            self.set_has_mask(False)
