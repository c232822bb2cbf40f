"""Main GTK Application class."""

from typing import Optional
import logging
import sys

import gi
gi.require_version("Gtk", "4.0")
from gi.repository import Gtk, Gio

from maskpaint.core.config import config_manager
from maskpaint.core.logging_config import setup_logging
from maskpaint.utils.constants import APP_ID, APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)


class MaskPaintApp(Gtk.Application):
    """Main application class for the mask editor."""

    def __init__(self, initial_image: Optional[str] = None):
        super().__init__(
            application_id=APP_ID,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS,
        )
        self._window = None
        self._editor_screen = None
        self._initial_image = initial_image

    def do_startup(self):
        """Called when the application starts up."""
        Gtk.Application.do_startup(self)

        logging_config = config_manager.config.logging
        setup_logging(logging_config.level, logging_config.file)
        logger.info("%s %s starting", APP_NAME, APP_VERSION)

        self._create_actions()

    def do_activate(self):
        """Called when the application is activated."""
        if not self._window:
            self._window = Gtk.ApplicationWindow(application=self)
            self._window.set_title(APP_NAME)
            self._window.set_icon_name(APP_ID)

            # Restore window size from config
            window_config = config_manager.config.window
            self._window.set_default_size(window_config.width, window_config.height)
            if window_config.maximized:
                self._window.maximize()

            self._window.connect("close-request", self._on_close_request)
            self._show_editor_screen()

            if self._initial_image:
                self._editor_screen.load_image(self._initial_image)

        self._window.present()

    def _on_close_request(self, window):
        """Save window state before the window goes away."""
        self._save_window_state()
        return False

    def _save_window_state(self):
        """Save window size to config."""
        window_config = config_manager.config.window
        window_config.maximized = self._window.is_maximized()

        # Only save size if not maximized
        if not window_config.maximized:
            window_config.width = self._window.get_width()
            window_config.height = self._window.get_height()

        if not config_manager.save():
            logger.warning("Window state was not saved")

    def do_shutdown(self):
        """Called when the application shuts down."""
        if self._editor_screen is not None:
            self._editor_screen.release()
        Gtk.Application.do_shutdown(self)

    def _create_actions(self):
        """Create application actions."""
        quit_action = Gio.SimpleAction.new("quit", None)
        quit_action.connect("activate", self._on_quit)
        self.add_action(quit_action)

        about_action = Gio.SimpleAction.new("about", None)
        about_action.connect("activate", self._on_about)
        self.add_action(about_action)

        self.set_accels_for_action("app.quit", ["<Control>q"])

    def _on_quit(self, action, param):
        """Handle quit action."""
        if self._window is not None:
            self._save_window_state()
        self.quit()

    def _on_about(self, action, param):
        """Show about dialog."""
        about = Gtk.AboutDialog(
            transient_for=self._window,
            modal=True,
            program_name=APP_NAME,
            version=APP_VERSION,
            license_type=Gtk.License.MIT_X11,
            comments="Paint inpainting masks over an image",
        )
        about.present()

    def _show_editor_screen(self):
        """Show the editor screen."""
        # Import here so the core stays importable without a display
        from maskpaint.ui.screens.editor_screen import EditorScreen

        if self._editor_screen is None:
            self._editor_screen = EditorScreen()

        self._window.set_child(self._editor_screen)

    def get_window(self) -> Gtk.ApplicationWindow:
        """Get the main application window."""
        return self._window


def run_app(argv: Optional[list[str]] = None):
    """Run the application; an optional first argument names an image to open."""
    argv = list(sys.argv if argv is None else argv)
    initial_image = argv[1] if len(argv) > 1 else None
    app = MaskPaintApp(initial_image)
    # GApplication would treat the image path as a file to open
    return app.run(argv[:1])
