"""Editing session: wires image loading, viewport, painting and export."""

from enum import Enum
from typing import Optional, Callable
import logging
import threading

from PIL import Image

from maskpaint.core.config import EditorConfig
from maskpaint.core.coordinates import CoordinateMapper, PointerInput, CanvasPoint
from maskpaint.core.errors import EditorNotReadyError, ImageDecodeError
from maskpaint.core.image_fitter import ImageFitter, FittedLayers, SourceImage
from maskpaint.core.mask_exporter import MaskExporter, ExportResult
from maskpaint.core.paint_engine import PaintEngine, Tool, clamp_brush_size
from maskpaint.core.viewport import ViewportController, ViewportState
from maskpaint.utils.image_io import ImageLocator, describe_locator

logger = logging.getLogger(__name__)


class LoadState(Enum):
    """State of the session's source image."""
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


def _call_now(func: Callable, *args) -> None:
    """Default dispatch: runs on whichever thread calls it."""
    func(*args)


class EditorSession:
    """One mask editing session over a single source image.

    Pointer events go through the coordinate mapper and are routed either to
    the viewport (pan tool) or to the paint engine (brush/eraser). The tool is
    latched at pointer-down, so one gesture never reaches both.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self._config = config or EditorConfig()
        self._fitter = ImageFitter(self._config.max_bound, self._config.fetch_timeout)
        self._mapper = CoordinateMapper()
        self._viewport = ViewportController()
        self._exporter = MaskExporter()
        self._exporter.add_export_callback(self._on_exported)

        self._state = LoadState.EMPTY
        self._error: Optional[str] = None
        self._layers: Optional[FittedLayers] = None
        self._engine: Optional[PaintEngine] = None
        self._load_generation = 0
        self._last_export: Optional[ExportResult] = None

        try:
            self._tool = Tool(self._config.default_tool)
        except ValueError:
            self._tool = Tool.BRUSH
        self._brush_size = clamp_brush_size(self._config.default_brush_size)

        # Gesture state
        self._gesture_active = False
        self._gesture_tool: Optional[Tool] = None

        # Callbacks
        self._on_state_changed: list[Callable[[LoadState], None]] = []
        self._on_mask_complete: list[Callable[[ExportResult], None]] = []

    # Properties
    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == LoadState.READY

    @property
    def error(self) -> Optional[str]:
        """Message of the last load failure, if any."""
        return self._error

    @property
    def source(self) -> Optional[SourceImage]:
        return self._layers.source if self._layers is not None else None

    @property
    def canvas_size(self) -> Optional[tuple[int, int]]:
        return self._layers.source.size if self._layers is not None else None

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    @property
    def viewport(self) -> ViewportState:
        return self._viewport.state

    @property
    def last_export(self) -> Optional[ExportResult]:
        return self._last_export

    @property
    def gesture_active(self) -> bool:
        return self._gesture_active

    @property
    def tool(self) -> Tool:
        return self._tool

    @tool.setter
    def tool(self, tool: Tool) -> None:
        """Select a tool; takes effect from the next pointer-down."""
        self._tool = Tool(tool)

    @property
    def brush_size(self) -> int:
        return self._brush_size

    @brush_size.setter
    def brush_size(self, size: float) -> None:
        self._brush_size = clamp_brush_size(size)

    # Callback registration
    def add_state_changed_callback(self, callback: Callable[[LoadState], None]) -> None:
        self._on_state_changed.append(callback)

    def remove_state_changed_callback(self, callback: Callable[[LoadState], None]) -> None:
        if callback in self._on_state_changed:
            self._on_state_changed.remove(callback)

    def add_mask_complete_callback(self, callback: Callable[[ExportResult], None]) -> None:
        self._on_mask_complete.append(callback)

    def remove_mask_complete_callback(self, callback: Callable[[ExportResult], None]) -> None:
        if callback in self._on_mask_complete:
            self._on_mask_complete.remove(callback)

    def _set_state(self, state: LoadState) -> None:
        self._state = state
        for callback in list(self._on_state_changed):
            callback(state)

    def _on_exported(self, result: ExportResult) -> None:
        self._last_export = result
        for callback in list(self._on_mask_complete):
            callback(result)

    # Loading
    def _begin_load(self) -> int:
        if self._state == LoadState.CLOSED:
            raise EditorNotReadyError(self._state.value)
        self._release_layers()
        self._error = None
        self._load_generation += 1
        self._set_state(LoadState.LOADING)
        return self._load_generation

    def _finish_load(self, generation: int, image: Optional[Image.Image], error: Optional[ImageDecodeError]) -> bool:
        # Always returns False so it runs once when scheduled with GLib.idle_add
        if generation != self._load_generation or self._state != LoadState.LOADING:
            # Superseded by a newer load or by close()
            if image is not None:
                image.close()
            logger.debug("Discarding stale load result (generation %d)", generation)
            return False

        if error is not None:
            self._error = str(error)
            logger.error("%s", error)
            self._set_state(LoadState.FAILED)
            return False

        try:
            source = self._fitter.fit(image)
        finally:
            image.close()
        self._attach_layers(self._fitter.create_layers(source))
        logger.info(
            "Editor ready: native %dx%d, canvas %dx%d",
            source.native_width, source.native_height, source.width, source.height,
        )
        self._set_state(LoadState.READY)
        return False

    def _attach_layers(self, layers: FittedLayers) -> None:
        self._layers = layers
        self._engine = PaintEngine(layers.mask, self._config.tint())
        self._exporter.watch(self._engine, layers.base)
        self._viewport.reset_view()
        self._last_export = None

    def _release_layers(self) -> None:
        # Drop any gesture without finishing it
        self._gesture_active = False
        self._gesture_tool = None
        self._viewport.end_pan()
        if self._layers is not None:
            self._layers.release()
        self._layers = None
        self._engine = None
        self._last_export = None

    def _decode(self, locator: ImageLocator) -> Image.Image:
        """Decode, turning any unexpected decoder failure into ImageDecodeError."""
        try:
            return self._fitter.decode(locator)
        except ImageDecodeError:
            raise
        except Exception as e:
            logger.exception("Unexpected error decoding %s", describe_locator(locator))
            raise ImageDecodeError(describe_locator(locator), str(e) or type(e).__name__) from e

    def load(self, locator: ImageLocator) -> SourceImage:
        """
        Decode and fit the source image synchronously.

        Raises:
            ImageDecodeError: If the image cannot be loaded; the session is
                left in the FAILED state
        """
        generation = self._begin_load()
        try:
            image = self._decode(locator)
        except ImageDecodeError as e:
            self._finish_load(generation, None, e)
            raise
        self._finish_load(generation, image, None)
        return self._layers.source

    def load_async(
        self,
        locator: ImageLocator,
        dispatch: Callable[..., object] = _call_now,
    ) -> threading.Thread:
        """
        Decode the source image on a worker thread.

        Args:
            locator: Image locator
            dispatch: Schedules a call on the thread that owns the session,
                e.g. ``GLib.idle_add``. The default runs the call on the
                worker itself, so surfaces and state callbacks are then
                touched off the owning thread; only headless callers and
                tests should rely on it

        Returns:
            The started worker thread
        """
        generation = self._begin_load()
        logger.info("Loading %s", describe_locator(locator))

        def decode_thread():
            try:
                image = self._decode(locator)
            except ImageDecodeError as e:
                dispatch(self._finish_load, generation, None, e)
                return
            dispatch(self._finish_load, generation, image, None)

        thread = threading.Thread(target=decode_thread, daemon=True)
        thread.start()
        return thread

    def close(self) -> None:
        """End the session and release both raster surfaces."""
        self._release_layers()
        self._load_generation += 1
        if self._state != LoadState.CLOSED:
            self._set_state(LoadState.CLOSED)
            logger.info("Editor session closed")

    # Pointer handling
    def _end_gesture(self) -> bool:
        was_active = self._gesture_active
        tool = self._gesture_tool
        self._gesture_active = False
        self._gesture_tool = None

        if not was_active:
            return False
        if tool == Tool.PAN:
            self._viewport.end_pan()
        elif self._engine is not None:
            self._engine.end_stroke()
        return True

    def to_canvas_space(self, pointer: PointerInput) -> CanvasPoint:
        return self._mapper.to_canvas_space(pointer, self._viewport.state)

    def pointer_down(self, pointer: PointerInput) -> bool:
        """Start a pan or paint gesture. Ignored until the image is ready."""
        if not self.is_ready:
            return False
        if self._gesture_active:
            self._end_gesture()

        self._gesture_active = True
        self._gesture_tool = self._tool
        if self._tool == Tool.PAN:
            self._viewport.begin_pan(pointer.client_x, pointer.client_y)
        else:
            self._engine.start_stroke(self.to_canvas_space(pointer), self._tool, self._brush_size)
        return True

    def pointer_move(self, pointer: PointerInput) -> bool:
        """Continue the active gesture; no-op without one."""
        if not self._gesture_active or not self.is_ready:
            return False

        if self._gesture_tool == Tool.PAN:
            return self._viewport.update_pan(pointer.client_x, pointer.client_y)
        # Mapped fresh per sample so zoom/pan changes mid-stroke are honoured
        return self._engine.continue_stroke(self.to_canvas_space(pointer))

    def pointer_up(self) -> bool:
        return self._end_gesture()

    def pointer_leave(self) -> bool:
        return self._end_gesture()

    # View controls
    def zoom_in(self) -> float:
        return self._viewport.zoom_in()

    def zoom_out(self) -> float:
        return self._viewport.zoom_out()

    def set_zoom(self, zoom: float) -> float:
        return self._viewport.set_zoom(zoom)

    def zoom_at(self, pointer: PointerInput, zoom: float) -> float:
        """Zoom keeping the canvas point under the pointer in place."""
        left, top = self._mapper.bounds_origin
        return self._viewport.zoom_at(pointer.client_x - left, pointer.client_y - top, zoom)

    def reset_view(self) -> None:
        self._viewport.reset_view()

    # Mask operations
    def _require_ready(self) -> None:
        if not self.is_ready:
            raise EditorNotReadyError(self._state.value)

    def clear_mask(self) -> None:
        """Erase the whole mask; exports the now empty mask."""
        self._require_ready()
        if self._gesture_active and self._gesture_tool != Tool.PAN:
            self._gesture_active = False
            self._gesture_tool = None
        self._engine.clear()

    def export(self) -> ExportResult:
        """Export on demand without notifying listeners."""
        self._require_ready()
        return self._exporter.export(self._layers.base, self._layers.mask)

    def has_mask(self) -> bool:
        """Check if any mask paint is present."""
        if not self.is_ready:
            return False
        return bool(self._layers.mask.alpha().any())

    def mask_image(self) -> Image.Image:
        """Copy of the tinted mask layer, for on-screen rendering."""
        self._require_ready()
        return self._layers.mask.read_pixels()

    def base_image(self) -> Image.Image:
        """Copy of the displayed source image, for on-screen rendering."""
        self._require_ready()
        return self._layers.base.read_pixels()
