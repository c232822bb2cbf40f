"""Brush and eraser strokes on the mask layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Callable
import logging

from maskpaint.core.coordinates import CanvasPoint
from maskpaint.core.surface import Surface, CompositeMode
from maskpaint.utils.constants import MIN_BRUSH_SIZE, MAX_BRUSH_SIZE, MASK_TINT

logger = logging.getLogger(__name__)


class Tool(Enum):
    """Editor tools."""
    BRUSH = "brush"
    ERASER = "eraser"
    PAN = "pan"

    @property
    def paints(self) -> bool:
        """Check if the tool modifies the mask layer."""
        return self in (Tool.BRUSH, Tool.ERASER)


def clamp_brush_size(size: float) -> int:
    """Clamp a brush size to the supported range."""
    return max(MIN_BRUSH_SIZE, min(int(round(size)), MAX_BRUSH_SIZE))


@dataclass
class Stroke:
    """A stroke in progress. Discarded once the stroke ends."""
    tool: Tool
    brush_size: int
    points: list[CanvasPoint] = field(default_factory=list)

    @property
    def radius(self) -> float:
        """Radius of each stamped disc; the brush size is its diameter."""
        return self.brush_size / 2


class PaintEngine:
    """Executes strokes on the mask surface and reports mask changes.

    Every received sample stamps exactly one disc. Consecutive samples are
    not joined, so fast pointer motion leaves gaps between discs.
    """

    def __init__(self, surface: Surface, tint: tuple[int, int, int, int] = MASK_TINT):
        self._surface = surface
        self._tint = tuple(tint)
        self._stroke: Optional[Stroke] = None

        self._on_mask_changed: list[Callable[[], None]] = []

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def tint(self) -> tuple[int, int, int, int]:
        return self._tint

    @property
    def is_stroking(self) -> bool:
        """Check if a stroke is in progress."""
        return self._stroke is not None

    # Callback registration
    def add_mask_changed_callback(self, callback: Callable[[], None]) -> None:
        self._on_mask_changed.append(callback)

    def remove_mask_changed_callback(self, callback: Callable[[], None]) -> None:
        if callback in self._on_mask_changed:
            self._on_mask_changed.remove(callback)

    def _notify_mask_changed(self) -> None:
        for callback in list(self._on_mask_changed):
            callback()

    def _stamp(self, point: CanvasPoint) -> None:
        stroke = self._stroke
        mode = CompositeMode.DESTINATION_OUT if stroke.tool == Tool.ERASER else CompositeMode.SOURCE_OVER
        self._surface.draw_disc(point.x, point.y, stroke.radius, self._tint, mode)
        stroke.points.append(point)

    def start_stroke(self, point: CanvasPoint, tool: Tool, brush_size: int) -> None:
        """
        Begin a stroke and stamp its first disc.

        Args:
            point: Stroke start in canvas pixels
            tool: BRUSH or ERASER
            brush_size: Disc diameter in canvas pixels, clamped to 5..100
        """
        if not tool.paints:
            raise ValueError(f"Tool {tool.value} does not paint")

        self._stroke = Stroke(tool=tool, brush_size=clamp_brush_size(brush_size))
        logger.debug(
            "Stroke started: %s size=%d at (%.1f, %.1f)",
            tool.value, self._stroke.brush_size, point.x, point.y,
        )
        self._stamp(point)

    def continue_stroke(self, point: CanvasPoint) -> bool:
        """Stamp one more disc. Returns False when no stroke is active."""
        if self._stroke is None:
            return False
        self._stamp(point)
        return True

    def end_stroke(self) -> bool:
        """
        Finish the active stroke and notify listeners that the mask changed.

        Returns:
            False if there was no stroke to end
        """
        if self._stroke is None:
            return False

        logger.debug(
            "Stroke finished: %s with %d samples",
            self._stroke.tool.value, len(self._stroke.points),
        )
        self._stroke = None
        self._notify_mask_changed()
        return True

    def clear(self) -> None:
        """Erase the whole mask layer."""
        self._stroke = None
        self._surface.clear()
        logger.debug("Mask cleared")
        self._notify_mask_changed()
