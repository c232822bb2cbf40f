"""Pointer input normalization and screen <-> canvas coordinate mapping."""

from dataclasses import dataclass
from typing import Sequence

from maskpaint.core.viewport import ViewportState


@dataclass(frozen=True)
class PointerInput:
    """A pointer position in screen (host widget) coordinates.

    Built once at the input boundary so nothing downstream needs to know
    whether the event came from a mouse or a touch screen.
    """
    client_x: float
    client_y: float

    @classmethod
    def from_mouse(cls, x: float, y: float) -> "PointerInput":
        return cls(float(x), float(y))

    @classmethod
    def from_touches(cls, touches: Sequence[tuple[float, float]]) -> "PointerInput":
        """Use the first touch point; additional touches are ignored."""
        if not touches:
            raise ValueError("Touch event carries no touch points")
        x, y = touches[0]
        return cls(float(x), float(y))


@dataclass(frozen=True)
class CanvasPoint:
    """A position in canvas (displayed image) pixel space."""
    x: float
    y: float


class CoordinateMapper:
    """Maps pointer positions to canvas pixels under the current viewport.

    The transform is ``screen = bounds + pan + zoom * canvas``, so the
    inverse is a plain subtract-then-divide.
    """

    def __init__(self, bounds_left: float = 0.0, bounds_top: float = 0.0):
        self._bounds_left = float(bounds_left)
        self._bounds_top = float(bounds_top)

    @property
    def bounds_origin(self) -> tuple[float, float]:
        return (self._bounds_left, self._bounds_top)

    def set_bounds_origin(self, left: float, top: float) -> None:
        """Set where the untransformed canvas origin sits in screen space."""
        self._bounds_left = float(left)
        self._bounds_top = float(top)

    def to_canvas_space(self, pointer: PointerInput, viewport: ViewportState) -> CanvasPoint:
        x = (pointer.client_x - self._bounds_left - viewport.pan_x) / viewport.zoom
        y = (pointer.client_y - self._bounds_top - viewport.pan_y) / viewport.zoom
        return CanvasPoint(x, y)

    def to_screen_space(self, point: CanvasPoint, viewport: ViewportState) -> PointerInput:
        x = point.x * viewport.zoom + viewport.pan_x + self._bounds_left
        y = point.y * viewport.zoom + viewport.pan_y + self._bounds_top
        return PointerInput(x, y)
