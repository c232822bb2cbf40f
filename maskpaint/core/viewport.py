"""Viewport zoom/pan state and the pan gesture state machine."""

from dataclasses import dataclass, replace
from enum import Enum
import logging

from maskpaint.utils.constants import MIN_ZOOM, MAX_ZOOM, ZOOM_STEP, DEFAULT_ZOOM

logger = logging.getLogger(__name__)


def clamp_zoom(zoom: float) -> float:
    """Clamp a zoom factor to the supported range."""
    return max(MIN_ZOOM, min(float(zoom), MAX_ZOOM))


@dataclass(frozen=True)
class ViewportState:
    """Zoom factor and pan offset (screen pixels) of the view."""
    zoom: float = DEFAULT_ZOOM
    pan_x: float = 0.0
    pan_y: float = 0.0

    @property
    def pan(self) -> tuple[float, float]:
        return (self.pan_x, self.pan_y)


class PanState(Enum):
    """State of the pan gesture."""
    IDLE = "idle"
    PANNING = "panning"


class ViewportController:
    """Owns the viewport state; the only writer of zoom and pan."""

    def __init__(self):
        self._state = ViewportState()
        self._pan_state = PanState.IDLE
        self._last_x: float = 0
        self._last_y: float = 0

    @property
    def state(self) -> ViewportState:
        """Get the current viewport state."""
        return self._state

    @property
    def zoom(self) -> float:
        return self._state.zoom

    @property
    def pan_state(self) -> PanState:
        return self._pan_state

    @property
    def is_panning(self) -> bool:
        return self._pan_state == PanState.PANNING

    # Pan gesture
    def begin_pan(self, screen_x: float, screen_y: float) -> None:
        """Start a pan gesture at the given screen position."""
        self._pan_state = PanState.PANNING
        self._last_x = screen_x
        self._last_y = screen_y

    def update_pan(self, screen_x: float, screen_y: float) -> bool:
        """Move the view by the pointer delta since the last sample.

        Returns False (and does nothing) when no pan gesture is active.
        """
        if self._pan_state != PanState.PANNING:
            return False

        dx = screen_x - self._last_x
        dy = screen_y - self._last_y
        self._state = replace(
            self._state,
            pan_x=self._state.pan_x + dx,
            pan_y=self._state.pan_y + dy,
        )
        self._last_x = screen_x
        self._last_y = screen_y
        return True

    def end_pan(self) -> None:
        """End the pan gesture (pointer up or pointer leave)."""
        self._pan_state = PanState.IDLE

    # Zoom
    def zoom_in(self) -> float:
        return self.set_zoom(self._state.zoom + ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.set_zoom(self._state.zoom - ZOOM_STEP)

    def set_zoom(self, zoom: float) -> float:
        """Set the zoom factor, clamped to the supported range."""
        self._state = replace(self._state, zoom=clamp_zoom(zoom))
        return self._state.zoom

    def zoom_at(self, anchor_x: float, anchor_y: float, zoom: float) -> float:
        """Zoom keeping the canvas point under the anchor fixed on screen.

        The anchor is given relative to the canvas bounds origin.
        """
        old = self._state
        new_zoom = clamp_zoom(zoom)
        if new_zoom == old.zoom:
            return new_zoom

        # canvas point under the anchor before the zoom change
        canvas_x = (anchor_x - old.pan_x) / old.zoom
        canvas_y = (anchor_y - old.pan_y) / old.zoom

        self._state = ViewportState(
            zoom=new_zoom,
            pan_x=anchor_x - canvas_x * new_zoom,
            pan_y=anchor_y - canvas_y * new_zoom,
        )
        return new_zoom

    def reset_view(self) -> None:
        """Reset zoom to 100% and remove any pan offset."""
        self._state = ViewportState()
        logger.debug("Viewport reset")
