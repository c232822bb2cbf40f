"""Raster surfaces owned by an editing session.

A surface is an RGBA buffer behind a small interface: draw_disc, read_pixels,
clear and release. Paint and export code only talk to that interface.
"""

from enum import Enum
from typing import Optional
import math

import numpy as np
from PIL import Image

from maskpaint.core.errors import SurfaceUnavailableError


class CompositeMode(Enum):
    """How a stamped shape combines with the existing pixels."""
    SOURCE_OVER = "source-over"  # paint over
    DESTINATION_OUT = "destination-out"  # cut out


def disc_coverage(
    width: int, height: int, cx: float, cy: float, radius: float
) -> Optional[tuple[tuple[int, int, int, int], np.ndarray]]:
    """
    Compute which pixels a disc covers, clipped to the surface.

    A pixel is covered when its centre lies within ``radius`` of (cx, cy).

    Args:
        width: Surface width
        height: Surface height
        cx: Disc centre x in surface pixels
        cy: Disc centre y in surface pixels
        radius: Disc radius in surface pixels

    Returns:
        ``((left, top, right, bottom), mask)`` with a boolean mask of the
        clipped box, or None if the disc misses the surface entirely
    """
    left = max(0, math.floor(cx - radius))
    top = max(0, math.floor(cy - radius))
    right = min(width, math.ceil(cx + radius) + 1)
    bottom = min(height, math.ceil(cy + radius) + 1)
    if left >= right or top >= bottom:
        return None

    xs = np.arange(left, right, dtype=np.float64) + 0.5 - cx
    ys = np.arange(top, bottom, dtype=np.float64) + 0.5 - cy
    covered = (ys[:, None] ** 2 + xs[None, :] ** 2) <= radius * radius
    if not covered.any():
        return None
    return (left, top, right, bottom), covered


class Surface:
    """Interface of a raster layer."""

    name: str = "surface"

    @property
    def size(self) -> tuple[int, int]:
        raise NotImplementedError

    @property
    def available(self) -> bool:
        raise NotImplementedError

    def draw_disc(
        self, cx: float, cy: float, radius: float,
        color: tuple[int, int, int, int], mode: CompositeMode,
    ) -> bool:
        raise NotImplementedError

    def read_pixels(self) -> Image.Image:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class PillowSurface(Surface):
    """Surface backed by a Pillow RGBA image."""

    def __init__(self, name: str, image: Image.Image):
        self.name = name
        self._image: Optional[Image.Image] = image if image.mode == "RGBA" else image.convert("RGBA")

    @classmethod
    def blank(cls, name: str, width: int, height: int) -> "PillowSurface":
        """Create a fully transparent surface."""
        return cls(name, Image.new("RGBA", (width, height), (0, 0, 0, 0)))

    def _acquire(self) -> Image.Image:
        if self._image is None:
            raise SurfaceUnavailableError(self.name)
        return self._image

    @property
    def size(self) -> tuple[int, int]:
        return self._acquire().size

    @property
    def available(self) -> bool:
        return self._image is not None

    def draw_disc(
        self, cx: float, cy: float, radius: float,
        color: tuple[int, int, int, int], mode: CompositeMode,
    ) -> bool:
        """
        Composite a filled disc onto the surface.

        Returns:
            True if any pixel was covered
        """
        image = self._acquire()
        coverage = disc_coverage(image.width, image.height, cx, cy, radius)
        if coverage is None:
            return False

        box, covered = coverage
        if mode == CompositeMode.SOURCE_OVER:
            region = image.crop(box)
            stamp = Image.new("RGBA", region.size, (0, 0, 0, 0))
            stamp.paste(color, mask=Image.fromarray(covered.astype(np.uint8) * 255))
            image.paste(Image.alpha_composite(region, stamp), box[:2])
        else:
            # A fully opaque destination-out leaves transparent black
            region = np.array(image.crop(box))
            region[covered] = 0
            image.paste(Image.fromarray(region), box[:2])
        return True

    def read_pixels(self) -> Image.Image:
        """Get a copy of the surface content."""
        return self._acquire().copy()

    def alpha(self) -> np.ndarray:
        """Get the alpha channel as a uint8 array (height x width)."""
        return np.array(self._acquire().getchannel("A"))

    def clear(self) -> None:
        image = self._acquire()
        image.paste((0, 0, 0, 0), (0, 0, image.width, image.height))

    def release(self) -> None:
        """Drop the pixel buffer; further access raises SurfaceUnavailableError."""
        if self._image is not None:
            self._image.close()
            self._image = None
