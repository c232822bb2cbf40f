"""Source image decoding and fit-to-bounds sizing of the raster layers."""

from dataclasses import dataclass
import logging
import math

from PIL import Image

from maskpaint.core.errors import ImageDecodeError
from maskpaint.core.surface import PillowSurface
from maskpaint.utils.constants import DEFAULT_MAX_BOUND, DEFAULT_FETCH_TIMEOUT
from maskpaint.utils.image_io import DECODE_ERRORS, ImageLocator, load_image, describe_locator

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_to_bounds(width: int, height: int, max_bound: int) -> tuple[int, int]:
    """
    Scale a size so neither side exceeds ``max_bound``, never upscaling.

    Args:
        width: Native width
        height: Native height
        max_bound: Largest allowed side

    Returns:
        (width, height) of the working canvas, at least 1x1
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")

    scale = min(max_bound / width, max_bound / height, 1.0)
    return (
        max(1, round_half_up(width * scale)),
        max(1, round_half_up(height * scale)),
    )


@dataclass(frozen=True)
class SourceImage:
    """The decoded source image, already resized to the working canvas."""
    native_width: int
    native_height: int
    width: int
    height: int
    image: Image.Image

    @property
    def native_size(self) -> tuple[int, int]:
        return (self.native_width, self.native_height)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def scale(self) -> float:
        return self.width / self.native_width


@dataclass
class FittedLayers:
    """A source image plus its two co-registered surfaces."""
    source: SourceImage
    base: PillowSurface
    mask: PillowSurface

    def release(self) -> None:
        self.base.release()
        self.mask.release()
        self.source.image.close()


class ImageFitter:
    """Decodes the source and fixes the shared working resolution."""

    def __init__(self, max_bound: int = DEFAULT_MAX_BOUND, fetch_timeout: float = DEFAULT_FETCH_TIMEOUT):
        self.max_bound = max_bound
        self.fetch_timeout = fetch_timeout

    def decode(self, locator: ImageLocator) -> Image.Image:
        """Decode the locator into an RGBA image. Raises ImageDecodeError."""
        image = load_image(locator, timeout=self.fetch_timeout)
        if image.mode == "RGBA":
            return image
        try:
            return image.convert("RGBA")
        except DECODE_ERRORS as e:
            raise ImageDecodeError(describe_locator(locator), f"cannot convert {image.mode} image: {e}") from e
        finally:
            image.close()

    def fit(self, image: Image.Image) -> SourceImage:
        """Resize a decoded image to the working canvas size."""
        native_width, native_height = image.size
        width, height = fit_to_bounds(native_width, native_height, self.max_bound)

        if (width, height) != image.size:
            displayed = image.resize((width, height), Image.Resampling.LANCZOS)
        else:
            displayed = image.copy()

        return SourceImage(
            native_width=native_width,
            native_height=native_height,
            width=width,
            height=height,
            image=displayed,
        )

    def create_layers(self, source: SourceImage) -> FittedLayers:
        """Create the base and mask surfaces at the displayed size."""
        base = PillowSurface("base", source.image.copy())
        mask = PillowSurface.blank("mask", source.width, source.height)
        return FittedLayers(source=source, base=base, mask=mask)

    def load(self, locator: ImageLocator) -> FittedLayers:
        """Decode, fit and size both layers in one go."""
        image = self.decode(locator)
        try:
            source = self.fit(image)
        finally:
            image.close()

        logger.info(
            "Loaded %s: native %dx%d, canvas %dx%d",
            describe_locator(locator), source.native_width, source.native_height,
            source.width, source.height,
        )
        return self.create_layers(source)
