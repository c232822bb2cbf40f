"""Binary mask and composite preview export."""

from dataclasses import dataclass
from typing import Callable
import logging

import numpy as np
from PIL import Image

from maskpaint.core.errors import LayerSizeError
from maskpaint.core.paint_engine import PaintEngine
from maskpaint.core.surface import Surface
from maskpaint.utils.constants import MASK_ON, MASK_OFF
from maskpaint.utils.image_io import encode_png, to_data_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """Output of one export.

    ``binary_mask`` is what the inpainting backend receives (white = edit);
    ``composite_preview`` is only shown to the user.
    """
    binary_mask: Image.Image
    composite_preview: Image.Image

    @property
    def size(self) -> tuple[int, int]:
        return self.binary_mask.size

    def to_png_bytes(self) -> tuple[bytes, bytes]:
        """Encode as ``(mask_png, preview_png)``."""
        return encode_png(self.binary_mask), encode_png(self.composite_preview)

    def to_data_urls(self) -> tuple[str, str]:
        """Encode as ``(mask_data_url, preview_data_url)``."""
        return to_data_url(self.binary_mask), to_data_url(self.composite_preview)


def binary_mask_from_alpha(alpha: np.ndarray) -> Image.Image:
    """White wherever any paint alpha remains, black elsewhere."""
    mask_arr = np.where(alpha > 0, MASK_ON, MASK_OFF).astype(np.uint8)
    return Image.fromarray(mask_arr)


class MaskExporter:
    """Builds an ExportResult from the base and mask surfaces."""

    def __init__(self):
        self._on_export: list[Callable[[ExportResult], None]] = []

    # Callback registration
    def add_export_callback(self, callback: Callable[[ExportResult], None]) -> None:
        self._on_export.append(callback)

    def remove_export_callback(self, callback: Callable[[ExportResult], None]) -> None:
        if callback in self._on_export:
            self._on_export.remove(callback)

    def export(self, base: Surface, mask: Surface) -> ExportResult:
        """
        Build the binary mask and composite preview.

        Args:
            base: Surface holding the displayed source image
            mask: Surface holding the painted mask layer

        Returns:
            Freshly computed ExportResult

        Raises:
            SurfaceUnavailableError: If either surface was released
            LayerSizeError: If the layers differ in size
        """
        base_image = base.read_pixels()
        mask_image = mask.read_pixels()
        if base_image.size != mask_image.size:
            raise LayerSizeError(base_image.size, mask_image.size)

        binary_mask = binary_mask_from_alpha(np.array(mask_image.getchannel("A")))
        composite = Image.alpha_composite(base_image, mask_image)

        logger.debug("Exported %dx%d mask", *binary_mask.size)
        return ExportResult(binary_mask=binary_mask, composite_preview=composite)

    def watch(self, engine: PaintEngine, base: Surface) -> Callable[[], None]:
        """
        Re-export after every mask change reported by the engine.

        Returns:
            The registered callback, for use with remove_mask_changed_callback
        """
        def on_mask_changed():
            result = self.export(base, engine.surface)
            for callback in list(self._on_export):
                callback(result)

        engine.add_mask_changed_callback(on_mask_changed)
        return on_mask_changed
