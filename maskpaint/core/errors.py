"""Exceptions raised by the mask editor core."""


class MaskPaintError(Exception):
    """Base class for all mask editor faults."""


class ImageDecodeError(MaskPaintError):
    """The source image could not be fetched or decoded."""

    def __init__(self, locator: str, reason: str):
        self.locator = locator
        self.reason = reason
        super().__init__(f"Could not load image {locator}: {reason}")


class SurfaceUnavailableError(MaskPaintError):
    """A raster surface was released or never acquired."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Surface '{name}' is not available")


class LayerSizeError(MaskPaintError):
    """The base and mask layers no longer share the same size."""

    def __init__(self, base_size: tuple, mask_size: tuple):
        self.base_size = base_size
        self.mask_size = mask_size
        super().__init__(
            f"Layer size mismatch: base {base_size[0]}x{base_size[1]}, "
            f"mask {mask_size[0]}x{mask_size[1]}"
        )


class EditorNotReadyError(MaskPaintError):
    """An operation needs a loaded image but the editor is not ready."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Editor is not ready (state: {state})")
