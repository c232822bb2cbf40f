"""Shared fixtures for the mask editor tests."""

import numpy as np
import pytest
from PIL import Image

from maskpaint.core.editor_session import EditorSession
from maskpaint.core.surface import PillowSurface


def make_image(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """Opaque gradient image so resized content is not uniform."""
    xs = np.linspace(0, 255, width, dtype=np.float64)
    ys = np.linspace(0, 255, height, dtype=np.float64)
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[..., 0] = xs[None, :].astype(np.uint8)
    arr[..., 1] = ys[:, None].astype(np.uint8)
    arr[..., 2] = 128
    image = Image.fromarray(arr)
    return image if mode == "RGB" else image.convert(mode)


@pytest.fixture
def gradient_image():
    return make_image(1200, 800)


@pytest.fixture
def image_file(tmp_path, gradient_image):
    path = tmp_path / "source.png"
    gradient_image.save(path)
    return path


@pytest.fixture
def session(gradient_image):
    """A ready session over a 1200x800 source (800x533 canvas)."""
    editor = EditorSession()
    editor.load(gradient_image)
    yield editor
    editor.close()


@pytest.fixture
def exports(session):
    received = []
    session.add_mask_complete_callback(received.append)
    return received


@pytest.fixture
def base_surface():
    return PillowSurface("base", make_image(64, 48, "RGBA"))


@pytest.fixture
def mask_surface():
    return PillowSurface.blank("mask", 64, 48)
