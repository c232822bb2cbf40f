"""Image input/output helpers: locator decoding, PNG encoding, output files."""

from pathlib import Path
from typing import Union
import base64
import binascii
import io
import logging

import requests
from PIL import Image, UnidentifiedImageError

from maskpaint.core.errors import ImageDecodeError
from maskpaint.utils.constants import DEFAULT_FETCH_TIMEOUT, IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)

ImageLocator = Union[str, Path, bytes, Image.Image]

# Everything Pillow raises for unreadable, oversized or corrupt input
DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


def describe_locator(locator: ImageLocator) -> str:
    """Short human-readable description of a locator, for messages."""
    if isinstance(locator, Image.Image):
        return f"<image {locator.width}x{locator.height}>"
    if isinstance(locator, (bytes, bytearray)):
        return f"<{len(locator)} bytes>"
    text = str(locator)
    if text.startswith("data:"):
        return text[:32] + "..."
    return text


def _open_bytes(data: bytes, locator: str) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except DECODE_ERRORS as e:
        raise ImageDecodeError(locator, str(e)) from e
    return image


def decode_data_url(url: str) -> bytes:
    """
    Extract the payload of a base64 ``data:`` URL.

    Args:
        url: URL of the form ``data:image/png;base64,....``

    Returns:
        Decoded bytes
    """
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageDecodeError(describe_locator(url), "malformed data URL")
    if not header.endswith(";base64"):
        raise ImageDecodeError(describe_locator(url), "data URL is not base64 encoded")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(describe_locator(url), f"invalid base64 payload: {e}") from e


def fetch_image_bytes(url: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> bytes:
    """Download an image over HTTP(S)."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise ImageDecodeError(url, str(e)) from e
    return response.content


def load_image(locator: ImageLocator, timeout: float = DEFAULT_FETCH_TIMEOUT) -> Image.Image:
    """
    Decode an image from any supported locator.

    Args:
        locator: File path, ``data:`` URL, ``http(s)://`` URL, raw bytes,
            or an already decoded PIL image
        timeout: Timeout for remote fetches, in seconds

    Returns:
        Fully loaded PIL image (file handles already closed)

    Raises:
        ImageDecodeError: If the image cannot be fetched or decoded
    """
    if isinstance(locator, Image.Image):
        return locator.copy()

    if isinstance(locator, (bytes, bytearray)):
        return _open_bytes(bytes(locator), describe_locator(locator))

    text = str(locator)
    if text.startswith("data:"):
        return _open_bytes(decode_data_url(text), describe_locator(text))

    if text.startswith(("http://", "https://")):
        logger.info("Fetching image %s", text)
        return _open_bytes(fetch_image_bytes(text, timeout), text)

    path = Path(text)
    if not path.is_file():
        raise ImageDecodeError(text, "file not found")
    try:
        with Image.open(path) as image:
            image.load()
            return image.copy()
    except DECODE_ERRORS as e:
        raise ImageDecodeError(text, str(e)) from e


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(image: Image.Image) -> str:
    """Encode an image as a ``data:image/png;base64`` URL."""
    payload = base64.b64encode(encode_png(image)).decode("ascii")
    return f"data:image/png;base64,{payload}"


def is_valid_image(path: Path) -> bool:
    """
    Check if a file looks like a supported image.

    Args:
        path: Path to check

    Returns:
        True if file exists with a known image extension
    """
    return path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS


def get_unique_filename(directory: Path, basename: str, extension: str) -> Path:
    """
    Get a unique filename in a directory by appending numbers if needed.

    Args:
        directory: Target directory
        basename: Base name for the file
        extension: File extension (including dot)

    Returns:
        Unique path in the directory
    """
    path = directory / f"{basename}{extension}"
    counter = 1

    while path.exists():
        path = directory / f"{basename}_{counter}{extension}"
        counter += 1

    return path
