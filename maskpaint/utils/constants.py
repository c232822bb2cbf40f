"""Constants for the Mask Paint editor."""

from pathlib import Path

# Application info
APP_ID = "com.maskpaint.editor"
APP_NAME = "Mask Paint"
APP_VERSION = "0.1.0"

# Config paths
CONFIG_DIR = Path.home() / ".maskpaint"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Fit-to-bounds: the larger side of the working canvas never exceeds this
DEFAULT_MAX_BOUND = 800

# Viewport zoom settings
MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
ZOOM_STEP = 0.25
DEFAULT_ZOOM = 1.0

# Brush settings (brush size is the stamped disc diameter in canvas pixels)
MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 100
BRUSH_SIZE_STEP = 5
DEFAULT_BRUSH_SIZE = 30

# Mask paint tint, rgba(255, 0, 100, 0.5)
MASK_TINT = (255, 0, 100, 128)

# Binary mask values
MASK_ON = 255
MASK_OFF = 0

# Remote image fetch timeout (seconds)
DEFAULT_FETCH_TIMEOUT = 30.0

# Supported image extensions for the open dialog
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}

# Output settings
OUTPUT_FORMAT = "png"
