"""Application constants."""

from pathlib import Path

# ===================
# App info
# ===================
APP_NAME = "Inkora"
APP_VERSION = "1.0.0"

# ===================
# Paths
# ===================
# Application data directory
APP_DATA_DIR = Path.home() / ".inkora"

# Log directory
LOG_DIR = APP_DATA_DIR / "logs"

# Template store directory
TEMPLATES_DIR = APP_DATA_DIR / "templates"

# ===================
# Box editing
# ===================
# Minimum box width/height in image pixels
MIN_BOX_SIZE = 20

# Resize handle hit tolerance in image pixels (not scaled by zoom)
HANDLE_TOLERANCE = 12

# Cap for the auto font size of a newly drawn text box
MAX_DEFAULT_FONT_SIZE = 48

# ===================
# Generation
# ===================
# Default JPEG quality (0-1)
DEFAULT_OUTPUT_QUALITY = 0.85
DEFAULT_PREVIEW_QUALITY = 0.9

# Batch limits
MAX_BATCH_ROWS = 1000
MAX_CSV_FILE_SIZE = 5 * 1024 * 1024  # 5MB

# Cooperative yield cadence during batch generation
YIELD_EVERY_ROWS = 5
YIELD_DELAY_SECONDS = 0.01

OUTPUT_EXTENSION = "jpg"
ARCHIVE_PREFIX = "inkora_invitations"

# ===================
# Upload processing
# ===================
MAX_IMAGE_DIMENSION = 2000
COMPRESS_TARGET_KB = 150
THUMBNAIL_SIZE = 200
THUMBNAIL_QUALITY = 0.7
