"""Runtime settings for capture and mapping.

Every value can be overridden through an environment variable of the same
name. Import from here instead of hardcoding timeouts or viewport sizes.
"""

import os
from typing import Dict


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


def _bool(key: str, default: bool) -> bool:
    return os.getenv(key, "true" if default else "false").lower() in ("true", "1", "yes")


VIEWPORT_PRESETS: Dict[str, Dict[str, int]] = {
    "desktop": {"width": 1440, "height": 900},
    "tablet": {"width": 768, "height": 1024},
    "mobile": {"width": 375, "height": 812},
}

DEFAULT_VIEWPORT = _str("HTML2DESIGN_VIEWPORT", "desktop")

# Reference viewport used to resolve vw/vh lengths
REFERENCE_VIEWPORT_WIDTH = 1440
REFERENCE_VIEWPORT_HEIGHT = 900

ROOT_FONT_SIZE = 16.0


# =====================================================================
# Capture
# =====================================================================

HEADLESS = _bool("HTML2DESIGN_HEADLESS", True)

# Per-image wait before serializing an isolated capture (milliseconds)
IMAGE_LOAD_TIMEOUT_MS = _int("HTML2DESIGN_IMAGE_LOAD_TIMEOUT_MS", 3000)

# Settle delay for late style/font application (milliseconds)
SETTLE_DELAY_MS = _int("HTML2DESIGN_SETTLE_DELAY_MS", 200)

# Navigation timeout for live-URL captures (milliseconds)
NAVIGATION_TIMEOUT_MS = _int("HTML2DESIGN_NAVIGATION_TIMEOUT_MS", 60000)

USER_AGENT = _str(
    "HTML2DESIGN_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)


# =====================================================================
# Mapping
# =====================================================================

# Image fetch timeout (seconds)
IMAGE_FETCH_TIMEOUT = _float("HTML2DESIGN_IMAGE_FETCH_TIMEOUT", 10.0)

DEFAULT_FONT_FAMILY = _str("HTML2DESIGN_DEFAULT_FONT", "Inter")

LOG_FILE = _str("HTML2DESIGN_LOG_FILE", "")
