"""
Diagnostic screenshots written when a workflow step fails.

Files are named error-<kind>-<timestamp>.png and never read back. Capture
is best-effort: a failed screenshot is logged and ignored.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from shared.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def build_screenshot_path(directory: str, kind: str, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%f")
    safe_kind = _UNSAFE_NAME_CHARS.sub("-", kind).strip("-") or "unknown"
    return Path(directory) / f"error-{safe_kind}-{stamp}.png"


async def save_failure_screenshot(page: Page, kind: str, directory: str = ".") -> Optional[Path]:
    """Full-page screenshot for debugging; returns the path or None if capture failed."""
    path = build_screenshot_path(directory, kind)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(path), full_page=True)
    except Exception as e:
        logger.warning("screenshot_failed", kind=kind, error=str(e), error_type=type(e).__name__)
        return None
    logger.info("screenshot_saved", kind=kind, path=str(path))
    return path
