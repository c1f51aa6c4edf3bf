"""
Environment-based configuration for the Ripley delivery-commitment checker.

This module exposes a small, typed configuration surface. All values are
sourced from environment variables with sensible, non-secret defaults.

Credentials are never hard-coded here; they must be provided via the
environment (or a local `.env` file loaded with python-dotenv).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_TARGET_SKU = "2000377223468P"
DEFAULT_BASE_URL = "https://www.ripley.cl"


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Bounds are not enforced here; `checker.validators.validate_config` checks
    them at startup so a bad value fails the run before a browser is launched.
    """

    target_sku: str
    base_url: str

    # Retry policy for the whole workflow.
    max_retries: int
    retry_delay_ms: int

    # Playwright timeouts (ms). page_timeout applies to navigation,
    # element_timeout is the page default for actions.
    page_timeout_ms: int
    element_timeout_ms: int

    headless: bool
    slow_mo_ms: int

    # Nominal jitter added to scripted pauses (ms).
    evasion_jitter_ms: int

    email: str
    password: str = field(repr=False)

    screenshot_dir: str = "."

    log_level: str = "INFO"
    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and the stderr console if log_stdout).
    log_file: Optional[str] = None
    log_stdout: bool = True

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        Integer values that do not parse raise ValueError; callers treat that
        as an invalid startup configuration.
        """

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _int_env(name: str, default: int) -> int:
            raw = (os.getenv(name) or "").strip()
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"Invalid integer for {name}: {raw!r}") from None

        return cls(
            target_sku=(os.getenv("TARGET_SKU") or DEFAULT_TARGET_SKU).strip(),
            base_url=(os.getenv("RIPLEY_BASE_URL") or DEFAULT_BASE_URL).strip(),
            max_retries=_int_env("MAX_RETRIES", 3),
            retry_delay_ms=_int_env("RETRY_DELAY", 2000),
            page_timeout_ms=_int_env("PAGE_TIMEOUT", 30000),
            element_timeout_ms=_int_env("ELEMENT_TIMEOUT", 10000),
            headless=_bool_env("HEADLESS", False),
            slow_mo_ms=_int_env("SLOW_MO", 100),
            evasion_jitter_ms=_int_env("EVASION_JITTER_MS", 500),
            email=(os.getenv("RIPLEY_EMAIL") or "").strip(),
            password=os.getenv("RIPLEY_PASSWORD") or "",
            screenshot_dir=os.getenv("SCREENSHOT_DIR", "."),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    The entrypoint builds a single `AppConfig` at startup and passes it
    explicitly through the workflows; there is no module-level instance.
    """

    return AppConfig.from_env()
