"""
Validation and formatting helpers for SKUs, dates, credentials and result records.

Predicates return bool and log the reason for a rejection; they never raise.
`validate_config` is the exception: it raises ValidationError listing every
problem so startup fails once with the full picture.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from checker.errors import ValidationError
from checker.models import Credentials, ResultRecord, mask_email
from shared.config import AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

SKU_PATTERN = re.compile(r"^[A-Za-z0-9]{10,}$")
COMMITMENT_DATE_PATTERN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_YEAR = 2000
MAX_YEAR = 2100
MIN_PASSWORD_LENGTH = 6

MAX_RETRIES_RANGE = (1, 10)
RETRY_DELAY_RANGE_MS = (1000, 10000)
TIMEOUT_RANGE_MS = (1000, 300000)

RESULT_FIELDS = ("sku", "fecha_compromiso", "estado", "timestamp")

LOCAL_TIMEZONE = ZoneInfo("America/Santiago")

# Characters outside this set become spaces before date matching.
_SANITIZE_DISALLOWED = re.compile(r"[^\w\s\-:/.,áéíóúÁÉÍÓÚñÑüÜ]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def is_valid_sku(sku: Any) -> bool:
    """At least 10 ASCII letters or digits, nothing else."""
    if not sku or not isinstance(sku, str):
        logger.warning("sku_invalid", reason="empty_or_not_string")
        return False
    if not SKU_PATTERN.match(sku):
        logger.warning("sku_invalid", reason="format", sku=sku)
        return False
    return True


def is_valid_commitment_date(value: Any) -> bool:
    """
    True for a real calendar date written dd-mm-yyyy with year in [2000, 2100].

    29-02-2024 passes, 29-02-2023 and 31-04-2025 do not.
    """
    if not value or not isinstance(value, str):
        return False
    match = COMMITMENT_DATE_PATTERN.match(value)
    if not match:
        logger.debug("date_invalid", reason="format", value=value)
        return False
    day, month, year = (int(part) for part in match.groups())
    if not MIN_YEAR <= year <= MAX_YEAR:
        logger.debug("date_invalid", reason="year_out_of_range", value=value)
        return False
    try:
        date(year, month, day)
    except ValueError:
        logger.debug("date_invalid", reason="calendar", value=value)
        return False
    return True


def is_valid_url(url: Any) -> bool:
    if not url or not isinstance(url, str):
        logger.warning("url_invalid", reason="empty_or_not_string")
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        logger.warning("url_invalid", reason="format", url=url)
        return False
    return True


def is_valid_email(email: Any) -> bool:
    if not email or not isinstance(email, str):
        logger.warning("email_invalid", reason="empty_or_not_string")
        return False
    if not EMAIL_PATTERN.match(email):
        logger.warning("email_invalid", reason="format", email=mask_email(email))
        return False
    return True


def is_valid_credentials(credentials: Optional[Credentials]) -> bool:
    if credentials is None:
        logger.error("credentials_invalid", reason="missing")
        return False
    if not is_valid_email(credentials.email):
        return False
    password = credentials.password
    if not password or not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        logger.warning("credentials_invalid", reason="password_too_short")
        return False
    return True


def is_valid_timeout(timeout_ms: Any) -> bool:
    low, high = TIMEOUT_RANGE_MS
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int):
        logger.warning("timeout_invalid", reason="not_int", timeout_ms=timeout_ms)
        return False
    if not low <= timeout_ms <= high:
        logger.warning("timeout_invalid", reason="out_of_range", timeout_ms=timeout_ms)
        return False
    return True


def is_valid_result_record(record: Any) -> bool:
    """
    Check a ResultRecord (or a dict with the same keys).

    fecha_compromiso may be empty (failure records); when present it must be
    a valid commitment date.
    """
    if isinstance(record, ResultRecord):
        data = record.to_dict()
    elif isinstance(record, dict):
        data = record
    else:
        logger.error("result_invalid", reason="not_a_record")
        return False

    for name in RESULT_FIELDS:
        if name not in data:
            logger.error("result_invalid", reason="missing_field", field=name)
            return False

    if not is_valid_sku(data["sku"]):
        return False
    if data["fecha_compromiso"] and not is_valid_commitment_date(data["fecha_compromiso"]):
        logger.warning("result_invalid", reason="fecha_compromiso", value=data["fecha_compromiso"])
        return False
    for name in ("estado", "timestamp"):
        value = data[name]
        if not value or not isinstance(value, str):
            logger.warning("result_invalid", reason="empty_field", field=name)
            return False
    return True


def format_commitment_date(value: date) -> str:
    """Format a date as dd-mm-yyyy."""
    return value.strftime("%d-%m-%Y")


def generate_timestamp(now: Optional[datetime] = None) -> str:
    """Local Chilean timestamp, e.g. 15-08-2025, 14:03:22."""
    current = now.astimezone(LOCAL_TIMEZONE) if now else datetime.now(LOCAL_TIMEZONE)
    return current.strftime("%d-%m-%Y, %H:%M:%S")


def sanitize_text(text: Any) -> str:
    """Replace characters outside the date-safe set with spaces, then trim and collapse whitespace."""
    if not text or not isinstance(text, str):
        return ""
    spaced = _SANITIZE_DISALLOWED.sub(" ", text)
    return _WHITESPACE.sub(" ", spaced).strip()


def validate_config(config: AppConfig) -> None:
    """Raise ValidationError if any startup value is out of bounds."""
    problems: list[str] = []

    if not is_valid_sku(config.target_sku):
        problems.append(f"invalid target SKU: {config.target_sku!r}")
    if not is_valid_credentials(Credentials(email=config.email, password=config.password)):
        problems.append("invalid Ripley credentials (RIPLEY_EMAIL / RIPLEY_PASSWORD)")
    if not is_valid_url(config.base_url):
        problems.append(f"invalid base URL: {config.base_url!r}")

    low, high = MAX_RETRIES_RANGE
    if not low <= config.max_retries <= high:
        problems.append(f"MAX_RETRIES must be between {low} and {high}")
    low, high = RETRY_DELAY_RANGE_MS
    if not low <= config.retry_delay_ms <= high:
        problems.append(f"RETRY_DELAY must be between {low} and {high} ms")

    if not is_valid_timeout(config.page_timeout_ms):
        problems.append("PAGE_TIMEOUT must be between 1000 and 300000 ms")
    if not is_valid_timeout(config.element_timeout_ms):
        problems.append("ELEMENT_TIMEOUT must be between 1000 and 300000 ms")
    if config.evasion_jitter_ms < 0:
        problems.append("EVASION_JITTER_MS must not be negative")

    if problems:
        raise ValidationError("; ".join(problems))
