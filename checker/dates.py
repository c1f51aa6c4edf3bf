"""
Delivery commitment date extraction.

Text matching works on sanitized text and tries the date patterns in a fixed
order (dd-mm-yyyy, dd/mm/yyyy, "dd de <mes> de yyyy", "<month> dd, yyyy").
Every match of a pattern is tried in text order and the first one that is a
real calendar date wins; anything else is skipped, never returned.

On a page three strategies run in order and the first hit wins: date-shaped
elements, then keyword-anchored matches in the whole body text, then every
known cart/summary section (its own text, then each element inside it).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterator, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from checker.browser.resolver import read_text
from checker.selectors import DEFAULT_CART_SELECTORS, CartSelectors
from checker.validators import format_commitment_date, is_valid_commitment_date, sanitize_text
from shared.logging import get_logger

logger = get_logger(__name__)

MONTHS = {
    # Spanish
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
    "ene": 1,
    "abr": 4,
    "ago": 8,
    "dic": 12,
    # English
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Maximum characters allowed between a delivery keyword and the date token.
KEYWORD_WINDOW = 80
# Longest date token we expect ("30 de septiembre de 2025" plus slack).
_MAX_TOKEN_LENGTH = 40

KEYWORD_PATTERN = re.compile(r"entrega|delivery|compromiso|env[íi]o", re.IGNORECASE)

# Cap on descendants inspected per section in the section-scoped scan.
MAX_SECTION_ELEMENTS = 200


@dataclass(frozen=True)
class DatePattern:
    name: str
    regex: re.Pattern
    # Returns (day, month, year) or None when a month name is unknown.
    parts: Callable[[re.Match], Optional[tuple[int, int, int]]]


def _numeric(match: re.Match) -> tuple[int, int, int]:
    day, month, year = match.groups()
    return int(day), int(month), int(year)


def _day_month_name(match: re.Match) -> Optional[tuple[int, int, int]]:
    day, month_name, year = match.groups()
    month = MONTHS.get(month_name.lower())
    return (int(day), month, int(year)) if month else None


def _month_name_day(match: re.Match) -> Optional[tuple[int, int, int]]:
    month_name, day, year = match.groups()
    month = MONTHS.get(month_name.lower())
    return (int(day), month, int(year)) if month else None


DATE_PATTERNS = (
    DatePattern("dash", re.compile(r"\b(\d{1,2})-(\d{1,2})-(\d{4})\b"), _numeric),
    DatePattern("slash", re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b"), _numeric),
    DatePattern(
        "spanish_long",
        re.compile(r"\b(\d{1,2}) de ([a-záéíóú]+) de (\d{4})\b", re.IGNORECASE),
        _day_month_name,
    ),
    DatePattern(
        "month_first",
        re.compile(r"\b([a-z]+)\.? (\d{1,2}),? (\d{4})\b", re.IGNORECASE),
        _month_name_day,
    ),
)


def _to_commitment_date(parts: Optional[tuple[int, int, int]]) -> Optional[str]:
    if parts is None:
        return None
    day, month, year = parts
    try:
        value = format_commitment_date(date(year, month, day))
    except ValueError:
        logger.debug("date_invalid", reason="calendar", parts=parts)
        return None
    return value if is_valid_commitment_date(value) else None


def normalize_date(value: str) -> Optional[str]:
    """
    Normalize a single date string to zero-padded dd-mm-yyyy.

    Returns None unless the whole string is one of the known date forms and
    a real calendar date. Idempotent on valid dd-mm-yyyy values.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    for pattern in DATE_PATTERNS:
        match = pattern.regex.fullmatch(text)
        if match:
            return _to_commitment_date(pattern.parts(match))
    return None


def _candidates(text: str) -> Iterator[tuple[int, str]]:
    """(offset, date) for every valid date in sanitized text, pattern by pattern."""
    for pattern in DATE_PATTERNS:
        for match in pattern.regex.finditer(text):
            value = _to_commitment_date(pattern.parts(match))
            if value is not None:
                yield match.start(), value
            else:
                logger.debug("date_candidate_rejected", pattern=pattern.name, raw=match.group())


def extract_date_from_text(text: str) -> Optional[str]:
    """First valid commitment date in a text blob, or None."""
    sanitized = sanitize_text(text)
    if not sanitized:
        return None
    for _offset, value in _candidates(sanitized):
        return value
    return None


def extract_date_near_keyword(text: str) -> Optional[str]:
    """
    First valid date that starts within KEYWORD_WINDOW characters after a
    delivery keyword ("entrega", "delivery", "compromiso", "envío").
    """
    sanitized = sanitize_text(text)
    for keyword in KEYWORD_PATTERN.finditer(sanitized):
        start = keyword.end()
        window = sanitized[start : start + KEYWORD_WINDOW + _MAX_TOKEN_LENGTH]
        found = [(offset, value) for offset, value in _candidates(window) if offset <= KEYWORD_WINDOW]
        if found:
            return min(found)[1]
    return None


async def _texts(group: Locator, limit: Optional[int] = None, visible_only: bool = False) -> list[str]:
    try:
        count = await group.count()
    except PlaywrightError:
        return []
    if limit is not None:
        count = min(count, limit)
    texts = []
    for index in range(count):
        element = group.nth(index)
        if visible_only:
            try:
                if not await element.is_visible():
                    continue
            except PlaywrightError:
                continue
        texts.append(await read_text(element))
    return texts


async def _from_date_elements(page: Page, selectors: CartSelectors) -> Optional[str]:
    for candidate in selectors.date_element:
        for text in await _texts(candidate.locate(page), visible_only=True):
            value = extract_date_from_text(text)
            if value:
                logger.info("date_extracted", strategy="selector", locator=candidate.expression, date=value)
                return value
    return None


async def _page_text(page: Page) -> str:
    try:
        return await page.inner_text("body")
    except PlaywrightError as e:
        logger.debug("page_text_unavailable", error=str(e))
        return ""


async def _from_page_text(page: Page) -> Optional[str]:
    value = extract_date_near_keyword(await _page_text(page))
    if value:
        logger.info("date_extracted", strategy="keyword", date=value)
    return value


async def _from_sections(page: Page, selectors: CartSelectors) -> Optional[str]:
    for candidate in selectors.date_section:
        sections = candidate.locate(page)
        try:
            section_count = await sections.count()
        except PlaywrightError:
            continue
        for index in range(section_count):
            section = sections.nth(index)
            # The section's own textContent first: it joins inline children.
            texts = [await read_text(section)]
            texts.extend(await _texts(section.locator("*"), limit=MAX_SECTION_ELEMENTS))
            for text in texts:
                value = extract_date_from_text(text)
                if value:
                    logger.info("date_extracted", strategy="section", locator=candidate.expression, date=value)
                    return value
    return None


async def extract_commitment_date(
    page: Page,
    selectors: CartSelectors = DEFAULT_CART_SELECTORS,
) -> Optional[str]:
    """Commitment date shown on the current (cart) page, or None."""
    value = await _from_date_elements(page, selectors)
    if value is None:
        value = await _from_page_text(page)
    if value is None:
        value = await _from_sections(page, selectors)
    if value is None:
        logger.warning("date_not_found")
    return value
