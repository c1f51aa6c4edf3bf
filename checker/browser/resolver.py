"""
Resilient element resolution over ranked candidate lists.

Candidates are tried strictly in order with a short bounded visibility wait
each, so one stale selector cannot stall the whole lookup. A candidate that
does not match (timeout, detached, invalid selector) is simply skipped; an
exhausted list yields None. Callers decide whether absence is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from checker.browser.locators import Candidate, CandidateList
from shared.logging import get_logger

logger = get_logger(__name__)

# Per-candidate visibility budget (ms).
DEFAULT_PROBE_TIMEOUT_MS = 2000


@dataclass(frozen=True)
class ResolvedElement:
    """First visible match and the candidate that produced it."""

    candidate: Candidate
    locator: Locator


@dataclass(frozen=True)
class ResolvedGroup:
    """All elements matched by the first candidate with at least one attached match."""

    candidate: Candidate
    locator: Locator
    count: int


async def _probe(element: Locator, timeout_ms: int, require_enabled: bool) -> bool:
    try:
        await element.wait_for(state="visible", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        return False
    except PlaywrightError as e:
        logger.debug("locator_probe_error", error=str(e))
        return False
    if not require_enabled:
        return True
    try:
        return await element.is_enabled()
    except PlaywrightError:
        return False


async def resolve(
    page: Page,
    candidates: CandidateList,
    *,
    timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    require_enabled: bool = False,
    target: str = "element",
) -> Optional[ResolvedElement]:
    """
    Return the first candidate whose first match becomes visible within
    timeout_ms (and is enabled, when require_enabled), else None.

    Total wall time is bounded by len(candidates) * timeout_ms. Read-only:
    interacting with the handle is the caller's job.
    """
    for candidate in candidates:
        element = candidate.locate(page).first
        if await _probe(element, timeout_ms, require_enabled):
            logger.debug("locator_resolved", target=target, locator=candidate.expression)
            return ResolvedElement(candidate=candidate, locator=element)

    logger.debug("locator_not_resolved", target=target, candidates=len(candidates))
    return None


async def resolve_all(
    page: Page,
    candidates: CandidateList,
    *,
    target: str = "elements",
) -> Optional[ResolvedGroup]:
    """
    Return the first candidate that matches at least one attached element,
    with its match count. No visibility wait; used for presence checks and
    DOM-order scans.
    """
    for candidate in candidates:
        locator = candidate.locate(page)
        try:
            count = await locator.count()
        except PlaywrightError as e:
            logger.debug("locator_count_error", target=target, locator=candidate.expression, error=str(e))
            continue
        if count > 0:
            logger.debug("locator_group_resolved", target=target, locator=candidate.expression, count=count)
            return ResolvedGroup(candidate=candidate, locator=locator, count=count)
    return None


async def read_text(element: Locator) -> str:
    """text_content() of a handle, or "" if it cannot be read."""
    try:
        return (await element.text_content()) or ""
    except PlaywrightError:
        return ""
