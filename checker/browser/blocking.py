"""
Anti-automation block detection and recovery.

Detection is a read-only probe: indicator locators per block kind with a
short per-locator budget, then a title substring check. The result is
re-derived on every call and never cached.
"""

from __future__ import annotations

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from checker.browser.humanize import HumanSimulator
from checker.browser.resolver import resolve
from checker.models import BlockKind
from checker.selectors import DEFAULT_BLOCK_INDICATORS, BlockIndicators
from shared.logging import get_logger

logger = get_logger(__name__)

BLOCK_PROBE_TIMEOUT_MS = 1000
# Recovery waits are drawn from this window (ms).
RECOVERY_WAIT_MS = (10_000, 25_000)
MAX_RECOVERY_ROUNDS = 2


async def _title_block_kind(page: Page, indicators: BlockIndicators) -> BlockKind:
    try:
        title = (await page.title()).lower()
    except PlaywrightError:
        return BlockKind.NONE
    for kind_value, fragments in indicators.title_fragments:
        if any(fragment in title for fragment in fragments):
            return BlockKind(kind_value)
    return BlockKind.NONE


async def detect_block(
    page: Page,
    indicators: BlockIndicators = DEFAULT_BLOCK_INDICATORS,
    *,
    timeout_ms: int = BLOCK_PROBE_TIMEOUT_MS,
) -> BlockKind:
    """Return the first block kind whose indicators are visible, else BlockKind.NONE."""
    table = (
        (BlockKind.CHALLENGE_PAGE, indicators.challenge_page),
        (BlockKind.CUSTOM_BLOCK, indicators.custom_block),
        (BlockKind.RATE_LIMITED, indicators.rate_limited),
    )
    for kind, candidates in table:
        if await resolve(page, candidates, timeout_ms=timeout_ms, target=f"block:{kind.value}"):
            logger.info("block_detected", kind=kind.value, source="indicator")
            return kind

    kind = await _title_block_kind(page, indicators)
    if kind.is_blocked:
        logger.info("block_detected", kind=kind.value, source="title")
    return kind


async def recover_from_block(
    page: Page,
    simulator: HumanSimulator,
    kind: BlockKind,
    *,
    indicators: BlockIndicators = DEFAULT_BLOCK_INDICATORS,
    max_rounds: int = MAX_RECOVERY_ROUNDS,
    reload_timeout_ms: int = 30_000,
) -> BlockKind:
    """
    Wait out a block page: jittered wait, intensive human activity, reload,
    wait again, re-check. Repeats up to max_rounds. Returns the block kind
    still present afterwards (BlockKind.NONE when recovered).
    """
    for round_number in range(1, max_rounds + 1):
        logger.warning("block_recovery_started", kind=kind.value, round=round_number)
        await simulator.pause(*RECOVERY_WAIT_MS)
        await simulator.intensive_activity(page)
        try:
            await page.reload(wait_until="domcontentloaded", timeout=reload_timeout_ms)
        except PlaywrightError as e:
            logger.warning("block_recovery_reload_failed", round=round_number, error=str(e))
        await simulator.pause(*RECOVERY_WAIT_MS)

        kind = await detect_block(page, indicators)
        if not kind.is_blocked:
            logger.info("block_recovered", round=round_number)
            return kind

    logger.error("block_recovery_exhausted", kind=kind.value, rounds=max_rounds)
    return kind
