"""
Whole-workflow retry loop and the default check workflow.

A retry always restarts from login; there is no per-step resume. The loop
never raises for workflow failures: the last error becomes an
"Error: ..." record.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from playwright.async_api import Page

from checker.auth import login
from checker.browser.humanize import HumanSimulator
from checker.cart import get_commitment_date
from checker.errors import ValidationError, WorkflowFailure
from checker.models import SUCCESS_STATUS, Credentials, ResultRecord, error_status
from checker.search import search_and_add_to_cart
from checker.selectors import (
    DEFAULT_BLOCK_INDICATORS,
    DEFAULT_CART_SELECTORS,
    DEFAULT_LOGIN_SELECTORS,
    DEFAULT_SEARCH_SELECTORS,
    BlockIndicators,
    CartSelectors,
    LoginSelectors,
    SearchSelectors,
)
from checker.validators import generate_timestamp, is_valid_result_record
from shared.logging import bind_run_context, get_logger

logger = get_logger(__name__)

Workflow = Callable[[], Awaitable[ResultRecord]]


@dataclass
class RunStats:
    """Counters for the end-of-run summary."""

    attempts: int = 0
    started_at: float = field(default_factory=time.monotonic)

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


def log_run_summary(records: list[ResultRecord], stats: RunStats) -> dict:
    """Log and return the end-of-run statistics."""
    successes = sum(1 for record in records if record.is_success)
    failures = len(records) - successes
    summary = {
        "skus_processed": len(records),
        "attempts": stats.attempts,
        "successes": successes,
        "failures": failures,
        "success_rate": round(100 * successes / len(records)) if records else 0,
        "duration_ms": stats.duration_ms,
    }
    logger.info("run_summary", **summary)
    return summary


async def run_with_retries(
    workflow: Workflow,
    sku: str,
    max_attempts: int,
    delay_ms: int,
    *,
    stats: Optional[RunStats] = None,
) -> list[ResultRecord]:
    """
    Run workflow up to max_attempts times and return exactly one record.

    Stops at the first success. Sleeps delay_ms only between failed attempts,
    never after the last one.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        bind_run_context(sku=sku, attempt=attempt)
        if stats is not None:
            stats.attempts += 1
        logger.info("attempt_started", max_attempts=max_attempts)
        try:
            record = await workflow()
        except Exception as e:
            last_error = e
            logger.warning(
                "attempt_failed",
                error=str(e),
                error_type=type(e).__name__,
                step=getattr(e, "step", None),
            )
            if attempt < max_attempts:
                logger.info("attempt_retry_scheduled", delay_ms=delay_ms)
                await asyncio.sleep(delay_ms / 1000)
            continue

        logger.info("attempt_succeeded", fecha_compromiso=record.fecha_compromiso)
        return [record]

    logger.error("attempts_exhausted", max_attempts=max_attempts, error=str(last_error))
    return [
        ResultRecord(
            sku=sku,
            fecha_compromiso="",
            estado=error_status(str(last_error) if last_error else ""),
            timestamp=generate_timestamp(),
        )
    ]


async def run_workflow(
    page: Page,
    sku: str,
    credentials: Credentials,
    simulator: HumanSimulator,
    *,
    base_url: str,
    nav_timeout_ms: int = 30_000,
    screenshot_dir: Optional[str] = ".",
    login_selectors: LoginSelectors = DEFAULT_LOGIN_SELECTORS,
    search_selectors: SearchSelectors = DEFAULT_SEARCH_SELECTORS,
    cart_selectors: CartSelectors = DEFAULT_CART_SELECTORS,
    block_indicators: BlockIndicators = DEFAULT_BLOCK_INDICATORS,
) -> ResultRecord:
    """Login, search and add the SKU, then read the commitment date from the cart."""
    bind_run_context(step="auth")
    logged_in = await login(
        page,
        credentials,
        simulator,
        base_url=base_url,
        selectors=login_selectors,
        block_indicators=block_indicators,
        nav_timeout_ms=nav_timeout_ms,
        screenshot_dir=screenshot_dir,
    )
    if not logged_in:
        raise WorkflowFailure("auth", "Authentication failed on Ripley.cl")

    bind_run_context(step="search")
    outcome = await search_and_add_to_cart(
        page,
        sku,
        simulator,
        selectors=search_selectors,
        screenshot_dir=screenshot_dir,
    )
    if not outcome.exito:
        raise WorkflowFailure("search", outcome.mensaje)

    bind_run_context(step="extract")
    fecha = await get_commitment_date(
        page,
        simulator,
        selectors=cart_selectors,
        nav_timeout_ms=nav_timeout_ms,
        screenshot_dir=screenshot_dir,
    )
    if not fecha:
        raise WorkflowFailure("extract", "Could not extract the delivery commitment date")

    record = ResultRecord(
        sku=sku,
        fecha_compromiso=fecha,
        estado=SUCCESS_STATUS,
        timestamp=generate_timestamp(),
    )
    if not is_valid_result_record(record):
        raise ValidationError("Produced result record failed validation")
    return record
