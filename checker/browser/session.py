"""
Browser session lifecycle: one Chromium, one context, one page per run.

`browser_session` is the only place a browser is launched or closed. The
page it yields belongs to the active workflow until the block exits, on
success, failure or cancellation alike.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from playwright.async_api import Browser, BrowserContext, Dialog, Page, async_playwright

from checker.browser.evasion import LAUNCH_ARGS, EvasionProfile, apply_evasion_profile
from shared.config import AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BrowserSession:
    browser: Browser
    context: BrowserContext
    page: Page


async def _accept_dialog(dialog: Dialog) -> None:
    logger.info("page_dialog_accepted", dialog_type=dialog.type, dialog_message=dialog.message)
    try:
        await dialog.accept()
    except Exception as e:
        logger.warning("page_dialog_accept_failed", error=str(e))


def _on_page_error(error: Exception) -> None:
    logger.warning("page_script_error", error=str(error))


async def create_browser_context(browser: Browser, profile: EvasionProfile) -> BrowserContext:
    """Create a context with the evasion profile's UA, viewport, locale and headers applied."""
    context = await browser.new_context(**profile.context_options())
    await apply_evasion_profile(context, profile)
    return context


@asynccontextmanager
async def browser_session(config: AppConfig, profile: EvasionProfile) -> AsyncIterator[BrowserSession]:
    """
    Launch Chromium and yield a configured page; close everything exactly once on exit.
    """
    async with async_playwright() as p:
        logger.info("browser_starting", headless=config.headless, slow_mo_ms=config.slow_mo_ms)
        browser = await p.chromium.launch(
            headless=config.headless,
            slow_mo=config.slow_mo_ms,
            args=list(LAUNCH_ARGS),
        )
        try:
            context = await create_browser_context(browser, profile)
            page = await context.new_page()
            page.set_default_timeout(config.element_timeout_ms)
            page.set_default_navigation_timeout(config.page_timeout_ms)
            page.on("dialog", _accept_dialog)
            page.on("pageerror", _on_page_error)
            logger.info("browser_ready")
            yield BrowserSession(browser=browser, context=context, page=page)
        finally:
            try:
                await browser.close()
                logger.info("browser_closed")
            except Exception as e:
                logger.error("browser_close_failed", error=str(e))
