"""
Unit tests for the browser session lifecycle. Playwright itself is mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from checker.browser.evasion import LAUNCH_ARGS, build_evasion_profile
from checker.browser.session import _accept_dialog, browser_session
from shared.config import AppConfig


def _config() -> AppConfig:
    return AppConfig(
        target_sku="2000377223468P",
        base_url="https://www.ripley.cl",
        max_retries=3,
        retry_delay_ms=2000,
        page_timeout_ms=30000,
        element_timeout_ms=10000,
        headless=True,
        slow_mo_ms=100,
        evasion_jitter_ms=500,
        email="buyer@example.com",
        password="secret123",
    )


def _playwright():
    page = MagicMock()
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.add_init_script = AsyncMock()
    context.add_cookies = AsyncMock()
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    p = MagicMock()
    p.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=p)
    manager.__aexit__ = AsyncMock(return_value=False)
    return manager, p, browser, page


@pytest.mark.asyncio
async def test_browser_session_configures_page_and_closes_browser():
    manager, p, browser, page = _playwright()
    profile = build_evasion_profile("https://www.ripley.cl")

    with patch("checker.browser.session.async_playwright", return_value=manager):
        async with browser_session(_config(), profile) as session:
            assert session.page is page

    p.chromium.launch.assert_awaited_once_with(headless=True, slow_mo=100, args=list(LAUNCH_ARGS))
    page.set_default_timeout.assert_called_once_with(10000)
    page.set_default_navigation_timeout.assert_called_once_with(30000)
    events = [call.args[0] for call in page.on.call_args_list]
    assert events == ["dialog", "pageerror"]
    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_browser_session_closes_browser_when_workflow_fails():
    manager, _p, browser, _page = _playwright()
    profile = build_evasion_profile("https://www.ripley.cl")

    with patch("checker.browser.session.async_playwright", return_value=manager):
        with pytest.raises(RuntimeError):
            async with browser_session(_config(), profile):
                raise RuntimeError("workflow crashed")

    browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_dialogs_are_accepted():
    dialog = MagicMock()
    dialog.type = "alert"
    dialog.message = "Producto agregado"
    dialog.accept = AsyncMock()
    await _accept_dialog(dialog)
    dialog.accept.assert_awaited_once()
