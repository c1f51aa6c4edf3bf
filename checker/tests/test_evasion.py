"""
Unit tests for the evasion profile, cookies, context setup and screenshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from checker.artifacts import build_screenshot_path, save_failure_screenshot
from checker.browser.evasion import (
    FINGERPRINT_SCRIPT,
    USER_AGENT,
    apply_evasion_profile,
    build_evasion_profile,
    cookie_domain_for,
    realistic_cookies,
)
from checker.browser.session import create_browser_context


def test_cookie_domain_for_strips_www():
    assert cookie_domain_for("https://www.ripley.cl") == ".ripley.cl"
    assert cookie_domain_for("https://simple.ripley.cl/x") == ".simple.ripley.cl"
    assert cookie_domain_for("not a url") == ".ripley.cl"


def test_profile_context_options_are_chilean_desktop():
    options = build_evasion_profile("https://www.ripley.cl").context_options()
    assert options["user_agent"] == USER_AGENT
    assert options["viewport"] == {"width": 1366, "height": 768}
    assert options["locale"] == "es-CL"
    assert options["timezone_id"] == "America/Santiago"
    assert options["extra_http_headers"]["Accept-Language"].startswith("es-CL")


def test_fingerprint_script_hides_webdriver():
    assert "'webdriver'" in FINGERPRINT_SCRIPT


def test_realistic_cookies_shape():
    cookies = realistic_cookies(".ripley.cl", now=1_700_000_000)
    assert [cookie["name"] for cookie in cookies] == ["_ga", "_gid", "sessionId"]
    assert all(cookie["domain"] == ".ripley.cl" for cookie in cookies)
    assert cookies[0]["value"].startswith("GA1.2.")
    assert cookies[0]["expires"] == 1_700_000_000 + 86400 * 365
    assert len(cookies[2]["value"]) == 32


@pytest.mark.asyncio
async def test_apply_evasion_profile_injects_scripts_and_cookies():
    context = AsyncMock()
    profile = build_evasion_profile("https://www.ripley.cl")
    await apply_evasion_profile(context, profile)
    assert context.add_init_script.await_count == len(profile.init_scripts)
    context.add_cookies.assert_awaited_once()


@pytest.mark.asyncio
async def test_apply_evasion_profile_failure_is_not_fatal():
    context = AsyncMock()
    context.add_cookies = AsyncMock(side_effect=PlaywrightError("Invalid cookie fields"))
    await apply_evasion_profile(context, build_evasion_profile("https://www.ripley.cl"))


@pytest.mark.asyncio
async def test_create_browser_context_uses_profile_options():
    context = AsyncMock()
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    profile = build_evasion_profile("https://www.ripley.cl")

    created = await create_browser_context(browser, profile)

    assert created is context
    browser.new_context.assert_awaited_once_with(**profile.context_options())
    context.add_init_script.assert_awaited()


# --- Screenshots ---


def test_build_screenshot_path_names_kind_and_time():
    now = datetime(2025, 8, 15, 10, 30, 0, 123456, tzinfo=timezone.utc)
    path = build_screenshot_path("shots", "busqueda-2000377223468P", now)
    assert path == Path("shots") / "error-busqueda-2000377223468P-20250815T103000123456.png"
    assert build_screenshot_path(".", "a/b c", now).name.startswith("error-a-b-c-")


@pytest.mark.asyncio
async def test_save_failure_screenshot_full_page(tmp_path):
    page = MagicMock()
    page.screenshot = AsyncMock()
    path = await save_failure_screenshot(page, "login", str(tmp_path))
    assert path.parent == tmp_path
    page.screenshot.assert_awaited_once_with(path=str(path), full_page=True)


@pytest.mark.asyncio
async def test_save_failure_screenshot_is_best_effort(tmp_path):
    page = MagicMock()
    page.screenshot = AsyncMock(side_effect=PlaywrightError("Target closed"))
    assert await save_failure_screenshot(page, "carrito", str(tmp_path)) is None


def test_fingerprint_script_wraps_history_api():
    assert "define(history, 'length'" in FINGERPRINT_SCRIPT
    assert "history.pushState = function" in FINGERPRINT_SCRIPT
    assert "history.replaceState = function" in FINGERPRINT_SCRIPT
