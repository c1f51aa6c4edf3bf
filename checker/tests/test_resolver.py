"""
Unit tests for candidate locator rendering and ordered resolution.

No browser required; the page double answers by selector expression.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FakeElement, FakePage
from playwright.async_api import Error as PlaywrightError

from checker.browser.locators import ByAttribute, ByCss, ByRole, ByTextContent, css
from checker.browser.resolver import read_text, resolve, resolve_all

# --- Rendering ---


def test_locator_expressions():
    assert ByCss(".login-button").expression == ".login-button"
    assert ByAttribute("type", "email", tag="input").expression == 'input[type="email"]'
    assert ByAttribute("href", "login", match="contains", tag="a").expression == 'a[href*="login"]'
    assert ByAttribute("data-sku", "X1", match="prefix").expression == '[data-sku^="X1"]'
    assert ByTextContent("Ingresar", tag="a").expression == 'a:has-text("Ingresar")'
    assert ByTextContent("Just a moment", exact=True).expression == 'text="Just a moment"'
    assert ByTextContent("Agregar").expression == "text=Agregar"
    assert ByRole("button", name="Agregar al carrito").expression == 'role=button[name="Agregar al carrito"]'
    assert ByRole("searchbox").expression == "role=searchbox"


def test_locator_quotes_are_escaped():
    assert ByTextContent('Say "hi"', tag="p").expression == 'p:has-text("Say \\"hi\\"")'


def test_css_shorthand_keeps_order():
    assert [c.expression for c in css(".a", ".b", ".c")] == [".a", ".b", ".c"]


# --- resolve ---


@pytest.mark.asyncio
async def test_resolve_returns_first_visible_candidate_in_order():
    page = FakePage()
    page.add(".second", FakeElement(text="second"))
    page.add(".third", FakeElement(text="third"))
    found = await resolve(page, css(".first", ".second", ".third"), timeout_ms=500)
    assert found is not None
    assert found.candidate == ByCss(".second")
    assert await read_text(found.locator) == "second"
    # .third is never probed once .second matched.
    assert [expression for expression, _ in page.probes] == [".first", ".second"]


@pytest.mark.asyncio
async def test_resolve_skips_hidden_match():
    page = FakePage()
    page.add(".a", FakeElement(visible=False))
    page.add(".b")
    found = await resolve(page, css(".a", ".b"), timeout_ms=100)
    assert found.candidate == ByCss(".b")


@pytest.mark.asyncio
async def test_resolve_exhausted_returns_none_and_bounds_each_probe():
    page = FakePage()
    found = await resolve(page, css(".a", ".b", ".c"), timeout_ms=750)
    assert found is None
    assert page.probes == [(".a", 750), (".b", 750), (".c", 750)]


@pytest.mark.asyncio
async def test_resolve_require_enabled_skips_disabled():
    page = FakePage()
    page.add(".disabled", FakeElement(enabled=False))
    page.add(".enabled")
    found = await resolve(page, css(".disabled", ".enabled"), require_enabled=True)
    assert found.candidate == ByCss(".enabled")

    only_disabled = await resolve(page, css(".disabled"), require_enabled=True)
    assert only_disabled is None


@pytest.mark.asyncio
async def test_resolve_treats_playwright_errors_as_no_match():
    """An invalid selector raises from wait_for; the resolver moves on."""
    broken = MagicMock()
    broken.first.wait_for = AsyncMock(side_effect=PlaywrightError("Unexpected token"))
    working = MagicMock()
    working.first.wait_for = AsyncMock(return_value=None)
    page = MagicMock()
    page.locator = MagicMock(side_effect=[broken, working])

    found = await resolve(page, css("::bad", ".ok"))
    assert found.candidate == ByCss(".ok")


# --- resolve_all ---


@pytest.mark.asyncio
async def test_resolve_all_first_candidate_with_matches():
    page = FakePage()
    page.add(".product-card", FakeElement(text="a"), FakeElement(text="b"))
    group = await resolve_all(page, css(".product-item", ".product-card"))
    assert group.candidate == ByCss(".product-card")
    assert group.count == 2


@pytest.mark.asyncio
async def test_resolve_all_none_when_nothing_attached():
    assert await resolve_all(FakePage(), css(".x", ".y")) is None
