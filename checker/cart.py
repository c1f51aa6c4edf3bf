"""
Cart navigation and commitment date lookup.

`get_commitment_date` opens the cart (header icon first, direct cart URLs as
a fallback), checks that it really is a non-empty cart and hands the page to
the date extraction engine. Failures are logged with a screenshot and come
back as None.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from checker.artifacts import save_failure_screenshot
from checker.browser.humanize import HumanSimulator
from checker.browser.resolver import read_text, resolve, resolve_all
from checker.dates import extract_commitment_date
from checker.errors import CheckerError, ResolutionFailure, VerificationFailure
from checker.search import parse_counter
from checker.selectors import DEFAULT_CART_SELECTORS, CartSelectors
from shared.logging import get_logger

logger = get_logger(__name__)

NAV_TIMEOUT_MS = 30_000
PROBE_TIMEOUT_MS = 2000
CART_SETTLE_MS = 3000


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/"


async def is_cart_page(page: Page, selectors: CartSelectors = DEFAULT_CART_SELECTORS) -> bool:
    """URL mentions the cart, or a cart container is visible."""
    url = (page.url or "").lower()
    if any(fragment in url for fragment in selectors.cart_url_fragments):
        return True
    found = await resolve(page, selectors.cart_page, timeout_ms=PROBE_TIMEOUT_MS, target="cart_page")
    return found is not None


async def cart_has_items(page: Page, selectors: CartSelectors = DEFAULT_CART_SELECTORS) -> bool:
    items = await resolve_all(page, selectors.cart_item, target="cart_items")
    if items is not None:
        logger.info("cart_items_found", count=items.count, locator=items.candidate.expression)
        return True
    counter = await resolve(page, selectors.cart_counter, timeout_ms=PROBE_TIMEOUT_MS, target="cart_counter")
    if counter is None:
        return False
    count = parse_counter(await read_text(counter.locator))
    logger.info("cart_counter_read", count=count)
    return bool(count)


async def _open_direct(page: Page, selectors: CartSelectors, nav_timeout_ms: int) -> bool:
    origin = _origin(page.url)
    for path in selectors.cart_paths:
        url = urljoin(origin, path)
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=nav_timeout_ms)
        except PlaywrightError as e:
            logger.debug("cart_url_failed", url=url, error=str(e))
            continue
        if await is_cart_page(page, selectors):
            logger.info("cart_opened", method="direct_url", url=url)
            return True
    return False


async def navigate_to_cart(
    page: Page,
    simulator: HumanSimulator,
    selectors: CartSelectors = DEFAULT_CART_SELECTORS,
    *,
    nav_timeout_ms: int = NAV_TIMEOUT_MS,
) -> None:
    """Open the cart page; raises ResolutionFailure if no route reaches it."""
    await simulator.simulate_browsing(page)
    icon = await resolve(page, selectors.cart_icon, timeout_ms=PROBE_TIMEOUT_MS, target="cart_icon")
    if icon is not None:
        await simulator.hover_and_click(icon.locator)
        await simulator.settle(CART_SETTLE_MS)
        if await is_cart_page(page, selectors):
            logger.info("cart_opened", method="icon", locator=icon.candidate.expression)
            return
        logger.info("cart_icon_did_not_open_cart", url=page.url)
    else:
        logger.info("cart_icon_not_found", fallback="direct_url")

    if not await _open_direct(page, selectors, nav_timeout_ms):
        raise ResolutionFailure("Could not open the cart page")
    await simulator.settle(CART_SETTLE_MS)


async def get_commitment_date(
    page: Page,
    simulator: HumanSimulator,
    *,
    selectors: CartSelectors = DEFAULT_CART_SELECTORS,
    nav_timeout_ms: int = NAV_TIMEOUT_MS,
    screenshot_dir: Optional[str] = ".",
) -> Optional[str]:
    """Commitment date from the cart page, or None when it cannot be read."""
    logger.info("cart_lookup_started")
    try:
        await navigate_to_cart(page, simulator, selectors, nav_timeout_ms=nav_timeout_ms)
        if not await cart_has_items(page, selectors):
            raise VerificationFailure("The cart is empty")
        await simulator.simulate_browsing(page)
        value = await extract_commitment_date(page, selectors)
        if value is None:
            raise VerificationFailure("No commitment date found on the cart page")
    except (CheckerError, PlaywrightError) as e:
        logger.error("cart_lookup_failed", error=str(e), error_type=type(e).__name__)
        if screenshot_dir is not None:
            await save_failure_screenshot(page, "carrito", screenshot_dir)
        return None
    return value
