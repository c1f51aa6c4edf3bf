"""
Product search and add-to-cart workflow.

Public contract: `search_and_add_to_cart` always returns a SearchOutcome.
Each step raises a typed failure internally; DOM and timeout errors from
Playwright are converted at the boundary so nothing escapes to the caller.
"""

from __future__ import annotations

import re
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from checker.artifacts import save_failure_screenshot
from checker.browser.humanize import HumanSimulator
from checker.browser.resolver import read_text, resolve, resolve_all
from checker.errors import (
    CheckerError,
    InvalidSku,
    NoResults,
    ResolutionFailure,
    VerificationFailure,
)
from checker.models import SUCCESS_STATUS, SearchOutcome
from checker.selectors import DEFAULT_SEARCH_SELECTORS, SearchSelectors
from checker.validators import generate_timestamp, is_valid_sku
from shared.logging import get_logger

logger = get_logger(__name__)

PROBE_TIMEOUT_MS = 2000
BUTTON_PROBE_TIMEOUT_MS = 1000
PRODUCT_PROBE_TIMEOUT_MS = 3000
CONFIRMATION_PROBE_TIMEOUT_MS = 3000
RESULTS_SETTLE_MS = 3000
PRODUCT_SETTLE_MS = 2000
ADD_SETTLE_MS = 3000

_DIGITS = re.compile(r"\d+")


def parse_counter(text: str) -> Optional[int]:
    """First integer in a cart badge text ("3", "(3)", "3 items"), or None."""
    match = _DIGITS.search(text or "")
    return int(match.group()) if match else None


class SearchWorkflow:
    def __init__(
        self,
        page: Page,
        sku: str,
        simulator: HumanSimulator,
        selectors: SearchSelectors = DEFAULT_SEARCH_SELECTORS,
    ) -> None:
        self.page = page
        self.sku = sku
        self.simulator = simulator
        self.selectors = selectors

    async def run(self) -> None:
        if not is_valid_sku(self.sku):
            raise InvalidSku(self.sku)
        await self.submit_search()
        await self.check_results()
        await self.open_product()
        await self.add_to_cart()

    async def submit_search(self) -> None:
        await self.simulator.simulate_browsing(self.page)
        field = await resolve(
            self.page,
            self.selectors.search_input,
            timeout_ms=PROBE_TIMEOUT_MS,
            target="search_input",
        )
        if field is None:
            raise ResolutionFailure("Search field not found")
        await self.simulator.simulate_typing(field.locator, self.sku)
        logger.info("search_query_entered", locator=field.candidate.expression)

        button = await resolve(
            self.page,
            self.selectors.search_button,
            timeout_ms=BUTTON_PROBE_TIMEOUT_MS,
            target="search_button",
        )
        if button is not None:
            await self.simulator.hover_and_click(button.locator)
        else:
            logger.info("search_button_not_found", fallback="enter_key")
            await self.page.keyboard.press("Enter")
        await self.simulator.settle(RESULTS_SETTLE_MS)
        await self.simulator.simulate_browsing(self.page)

    async def check_results(self) -> None:
        """A visible "no results" message wins over any product elements on the page."""
        empty = await resolve(
            self.page,
            self.selectors.no_results,
            timeout_ms=PROBE_TIMEOUT_MS,
            target="no_results",
        )
        if empty is not None:
            raise NoResults(f"Search returned no results for SKU {self.sku}")

        products = await resolve_all(self.page, self.selectors.product_result, target="product_results")
        if products is None:
            raise NoResults(f"No products found in the search results for SKU {self.sku}")
        logger.info("search_results_found", count=products.count, locator=products.candidate.expression)

    async def open_product(self) -> None:
        direct = await resolve(
            self.page,
            self.selectors.product_for_sku(self.sku),
            timeout_ms=PRODUCT_PROBE_TIMEOUT_MS,
            target="product_by_sku",
        )
        if direct is not None:
            logger.info("product_matched", strategy="locator", locator=direct.candidate.expression)
            element = direct.locator
        else:
            element = await self._scan_products()
            if element is None:
                raise NoResults(f"Product {self.sku} not found in the search results")

        await element.scroll_into_view_if_needed()
        await element.click()
        await self.simulator.settle(PRODUCT_SETTLE_MS)
        await self.simulator.simulate_browsing(self.page)

    async def _scan_products(self):
        """First generic result (DOM order) whose text contains the SKU."""
        for candidate in self.selectors.product_scan:
            products = candidate.locate(self.page)
            try:
                count = await products.count()
            except PlaywrightError:
                continue
            for index in range(count):
                product = products.nth(index)
                if self.sku in await read_text(product):
                    logger.info(
                        "product_matched",
                        strategy="text_scan",
                        locator=candidate.expression,
                        position=index,
                    )
                    return product
        return None

    async def _read_cart_count(self, timeout_ms: int) -> Optional[int]:
        counter = await resolve(
            self.page,
            self.selectors.cart_counter,
            timeout_ms=timeout_ms,
            target="cart_counter",
        )
        if counter is None:
            return None
        return parse_counter(await read_text(counter.locator))

    async def add_to_cart(self) -> None:
        before = await self._read_cart_count(timeout_ms=BUTTON_PROBE_TIMEOUT_MS)

        button = await resolve(
            self.page,
            self.selectors.add_to_cart,
            timeout_ms=PROBE_TIMEOUT_MS,
            require_enabled=True,
            target="add_to_cart",
        )
        if button is None:
            raise ResolutionFailure('"Add to cart" button not found or disabled')
        await self.simulator.hover_and_click(button.locator)
        await self.simulator.settle(ADD_SETTLE_MS)

        notification = await resolve(
            self.page,
            self.selectors.added_notification,
            timeout_ms=CONFIRMATION_PROBE_TIMEOUT_MS,
            target="added_notification",
        )
        if notification is not None:
            logger.info("product_added", signal="notification", locator=notification.candidate.expression)
            return

        after = await self._read_cart_count(timeout_ms=CONFIRMATION_PROBE_TIMEOUT_MS)
        if after is not None and after > (before or 0):
            logger.info("product_added", signal="cart_counter", before=before, after=after)
            return

        raise VerificationFailure("Could not confirm the product was added to the cart")


async def search_and_add_to_cart(
    page: Page,
    sku: str,
    simulator: HumanSimulator,
    *,
    selectors: SearchSelectors = DEFAULT_SEARCH_SELECTORS,
    screenshot_dir: Optional[str] = ".",
) -> SearchOutcome:
    """Search the SKU, open its product page and add it to the cart."""
    logger.info("search_started")
    try:
        await SearchWorkflow(page, sku, simulator, selectors).run()
    except (CheckerError, PlaywrightError) as e:
        logger.error("search_failed", error=str(e), error_type=type(e).__name__)
        if screenshot_dir is not None and not isinstance(e, InvalidSku):
            await save_failure_screenshot(page, f"busqueda-{sku}", screenshot_dir)
        return SearchOutcome(sku=sku, exito=False, mensaje=str(e), timestamp=generate_timestamp())

    logger.info("search_succeeded")
    return SearchOutcome(sku=sku, exito=True, mensaje=SUCCESS_STATUS, timestamp=generate_timestamp())
