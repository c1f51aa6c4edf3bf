"""
Human-like interaction noise: pointer wandering, scrolling, typing cadence, pauses.

Everything here is cosmetic. Browsing simulation never raises: a failed
mouse move or scroll is logged at debug and skipped. Typing is the one
exception because the text must end up in the field; if keystroke typing
fails it falls back to a plain fill and only that failure propagates.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional

from playwright.async_api import Locator, Page

from checker.browser.evasion import jittered_ms
from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_VIEWPORT = {"width": 1366, "height": 768}

WAYPOINTS_RANGE = (2, 4)
MOUSE_STEPS_RANGE = (5, 15)
SCROLLS_RANGE = (2, 4)
SCROLL_DELTA_PX = (100, 400)
TYPING_DELAY_MS = (50, 150)
ACTION_PAUSE_MS = (500, 1500)
READING_PAUSE_MS = (1000, 4000)


class HumanSimulator:
    """Randomized pointer, scroll, typing and pause sequences for one page."""

    def __init__(
        self,
        *,
        jitter_ms: int = 500,
        pause_window_ms: tuple[int, int] = ACTION_PAUSE_MS,
        typing_delay_ms: tuple[int, int] = TYPING_DELAY_MS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.jitter_ms = jitter_ms
        self.pause_window_ms = pause_window_ms
        self.typing_delay_ms = typing_delay_ms
        self._rng = rng or random.Random()

    async def pause(self, min_ms: Optional[int] = None, max_ms: Optional[int] = None) -> None:
        low = self.pause_window_ms[0] if min_ms is None else min_ms
        high = self.pause_window_ms[1] if max_ms is None else max_ms
        await asyncio.sleep(self._rng.uniform(low, high) / 1000)

    async def settle(self, nominal_ms: int) -> None:
        """Wait roughly nominal_ms, off by up to the configured jitter."""
        await asyncio.sleep(jittered_ms(nominal_ms, self.jitter_ms) / 1000)

    async def move_pointer(self, page: Page) -> None:
        viewport = page.viewport_size or DEFAULT_VIEWPORT
        for _ in range(self._rng.randint(*WAYPOINTS_RANGE)):
            x = self._rng.uniform(0, viewport["width"])
            y = self._rng.uniform(0, viewport["height"])
            await page.mouse.move(x, y, steps=self._rng.randint(*MOUSE_STEPS_RANGE))
            await self.pause(200, 1000)

    async def scroll(self, page: Page) -> None:
        for _ in range(self._rng.randint(*SCROLLS_RANGE)):
            direction = 1 if self._rng.random() > 0.5 else -1
            await page.mouse.wheel(0, direction * self._rng.randint(*SCROLL_DELTA_PX))
            await self.pause()

    async def read(self, page: Page) -> None:
        """Bring a random text element into view and linger on it."""
        elements = page.locator("p, h1, h2, h3, span")
        count = await elements.count()
        if count:
            await elements.nth(self._rng.randrange(count)).scroll_into_view_if_needed(timeout=2000)
        await self.pause(*READING_PAUSE_MS)

    async def reflect(self, page: Page) -> None:
        await self.pause(*READING_PAUSE_MS)

    async def _run_safely(self, name: str, action: Callable[[Page], Awaitable[None]], page: Page) -> None:
        try:
            await action(page)
        except Exception as e:
            logger.debug("human_simulation_skipped", action=name, error=str(e))

    async def simulate_browsing(self, page: Page) -> None:
        """Two or three random actions in random order, with a pause after each."""
        actions = [
            ("read", self.read),
            ("scroll", self.scroll),
            ("pointer", self.move_pointer),
            ("reflect", self.reflect),
        ]
        chosen = self._rng.sample(actions, k=self._rng.randint(2, 3))
        for name, action in chosen:
            await self._run_safely(name, action, page)
            await self._run_safely("pause", lambda _page: self.pause(), page)

    async def intensive_activity(self, page: Page, rounds: int = 3) -> None:
        """Longer sequence used while waiting out a block page."""
        for _ in range(rounds):
            await self._run_safely("pointer", self.move_pointer, page)
            await self._run_safely("scroll", self.scroll, page)
            await self._run_safely("read", self.read, page)

    async def hover_and_click(self, element: Locator) -> None:
        """Hover first (best-effort), pause briefly, then click. Click errors propagate."""
        try:
            await element.hover(timeout=2000)
            await self.pause(150, 600)
        except Exception as e:
            logger.debug("human_hover_skipped", error=str(e))
        await element.click()

    async def simulate_typing(self, element: Locator, text: str) -> None:
        """
        Clear the field and type text one key at a time with a variable delay.

        Falls back to fill() when keystrokes cannot be sent.
        """
        try:
            await element.click()
            await element.fill("")
            for char in text:
                await element.press_sequentially(char)
                await asyncio.sleep(self._rng.uniform(*self.typing_delay_ms) / 1000)
        except Exception as e:
            logger.debug("human_typing_fallback", error=str(e))
            await element.fill(text)
