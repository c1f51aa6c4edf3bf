"""
Shared fixtures: an in-memory page/locator double keyed by selector expression.

Tests register elements under the exact expression a candidate renders to
(e.g. 'input[type="email"]'); any other expression matches nothing, so
a resolver probe on it times out immediately.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from checker.browser.humanize import HumanSimulator


@dataclass
class FakeElement:
    text: str = ""
    visible: bool = True
    enabled: bool = True
    value: str = ""
    children: list["FakeElement"] = field(default_factory=list)
    on_click: Optional[Callable[[], None]] = None
    clicks: int = 0

    def descendants(self) -> list["FakeElement"]:
        found = []
        for child in self.children:
            found.append(child)
            found.extend(child.descendants())
        return found


class FakeLocator:
    def __init__(self, page: "FakePage", expression: str, elements: list[FakeElement]):
        self.page = page
        self.expression = expression
        self.elements = elements

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, self.expression, self.elements[:1])

    def nth(self, index: int) -> "FakeLocator":
        picked = self.elements[index : index + 1] if index >= 0 else []
        return FakeLocator(self.page, self.expression, picked)

    def locator(self, expression: str) -> "FakeLocator":
        if expression != "*":
            return FakeLocator(self.page, expression, [])
        found = []
        for element in self.elements:
            found.extend(element.descendants())
        return FakeLocator(self.page, f"{self.expression} >> *", found)

    def _element(self) -> FakeElement:
        if not self.elements:
            raise PlaywrightTimeoutError(f"no element for {self.expression}")
        return self.elements[0]

    async def count(self) -> int:
        return len(self.elements)

    async def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        self.page.probes.append((self.expression, timeout))
        if not self.elements or not self.elements[0].visible:
            raise PlaywrightTimeoutError(f"waiting for {self.expression} timed out")

    async def is_visible(self) -> bool:
        return bool(self.elements) and self.elements[0].visible

    async def is_enabled(self) -> bool:
        return self._element().enabled

    async def text_content(self) -> str:
        return self._element().text

    async def click(self, **kwargs) -> None:
        element = self._element()
        element.clicks += 1
        self.page.clicks.append(self.expression)
        if element.on_click is not None:
            element.on_click()

    async def hover(self, **kwargs) -> None:
        self._element()

    async def fill(self, value: str, **kwargs) -> None:
        self._element().value = value

    async def press_sequentially(self, text: str, **kwargs) -> None:
        self._element().value += text

    async def scroll_into_view_if_needed(self, **kwargs) -> None:
        self._element()


class FakePage:
    def __init__(
        self,
        url: str = "https://www.ripley.cl/",
        title: str = "Ripley.cl",
        body: str = "",
    ) -> None:
        self.url = url
        self._title = title
        self.body = body
        self.registry: dict[str, list[FakeElement]] = {}
        self.probes: list[tuple[str, Optional[float]]] = []
        self.clicks: list[str] = []
        self.visited: list[str] = []
        self.on_goto: Optional[Callable[[str], None]] = None
        self.on_reload: Optional[Callable[[], None]] = None
        self.viewport_size = {"width": 1366, "height": 768}
        self.keyboard = MagicMock()
        self.keyboard.press = AsyncMock()
        self.mouse = MagicMock()
        self.mouse.move = AsyncMock()
        self.mouse.wheel = AsyncMock()
        self.screenshot = AsyncMock()

    def add(self, expression: str, *elements: FakeElement) -> list[FakeElement]:
        items = list(elements) or [FakeElement()]
        self.registry.setdefault(expression, []).extend(items)
        return items

    def remove(self, expression: str) -> None:
        self.registry.pop(expression, None)

    def locator(self, expression: str) -> FakeLocator:
        return FakeLocator(self, expression, self.registry.get(expression, []))

    async def goto(self, url: str, **kwargs) -> None:
        self.visited.append(url)
        self.url = url
        if self.on_goto is not None:
            self.on_goto(url)

    async def reload(self, **kwargs) -> None:
        if self.on_reload is not None:
            self.on_reload()

    async def title(self) -> str:
        return self._title

    def set_title(self, title: str) -> None:
        self._title = title

    async def inner_text(self, selector: str) -> str:
        return self.body


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Every scripted pause and retry delay returns immediately."""
    sleep = AsyncMock()
    monkeypatch.setattr(asyncio, "sleep", sleep)
    return sleep


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def simulator() -> HumanSimulator:
    return HumanSimulator(jitter_ms=0)
