"""
Tagged locator variants.

Each variant renders to a Playwright selector expression, so every strategy
goes through the same `page.locator(...)` call and the resolver never needs
to know which kind it holds. Candidate lists are plain tuples ordered from
most specific to most generic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Union

from playwright.async_api import Locator, Page

AttributeMatch = Literal["exact", "contains", "prefix"]

_ATTRIBUTE_OPERATORS = {"exact": "=", "contains": "*=", "prefix": "^="}


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class _Expression:
    @property
    def expression(self) -> str:
        raise NotImplementedError

    def locate(self, page: Page) -> Locator:
        return page.locator(self.expression)

    def __str__(self) -> str:
        return self.expression


@dataclass(frozen=True)
class ByCss(_Expression):
    """Raw CSS (or Playwright extended CSS) selector."""

    selector: str

    @property
    def expression(self) -> str:
        return self.selector


@dataclass(frozen=True)
class ByAttribute(_Expression):
    """`tag[name="value"]` with exact, substring or prefix matching."""

    name: str
    value: str
    match: AttributeMatch = "exact"
    tag: str = ""

    @property
    def expression(self) -> str:
        operator = _ATTRIBUTE_OPERATORS[self.match]
        return f"{self.tag}[{self.name}{operator}{_quote(self.value)}]"


@dataclass(frozen=True)
class ByTextContent(_Expression):
    """
    Element whose text contains `text`.

    With a tag (or any CSS scope) this renders `scope:has-text("...")`;
    without one it uses the text engine, exact or substring.
    """

    text: str
    tag: str = ""
    exact: bool = False

    @property
    def expression(self) -> str:
        if self.tag:
            return f"{self.tag}:has-text({_quote(self.text)})"
        if self.exact:
            return f"text={_quote(self.text)}"
        return f"text={self.text}"


@dataclass(frozen=True)
class ByRole(_Expression):
    """ARIA role with an optional accessible name."""

    role: str
    name: Optional[str] = None

    @property
    def expression(self) -> str:
        if self.name:
            return f"role={self.role}[name={_quote(self.name)}]"
        return f"role={self.role}"


Candidate = Union[ByCss, ByAttribute, ByTextContent, ByRole]
CandidateList = Sequence[Candidate]


def css(*selectors: str) -> tuple[ByCss, ...]:
    """Shorthand for a run of plain CSS candidates."""
    return tuple(ByCss(selector) for selector in selectors)
