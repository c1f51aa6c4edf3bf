"""
Typed failures raised by workflow steps.

Leaf probes (resolver, block detection, date extraction) return None or a
neutral value when nothing matches; only workflow steps raise these.
"""

from __future__ import annotations

from typing import Optional


class CheckerError(Exception):
    """Base class for every failure raised by the checker."""


class ValidationError(CheckerError):
    """Input has the wrong shape (SKU, credentials, configuration bounds)."""


class InvalidSku(ValidationError):
    def __init__(self, sku: str) -> None:
        super().__init__(f"Invalid SKU: {sku!r}")
        self.sku = sku


class ResolutionFailure(CheckerError):
    """No locator strategy matched within its budget."""


class LoginControlNotFound(ResolutionFailure):
    def __init__(self) -> None:
        super().__init__("Login button not found on the page")


class FieldNotFound(ResolutionFailure):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} field not found in the login form")
        self.field = field


class NoResults(ResolutionFailure):
    """Search returned nothing usable for the SKU."""


class BlockDetected(CheckerError):
    """An anti-automation page was shown instead of the site content."""

    def __init__(self, kind: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Blocked by {kind}")
        self.kind = kind


class VerificationFailure(CheckerError):
    """The action ran but its confirming signal never appeared."""


class WorkflowFailure(CheckerError):
    """A named workflow step could not complete."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(message)
        self.step = step
