"""
Value objects passed between the workflows and returned to the caller.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

SUCCESS_STATUS = "Producto agregado con éxito"


def error_status(message: str) -> str:
    """Status text for a failed run."""
    return f"Error: {message or 'unknown error'}"


def mask_email(email: str) -> str:
    """Keep the first character of the local part and the domain: d***@gmail.com."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)

    @property
    def masked(self) -> dict:
        """Form safe to log."""
        return {"email": mask_email(self.email), "password": "***"}


@dataclass(frozen=True)
class ResultRecord:
    """Terminal output of a run. Field names are the published record keys."""

    sku: str
    fecha_compromiso: str
    estado: str
    timestamp: str

    @property
    def is_success(self) -> bool:
        return self.estado == SUCCESS_STATUS

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SearchOutcome:
    """Structured result of the search and add-to-cart workflow."""

    sku: str
    exito: bool
    mensaje: str
    timestamp: str


class BlockKind(str, Enum):
    NONE = "none"
    CHALLENGE_PAGE = "challenge-page"
    CUSTOM_BLOCK = "custom-block"
    RATE_LIMITED = "rate-limited"

    @property
    def is_blocked(self) -> bool:
        return self is not BlockKind.NONE
