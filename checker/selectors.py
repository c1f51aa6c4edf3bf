"""
Ranked locator tables for ripley.cl.

Each workflow takes one of these frozen tables as an argument; the module
level defaults are never mutated. Order inside a tuple is precedence.
"""

from __future__ import annotations

from dataclasses import dataclass

from checker.browser.locators import (
    ByAttribute,
    ByCss,
    ByRole,
    ByTextContent,
    Candidate,
    css,
)

Candidates = tuple[Candidate, ...]

_PRODUCT_CONTAINERS = (".product-item", ".product-card", ".search-result-item")


@dataclass(frozen=True)
class LoginSelectors:
    login_button: Candidates = (
        ByAttribute("href", "login", match="contains", tag="a"),
        ByAttribute("aria-label", "login", match="contains", tag="button"),
        ByCss(".login-button"),
        ByAttribute("data-test", "login-button"),
        ByTextContent("Iniciar Sesión", tag="a"),
        ByTextContent("Ingresar", tag="a"),
        ByTextContent("Login", tag="button"),
        ByCss(".user-access"),
        ByCss(".account-access"),
    )
    email_field: Candidates = (
        ByAttribute("type", "email", tag="input"),
        ByAttribute("name", "email", match="contains", tag="input"),
        ByAttribute("id", "email", match="contains", tag="input"),
        ByAttribute("placeholder", "email", match="contains", tag="input"),
        ByAttribute("placeholder", "correo", match="contains", tag="input"),
        ByCss(".email-input input"),
        ByAttribute("data-test", "email-input"),
    )
    password_field: Candidates = (
        ByAttribute("type", "password", tag="input"),
        ByAttribute("name", "password", match="contains", tag="input"),
        ByAttribute("id", "password", match="contains", tag="input"),
        ByAttribute("placeholder", "contraseña", match="contains", tag="input"),
        ByCss(".password-input input"),
        ByAttribute("data-test", "password-input"),
    )
    submit_button: Candidates = (
        ByAttribute("type", "submit", tag="button"),
        ByAttribute("type", "submit", tag="input"),
        ByTextContent("Iniciar", tag="button"),
        ByTextContent("Ingresar", tag="button"),
        ByTextContent("Login", tag="button"),
        ByCss(".login-submit"),
        ByAttribute("data-test", "login-submit"),
    )
    logged_in_indicator: Candidates = (
        ByCss(".user-menu"),
        ByCss(".account-menu"),
        ByAttribute("data-test", "user-logged"),
        ByCss(".mi-cuenta"),
        ByCss(".user-info"),
        ByCss(".logout-button"),
        ByAttribute("href", "logout", match="contains", tag="a"),
        ByTextContent("Cerrar Sesión", tag="a"),
    )
    error_message: Candidates = css(
        ".error-message",
        ".alert-danger",
        ".login-error",
        '[data-test="error-message"]',
        ".field-error",
        ".form-error",
    )
    # URL fragments that count as a positive login signal on their own.
    account_url_fragments: tuple[str, ...] = ("account", "mi-cuenta")
    login_url_fragment: str = "login"


@dataclass(frozen=True)
class SearchSelectors:
    search_input: Candidates = (
        ByAttribute("type", "search", tag="input"),
        ByAttribute("name", "search", match="contains", tag="input"),
        ByAttribute("name", "query", match="contains", tag="input"),
        ByAttribute("placeholder", "buscar", match="contains", tag="input"),
        ByAttribute("placeholder", "Buscar", match="contains", tag="input"),
        ByCss(".search-input"),
        ByCss(".search-field"),
        ByAttribute("data-test", "search-input"),
        ByCss("#search"),
        ByCss(".search-box input"),
        ByRole("searchbox"),
    )
    search_button: Candidates = (
        ByCss('button[type="submit"]:near(input[type="search"])'),
        ByCss(".search-button"),
        ByAttribute("data-test", "search-button"),
        ByTextContent("Buscar", tag="button"),
        ByTextContent("Search", tag="button"),
        ByCss(".search-submit"),
        ByCss("button.search-btn"),
    )
    no_results: Candidates = css(
        ".no-results",
        ".empty-results",
        ".search-empty",
        '[data-test="no-results"]',
        ".no-products-found",
    )
    product_result: Candidates = css(
        ".product-item",
        ".product-card",
        ".search-result-item",
        '[data-test="product-item"]',
        ".product-list-item",
    )
    # Generic containers scanned in DOM order when no SKU-specific locator hits.
    product_containers: tuple[str, ...] = _PRODUCT_CONTAINERS
    product_scan: Candidates = css(*_PRODUCT_CONTAINERS)
    add_to_cart: Candidates = (
        ByTextContent("Agregar al carrito", tag="button"),
        ByTextContent("Agregar", tag="button"),
        ByTextContent("Add to cart", tag="button"),
        ByCss(".add-to-cart"),
        ByCss(".btn-add-cart"),
        ByAttribute("data-test", "add-to-cart"),
        ByAttribute("aria-label", "Agregar", match="contains", tag="button"),
        ByCss(".product-add-button"),
        ByRole("button", name="Agregar al carrito"),
    )
    added_notification: Candidates = (
        ByCss(".cart-added"),
        ByCss(".product-added"),
        ByCss(".success-message"),
        ByAttribute("data-test", "product-added"),
        ByTextContent("Producto agregado", exact=True),
        ByTextContent("Agregado al carrito", exact=True),
        ByCss(".notification-success"),
    )
    cart_counter: Candidates = css(
        ".cart-count",
        ".cart-counter",
        ".basket-count",
        '[data-test="cart-count"]',
    )

    def product_for_sku(self, sku: str) -> Candidates:
        """Locators that embed the SKU, tried before the generic scan."""
        by_text = tuple(ByTextContent(sku, tag=container) for container in self.product_containers)
        return by_text + (
            ByAttribute("data-sku", sku),
            ByAttribute("data-product-id", sku),
        )


@dataclass(frozen=True)
class CartSelectors:
    cart_icon: Candidates = (
        ByCss(".cart-icon"),
        ByCss(".shopping-cart"),
        ByCss(".basket-icon"),
        ByAttribute("data-test", "cart-icon"),
        ByAttribute("href", "cart", match="contains", tag="a"),
        ByAttribute("href", "carrito", match="contains", tag="a"),
        ByCss(".header-cart"),
        ByCss(".mini-cart-icon"),
        ByAttribute("aria-label", "carrito", match="contains", tag="button"),
    )
    cart_page: Candidates = css(
        ".cart-container",
        ".shopping-cart-container",
        ".checkout-container",
        '[data-test="cart-page"]',
        ".cart-items",
        ".order-summary",
    )
    cart_item: Candidates = css(
        ".cart-item",
        ".basket-item",
        ".checkout-item",
        '[data-test="cart-item"]',
        ".product-item",
        ".order-item",
    )
    cart_counter: Candidates = css(
        ".cart-count",
        ".cart-counter",
        ".basket-count",
        '[data-test="cart-count"]',
    )
    cart_paths: tuple[str, ...] = ("/cart", "/carrito", "/checkout", "/shopping-cart", "/basket")
    cart_url_fragments: tuple[str, ...] = ("cart", "carrito", "checkout")
    date_element: Candidates = css(
        ".delivery-date",
        ".shipping-date",
        ".fecha-entrega",
        '[data-test="delivery-date"]',
        ".commitment-date",
        ".fecha-compromiso",
        ".delivery-commitment",
        '[data-test="commitment-date"]',
        ".estimated-delivery",
        ".delivery-estimate",
    )
    date_section: Candidates = css(
        ".shipping-info",
        ".delivery-info",
        ".envio-info",
        '[data-test="shipping-info"]',
        ".cart-summary",
        ".order-summary",
        ".checkout-summary",
        '[data-test="cart-summary"]',
        ".cart-item",
        ".basket-item",
    )


@dataclass(frozen=True)
class BlockIndicators:
    challenge_page: Candidates = (
        ByTextContent("Checking your browser", exact=True),
        ByTextContent("Just a moment", exact=True),
        ByCss(".cf-browser-verification"),
        ByCss("#challenge-form"),
    )
    custom_block: Candidates = (
        ByTextContent("¡Alto, no puedes acceder!", exact=True),
        ByTextContent("servicio de seguridad", exact=True),
        ByTextContent("¿Por qué me han bloqueado?", exact=True),
    )
    rate_limited: Candidates = (
        ByTextContent("Too Many Requests", exact=True),
        ByTextContent("Rate limit exceeded", exact=True),
        ByTextContent("Demasiadas solicitudes", exact=True),
    )
    # Lower-cased title substrings per kind value.
    title_fragments: tuple[tuple[str, tuple[str, ...]], ...] = (
        ("challenge-page", ("just a moment", "attention required", "checking your browser")),
        ("custom-block", ("acceso denegado", "access denied")),
        ("rate-limited", ("too many requests", "429")),
    )


DEFAULT_LOGIN_SELECTORS = LoginSelectors()
DEFAULT_SEARCH_SELECTORS = SearchSelectors()
DEFAULT_CART_SELECTORS = CartSelectors()
DEFAULT_BLOCK_INDICATORS = BlockIndicators()
