"""
Login workflow for ripley.cl.

Steps run strictly in order and each one moves the workflow to the next
state: NOT_STARTED -> NAVIGATED -> LOGIN_CONTROL_LOCATED -> FORM_FILLED ->
SUBMITTED -> VERIFIED. A step that cannot proceed raises a typed failure;
`login()` turns any of them into False. There is no internal retry; the
orchestrator retries the whole workflow.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from playwright.async_api import Page

from checker.artifacts import save_failure_screenshot
from checker.browser.blocking import detect_block, recover_from_block
from checker.browser.humanize import HumanSimulator
from checker.browser.resolver import read_text, resolve
from checker.errors import (
    BlockDetected,
    FieldNotFound,
    LoginControlNotFound,
    ValidationError,
    VerificationFailure,
)
from checker.models import Credentials
from checker.selectors import (
    DEFAULT_BLOCK_INDICATORS,
    DEFAULT_LOGIN_SELECTORS,
    BlockIndicators,
    LoginSelectors,
)
from checker.validators import is_valid_credentials
from shared.logging import get_logger

logger = get_logger(__name__)

NAV_TIMEOUT_MS = 30_000
PROBE_TIMEOUT_MS = 2000
FIELD_PROBE_TIMEOUT_MS = 1000
INDICATOR_PROBE_TIMEOUT_MS = 3000
FORM_SETTLE_MS = 2000
SUBMIT_SETTLE_MS = 3000


class LoginState(str, Enum):
    NOT_STARTED = "not_started"
    NAVIGATED = "navigated"
    LOGIN_CONTROL_LOCATED = "login_control_located"
    FORM_FILLED = "form_filled"
    SUBMITTED = "submitted"
    VERIFIED = "verified"


class LoginWorkflow:
    """One login attempt against an already-open page."""

    def __init__(
        self,
        page: Page,
        credentials: Credentials,
        simulator: HumanSimulator,
        *,
        base_url: str,
        selectors: LoginSelectors = DEFAULT_LOGIN_SELECTORS,
        block_indicators: BlockIndicators = DEFAULT_BLOCK_INDICATORS,
        nav_timeout_ms: int = NAV_TIMEOUT_MS,
    ) -> None:
        self.page = page
        self.credentials = credentials
        self.simulator = simulator
        self.base_url = base_url
        self.selectors = selectors
        self.block_indicators = block_indicators
        self.nav_timeout_ms = nav_timeout_ms
        self.state = LoginState.NOT_STARTED

    def _advance(self, state: LoginState) -> None:
        logger.info("login_state_changed", previous=self.state.value, state=state.value)
        self.state = state

    async def run(self) -> None:
        """Execute every step; raises on the first one that cannot complete."""
        if not is_valid_credentials(self.credentials):
            raise ValidationError("Invalid credentials supplied")
        await self.navigate()
        await self.open_login_form()
        await self.fill_form()
        await self.submit()
        await self.verify()

    async def navigate(self) -> None:
        logger.info("login_navigating", url=self.base_url)
        await self.page.goto(self.base_url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
        await self.simulator.simulate_browsing(self.page)

        kind = await detect_block(self.page, self.block_indicators)
        if kind.is_blocked:
            kind = await recover_from_block(
                self.page,
                self.simulator,
                kind,
                indicators=self.block_indicators,
                reload_timeout_ms=self.nav_timeout_ms,
            )
            if kind.is_blocked:
                raise BlockDetected(kind.value, f"Site blocked access ({kind.value}) and recovery failed")
        self._advance(LoginState.NAVIGATED)

    async def open_login_form(self) -> None:
        await self.simulator.simulate_browsing(self.page)
        found = await resolve(
            self.page,
            self.selectors.login_button,
            timeout_ms=PROBE_TIMEOUT_MS,
            target="login_button",
        )
        if found is None:
            raise LoginControlNotFound()
        logger.info("login_button_found", locator=found.candidate.expression)
        await self.simulator.hover_and_click(found.locator)
        await self.simulator.settle(FORM_SETTLE_MS)
        self._advance(LoginState.LOGIN_CONTROL_LOCATED)

    async def fill_form(self) -> None:
        email_field = await resolve(
            self.page,
            self.selectors.email_field,
            timeout_ms=FIELD_PROBE_TIMEOUT_MS,
            target="email_field",
        )
        if email_field is None:
            raise FieldNotFound("email")
        password_field = await resolve(
            self.page,
            self.selectors.password_field,
            timeout_ms=FIELD_PROBE_TIMEOUT_MS,
            target="password_field",
        )
        if password_field is None:
            raise FieldNotFound("password")

        await self.simulator.simulate_typing(email_field.locator, self.credentials.email)
        await self.simulator.pause()
        await self.simulator.simulate_typing(password_field.locator, self.credentials.password)
        await self.simulator.pause()
        self._advance(LoginState.FORM_FILLED)

    async def submit(self) -> None:
        found = await resolve(
            self.page,
            self.selectors.submit_button,
            timeout_ms=PROBE_TIMEOUT_MS,
            target="login_submit",
        )
        if found is not None:
            await self.simulator.hover_and_click(found.locator)
        else:
            logger.warning("login_submit_not_found", fallback="enter_key")
            await self.page.keyboard.press("Enter")
        await self.simulator.settle(SUBMIT_SETTLE_MS)
        self._advance(LoginState.SUBMITTED)

    async def verify(self) -> None:
        """
        Success needs no error message, no block page and at least one positive
        signal: a logged-in indicator, or a URL that left the login path.
        """
        error = await resolve(
            self.page,
            self.selectors.error_message,
            timeout_ms=PROBE_TIMEOUT_MS,
            target="login_error",
        )
        if error is not None:
            message = (await read_text(error.locator)).strip()
            logger.error("login_error_message", locator=error.candidate.expression, text=message)
            raise VerificationFailure(f"Login rejected by the site: {message or 'unknown reason'}")

        kind = await detect_block(self.page, self.block_indicators)
        if kind.is_blocked:
            raise BlockDetected(kind.value, f"Blocked after submitting the login form ({kind.value})")

        indicator = await resolve(
            self.page,
            self.selectors.logged_in_indicator,
            timeout_ms=INDICATOR_PROBE_TIMEOUT_MS,
            target="logged_in_indicator",
        )
        if indicator is not None:
            logger.info("login_verified", signal="indicator", locator=indicator.candidate.expression)
            self._advance(LoginState.VERIFIED)
            return

        # Weak signal: a redirect away from the login path also counts.
        url = (self.page.url or "").lower()
        if any(fragment in url for fragment in self.selectors.account_url_fragments) or (
            self.selectors.login_url_fragment not in url
        ):
            logger.warning("login_verified_by_url", url=self.page.url)
            self._advance(LoginState.VERIFIED)
            return

        raise VerificationFailure("Login could not be verified")


async def login(
    page: Page,
    credentials: Credentials,
    simulator: HumanSimulator,
    *,
    base_url: str,
    selectors: LoginSelectors = DEFAULT_LOGIN_SELECTORS,
    block_indicators: BlockIndicators = DEFAULT_BLOCK_INDICATORS,
    nav_timeout_ms: int = NAV_TIMEOUT_MS,
    screenshot_dir: Optional[str] = ".",
) -> bool:
    """Run the login workflow; True once verified, False on any failure."""
    workflow = LoginWorkflow(
        page,
        credentials,
        simulator,
        base_url=base_url,
        selectors=selectors,
        block_indicators=block_indicators,
        nav_timeout_ms=nav_timeout_ms,
    )
    logger.info("login_started", credentials=credentials.masked)
    try:
        await workflow.run()
    except Exception as e:
        logger.error(
            "login_failed",
            state=workflow.state.value,
            error=str(e),
            error_type=type(e).__name__,
            credentials=credentials.masked,
        )
        if screenshot_dir is not None:
            await save_failure_screenshot(page, "login", screenshot_dir)
        return False
    logger.info("login_succeeded")
    return True
