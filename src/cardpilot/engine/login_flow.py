"""Login Flow: sign into the target service.

Handles both credential layouts seen in the wild:

- single-step: email and password inputs are visible together;
- two-step: only the email input is shown, and the password input renders
  after clicking "Continue".

The flow is a linear state machine (``LoginState``). Each discovery step is
retry-wrapped; the final submit is retried as a whole click+navigate unit.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

from cardpilot.config import CardPilotConfig
from cardpilot.credentials import Credentials, mask_email
from cardpilot.engine.clicker import click_by_text
from cardpilot.engine.errors import SubmitControlNotFoundError
from cardpilot.engine.field_resolver import FieldContext, iter_scopes, resolve_field
from cardpilot.engine.humanize import HumanEmulator
from cardpilot.engine.protocols import FieldScope
from cardpilot.engine.retry import RetryPolicy
from cardpilot.models import FIELD_RETRIES, SUBMIT_RETRIES

logger = logging.getLogger("cardpilot.engine.login_flow")

COOKIE_CONSENT_SELECTORS = (
    "#onetrust-accept-btn-handler",
    'button[id*="accept"][id*="cookie"]',
    '[data-testid="cookie-accept"]',
    'button[aria-label="Accept Cookies"]',
    "button.cookie-accept",
)
EMAIL_SELECTORS = (
    'input[name="email"]',
    "input#email",
    'input[name="username"]',
    'input[type="email"]',
)
PASSWORD_SELECTORS = (
    'input[name="password"]',
    "input#password",
    'input[type="password"]',
)
SUBMIT_SELECTOR = 'button[type="submit"]'
LINK_OR_BUTTON = "a, button, [role='button']"
BUTTONS = "button, [role='button']"

SIGN_IN_LABELS = ("sign in", "log in")
CONTINUE_LABELS = ("continue", "next", "sign in")
SUBMIT_LABELS = ("sign in", "log in", "continue")


class LoginState(str, enum.Enum):
    HOMEPAGE = "HOMEPAGE"
    FOUND_SIGNIN = "FOUND_SIGNIN"
    ACCOUNT_PAGE = "ACCOUNT_PAGE"
    EMAIL_ENTERED = "EMAIL_ENTERED"
    CONTINUED = "CONTINUED"
    PASSWORD_ENTERED = "PASSWORD_ENTERED"
    SUBMITTED = "SUBMITTED"
    DONE = "DONE"


class LoginFlow:
    """Drives one sign-in attempt on *page*.

    A flow object is single-use; ``history`` records the states visited so
    callers and tests can tell which branch was taken.
    """

    def __init__(
        self,
        page: Any,
        config: CardPilotConfig,
        emulator: HumanEmulator,
    ) -> None:
        self._page = page
        self._config = config
        self._emulator = emulator
        retry = RetryPolicy(
            retries=FIELD_RETRIES,
            initial_delay=config.retry_initial_delay,
            max_delay=config.retry_max_delay,
            backoff_factor=config.retry_backoff_factor,
        )
        self._field_retry = retry
        self._submit_retry = retry.with_retries(SUBMIT_RETRIES)
        self._email_typed = False
        self.state = LoginState.HOMEPAGE
        self.history: list[LoginState] = [LoginState.HOMEPAGE]

    async def run(self, credentials: Credentials) -> None:
        """Sign in with *credentials*. Raises on any unrecoverable step."""
        logger.info("Login started for %s", mask_email(credentials.email))

        await self._open_homepage()
        await self._open_account_page()

        await self._field_retry.run(self._wait_for_email_field)
        password_visible = await self._password_visible()
        email_ctx = await self._resolve(EMAIL_SELECTORS)

        if password_visible:
            password_ctx = await self._single_step_entry()
        else:
            password_ctx = await self._two_step_entry(email_ctx, credentials.email)

        if not self._email_typed:
            await self._enter_email(email_ctx, credentials.email)

        await self._emulator.type_like_human(password_ctx.scope, password_ctx.selector, credentials.password)
        self._advance(LoginState.PASSWORD_ENTERED)

        await self._submit_retry.run(lambda: self._submit(password_ctx.scope))
        self._advance(LoginState.SUBMITTED)
        self._advance(LoginState.DONE)

    # -- Navigation ------------------------------------------------------------

    async def _open_homepage(self) -> None:
        await self._page.goto(
            self._config.home_url,
            wait_until="domcontentloaded",
            timeout=self._config.navigation_timeout * 1000,
        )
        if await self.dismiss_cookie_banner():
            logger.info("Cookie banner dismissed")

    async def dismiss_cookie_banner(self) -> bool:
        """Click a known consent button if one shows up. Never raises."""
        try:
            await self._page.wait_for_selector(
                ", ".join(COOKIE_CONSENT_SELECTORS),
                state="visible",
                timeout=self._config.probe_timeout * 1000,
            )
        except PlaywrightError:
            return False
        for selector in COOKIE_CONSENT_SELECTORS:
            try:
                if await self._emulator.click_like_human(
                    self._page, selector, timeout=self._config.click_timeout
                ):
                    return True
            except PlaywrightError as exc:
                logger.warning("Consent button %s not clickable: %s", selector, exc)
        return False

    async def _open_account_page(self) -> None:
        if await click_by_text(
            self._page, LINK_OR_BUTTON, SIGN_IN_LABELS, timeout=self._config.click_timeout
        ):
            self._advance(LoginState.FOUND_SIGNIN)
            await self._settle()
        else:
            logger.info("No sign-in control on homepage; going to %s", self._config.account_url)
            await self._page.goto(
                self._config.account_url,
                wait_until="domcontentloaded",
                timeout=self._config.navigation_timeout * 1000,
            )
        self._advance(LoginState.ACCOUNT_PAGE)

    async def _settle(self) -> None:
        """Wait for the page to go quiet after a click; best-effort."""
        try:
            await self._page.wait_for_load_state(
                "networkidle", timeout=self._config.navigation_timeout * 1000
            )
        except PlaywrightError:
            logger.debug("Page did not reach networkidle; continuing")

    # -- Field discovery -------------------------------------------------------

    async def _wait_for_email_field(self) -> None:
        for scope in iter_scopes(self._page):
            if await _first_present(scope, EMAIL_SELECTORS) is not None:
                return
        await self._page.wait_for_selector(
            ", ".join(EMAIL_SELECTORS),
            state="attached",
            timeout=self._config.field_timeout * 1000,
        )

    async def _password_visible(self) -> bool:
        """Single probe: is a password input already on screen?"""
        for scope in iter_scopes(self._page):
            element = await _first_present(scope, PASSWORD_SELECTORS)
            if element is None:
                continue
            try:
                if await element.is_visible():
                    return True
            except PlaywrightError:
                continue
        try:
            await self._page.wait_for_selector(
                ", ".join(PASSWORD_SELECTORS),
                state="visible",
                timeout=self._config.probe_timeout * 1000,
            )
        except PlaywrightError:
            return False
        return True

    async def _resolve(self, selectors: tuple[str, ...]) -> FieldContext:
        ctx = await resolve_field(
            self._page,
            selectors,
            per_candidate_timeout=self._config.resolver_candidate_timeout,
            fallback_timeout=self._config.resolver_fallback_timeout,
        )
        logger.debug("Field %s resolved (in_frame=%s)", ctx.selector, ctx.in_frame)
        return ctx

    # -- Credential entry branches -------------------------------------------

    async def _single_step_entry(self) -> FieldContext:
        """Email and password are both on the form already."""
        logger.info("Single-step login form detected")
        return await self._resolve(PASSWORD_SELECTORS)

    async def _two_step_entry(self, email_ctx: FieldContext, email: str) -> FieldContext:
        """Submit the email first; the password field appears afterwards."""
        logger.info("Two-step login form detected")
        await self._enter_email(email_ctx, email)
        if await click_by_text(
            email_ctx.scope, BUTTONS, CONTINUE_LABELS, timeout=self._config.click_timeout
        ):
            self._advance(LoginState.CONTINUED)
            await self._settle()
        else:
            logger.warning("No continue control after email; waiting for password field anyway")
        return await self._field_retry.run(lambda: self._resolve(PASSWORD_SELECTORS))

    async def _enter_email(self, ctx: FieldContext, email: str) -> None:
        current = await ctx.value()
        if current.strip():
            logger.debug("Email field already filled; not typing")
        else:
            await self._emulator.type_like_human(ctx.scope, ctx.selector, email)
        self._email_typed = True
        self._advance(LoginState.EMAIL_ENTERED)

    # -- Submit ----------------------------------------------------------------

    async def _submit(self, scope: FieldScope) -> None:
        """Click submit and wait for the resulting navigation to go idle."""
        async with self._page.expect_navigation(
            wait_until="networkidle",
            timeout=self._config.submit_timeout * 1000,
        ):
            if not await self._click_submit(scope):
                raise SubmitControlNotFoundError("Login submit control not found")

    async def _click_submit(self, scope: FieldScope) -> bool:
        if await self._emulator.click_like_human(
            scope, SUBMIT_SELECTOR, timeout=self._config.click_timeout
        ):
            return True
        return await click_by_text(
            scope, BUTTONS, SUBMIT_LABELS, timeout=self._config.click_timeout
        )

    def _advance(self, state: LoginState) -> None:
        logger.info("Login: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)


async def _first_present(scope: FieldScope, selectors: tuple[str, ...]) -> Any:
    for selector in selectors:
        try:
            element = await scope.query_selector(selector)
        except PlaywrightError:
            return None
        if element is not None:
            return element
    return None
