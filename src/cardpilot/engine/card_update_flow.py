"""Card-Update Flow: enter a new payment card on the billing page.

Each field is located independently (retry-wrapped, main page then frames),
then filled focus-then-type. Submission is confirmed by a network response
from the billing endpoint with a status below 500.

Card number and CVC are only ever passed to the browser. Log lines carry the
masked number at most.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from cardpilot.config import CardPilotConfig
from cardpilot.credentials import CardDetails, mask_card_number
from cardpilot.engine.clicker import click_by_text
from cardpilot.engine.errors import ResponseNotConfirmedError, SubmitControlNotFoundError
from cardpilot.engine.field_resolver import FieldContext, resolve_field
from cardpilot.engine.humanize import HumanEmulator
from cardpilot.engine.outcome import CardMetadata
from cardpilot.engine.retry import RetryPolicy
from cardpilot.models import FIELD_RETRIES, SUBMIT_RETRIES

logger = logging.getLogger("cardpilot.engine.card_update_flow")

CARD_NUMBER_SELECTORS = (
    'input[name="cardNumber"]',
    'input[autocomplete="cc-number"]',
    "input#cardNumber",
)
EXPIRY_MONTH_SELECTORS = (
    'input[name="expMonth"]',
    'input[autocomplete="cc-exp-month"]',
)
EXPIRY_YEAR_SELECTORS = (
    'input[name="expYear"]',
    'input[autocomplete="cc-exp-year"]',
)
CVC_SELECTORS = (
    'input[name="cvc"]',
    'input[autocomplete="cc-csc"]',
    'input[name="cvv"]',
)
HOLDER_NAME_SELECTORS = (
    'input[name="nameOnCard"]',
    'input[autocomplete="cc-name"]',
)
POSTAL_CODE_SELECTORS = (
    'input[name="postalCode"]',
    'input[autocomplete="postal-code"]',
    'input[name="zip"]',
)
SUBMIT_SELECTOR = 'button[type="submit"]'
SUBMIT_LABELS = ("save", "update", "submit", "continue")


class CardUpdateFlow:
    """Fills and submits the billing form on an already signed-in *page*."""

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

    async def run(self, card: CardDetails) -> CardMetadata:
        """Apply *card* and return its non-sensitive metadata."""
        logger.info("Applying card %s", mask_card_number(card.number))
        await self._page.goto(
            self._config.billing_url,
            wait_until="domcontentloaded",
            timeout=self._config.navigation_timeout * 1000,
        )

        fields: list[tuple[str, tuple[str, ...], str]] = [
            ("card number", CARD_NUMBER_SELECTORS, card.digits),
            ("expiry month", EXPIRY_MONTH_SELECTORS, f"{card.expiry_month:02d}"),
            ("expiry year", EXPIRY_YEAR_SELECTORS, str(card.expiry_year)),
            ("cvc", CVC_SELECTORS, card.cvc),
            ("cardholder name", HOLDER_NAME_SELECTORS, card.holder_name),
        ]
        if card.postal_code:
            fields.append(("postal code", POSTAL_CODE_SELECTORS, card.postal_code))

        for label, selectors, value in fields:
            ctx = await self._field_retry.run(lambda selectors=selectors: self._locate(selectors))
            await self._emulator.type_like_human(ctx.scope, ctx.selector, value)
            logger.debug("Filled %s", label)

        status = await self._submit_retry.run(self._submit)
        logger.info("Billing form accepted (HTTP %d)", status)
        return CardMetadata.from_card(card)

    async def _locate(self, selectors: tuple[str, ...]) -> FieldContext:
        return await resolve_field(
            self._page,
            selectors,
            per_candidate_timeout=self._config.resolver_candidate_timeout,
            fallback_timeout=self._config.field_timeout,
        )

    def _is_billing_response(self, response: Any) -> bool:
        return self._config.billing_path in response.url and response.status < 500

    async def _submit(self) -> int:
        """Click submit and wait for the billing endpoint to answer."""
        try:
            async with self._page.expect_response(
                self._is_billing_response,
                timeout=self._config.submit_timeout * 1000,
            ) as response_info:
                if not await self._click_submit():
                    raise SubmitControlNotFoundError("Billing submit control not found")
        except PlaywrightTimeoutError as exc:
            raise ResponseNotConfirmedError(
                f"No response from {self._config.billing_path} below HTTP 500 "
                f"within {self._config.submit_timeout:.0f}s"
            ) from exc
        response = await response_info.value
        return response.status

    async def _click_submit(self) -> bool:
        timeout = self._config.click_timeout
        if await self._emulator.click_like_human(self._page, SUBMIT_SELECTOR, timeout=timeout):
            return True
        return await click_by_text(
            self._page, "button, [role='button']", SUBMIT_LABELS, timeout=timeout
        )
