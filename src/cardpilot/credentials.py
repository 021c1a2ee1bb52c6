"""Login credentials and card details held in memory for one run."""

from __future__ import annotations

import dataclasses
import datetime as dt
import re

_NON_DIGITS = re.compile(r"\D")


class CardDetailsError(ValueError):
    """Raised when card details fail validation."""

    pass


@dataclasses.dataclass(frozen=True)
class Credentials:
    """Sign-in credentials for the target service. Never persisted."""

    email: str
    # repr=False keeps the password out of logs and tracebacks.
    password: str = dataclasses.field(repr=False)


@dataclasses.dataclass(frozen=True)
class CardDetails:
    """Payment card to store on the target account."""

    number: str = dataclasses.field(repr=False)
    expiry_month: int
    expiry_year: int
    cvc: str = dataclasses.field(repr=False)
    holder_name: str
    postal_code: str | None = None

    @property
    def digits(self) -> str:
        return digits_only(self.number)

    def validate(self, today: dt.date | None = None) -> None:
        """Check the details are well-formed before they reach the engine.

        Raises CardDetailsError describing the first problem found.
        """
        today = today or dt.date.today()
        digits = self.digits
        if not 12 <= len(digits) <= 19:
            raise CardDetailsError("Card number must have 12 to 19 digits")
        if not luhn_valid(digits):
            raise CardDetailsError("Card number failed the Luhn check")
        if not 1 <= self.expiry_month <= 12:
            raise CardDetailsError("Expiry month must be between 1 and 12")
        if not today.year <= self.expiry_year <= 2100:
            raise CardDetailsError(f"Expiry year must be between {today.year} and 2100")
        if (self.expiry_year, self.expiry_month) < (today.year, today.month):
            raise CardDetailsError("Card has expired")
        if not (self.cvc.isdigit() and 3 <= len(self.cvc) <= 4):
            raise CardDetailsError("CVC must be 3 or 4 digits")
        if not self.holder_name.strip():
            raise CardDetailsError("Cardholder name is required")
        if self.postal_code is not None and not self.postal_code.strip():
            raise CardDetailsError("Postal code cannot be blank when provided")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def luhn_valid(digits: str) -> bool:
    """Return True if *digits* passes the Luhn checksum."""
    total = 0
    for idx, char in enumerate(reversed(digits)):
        n = int(char)
        if idx % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def mask_card_number(number: str) -> str:
    """Mask a card number for display. Shows only the last four digits."""
    digits = digits_only(number)
    if len(digits) < 4:
        return "****"
    return f"**** {digits[-4:]}"


def mask_email(email: str) -> str:
    """Mask an email for display, e.g. ``a***@example.com``."""
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
