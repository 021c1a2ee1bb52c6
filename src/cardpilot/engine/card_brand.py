"""Card brand classification from leading digits.

Best-effort only: prefixes follow the public numbering-scheme ranges and are
checked in a fixed order. Do not use the result for payment routing.
"""

from __future__ import annotations

import enum
import re

from cardpilot.credentials import digits_only


class CardBrand(str, enum.Enum):
    VISA = "VISA"
    MASTERCARD = "MASTERCARD"
    AMEX = "AMEX"
    DISCOVER = "DISCOVER"
    DINERS = "DINERS"
    JCB = "JCB"
    UNIONPAY = "UNIONPAY"
    UNKNOWN = "UNKNOWN"


# Order matters: the first matching pattern wins.
_BRAND_PATTERNS: tuple[tuple[CardBrand, re.Pattern[str]], ...] = (
    (CardBrand.VISA, re.compile(r"^4")),
    (
        CardBrand.MASTERCARD,
        re.compile(r"^(5[1-5]|222[1-9]|22[3-9]\d|2[3-6]\d{2}|27[01]\d|2720)"),
    ),
    (CardBrand.AMEX, re.compile(r"^3[47]")),
    (CardBrand.DISCOVER, re.compile(r"^(6011|65|64[4-9])")),
    (CardBrand.DINERS, re.compile(r"^(30[0-5]|36|38)")),
    (CardBrand.JCB, re.compile(r"^(2131|1800|35)")),
    (CardBrand.UNIONPAY, re.compile(r"^62")),
)


def classify_card_brand(number: str) -> CardBrand:
    """Return the brand for *number*; spaces, dashes etc. are ignored."""
    digits = digits_only(number)
    for brand, pattern in _BRAND_PATTERNS:
        if pattern.match(digits):
            return brand
    return CardBrand.UNKNOWN


def last_four(number: str) -> str:
    return digits_only(number)[-4:]
