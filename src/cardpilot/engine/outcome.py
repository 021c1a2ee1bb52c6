"""Outcome of one card-update run.

Only the brand tag and the last four digits of the card survive into an
outcome. Full card numbers, CVCs and passwords never do; free-text fields
taken from exceptions or URLs are scrubbed before they are stored.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
from typing import Any

from cardpilot.credentials import CardDetails
from cardpilot.engine.card_brand import CardBrand, classify_card_brand, last_four

REDACTED = "[REDACTED]"


class FlowStep(str, enum.Enum):
    """Phase of a run, used to attribute failures."""

    INIT = "INIT"
    LOGIN = "LOGIN"
    APPLY_CARD = "APPLY_CARD"


@dataclasses.dataclass(frozen=True)
class CardMetadata:
    """Non-sensitive facts about the card that was applied."""

    last4: str
    brand: CardBrand
    expiry_month: int
    expiry_year: int

    @classmethod
    def from_card(cls, card: CardDetails) -> CardMetadata:
        return cls(
            last4=last_four(card.number),
            brand=classify_card_brand(card.number),
            expiry_month=card.expiry_month,
            expiry_year=card.expiry_year,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "last4": self.last4,
            "brand": self.brand.value,
            "expiry_month": self.expiry_month,
            "expiry_year": self.expiry_year,
        }


@dataclasses.dataclass(frozen=True)
class CardUpdateOutcome:
    """Immutable result of a run, handed to the task-log sink."""

    success: bool
    brand: CardBrand
    last4: str
    expiry_month: int
    expiry_year: int
    executed_at: dt.datetime
    failed_step: FlowStep | None = None
    failure_message: str | None = None
    last_url: str | None = None

    @classmethod
    def succeeded(cls, metadata: CardMetadata, executed_at: dt.datetime | None = None) -> CardUpdateOutcome:
        return cls(
            success=True,
            brand=metadata.brand,
            last4=metadata.last4,
            expiry_month=metadata.expiry_month,
            expiry_year=metadata.expiry_year,
            executed_at=executed_at or _utcnow(),
        )

    @classmethod
    def failed(
        cls,
        card: CardDetails,
        step: FlowStep,
        message: str,
        last_url: str | None = None,
        executed_at: dt.datetime | None = None,
    ) -> CardUpdateOutcome:
        metadata = CardMetadata.from_card(card)
        return cls(
            success=False,
            brand=metadata.brand,
            last4=metadata.last4,
            expiry_month=metadata.expiry_month,
            expiry_year=metadata.expiry_year,
            executed_at=executed_at or _utcnow(),
            failed_step=step,
            failure_message=scrub(message, card),
            last_url=scrub(last_url, card) if last_url is not None else None,
        )

    @property
    def status(self) -> str:
        return "SUCCESS" if self.success else "FAILED"

    def to_metadata(self) -> dict[str, Any]:
        """Metadata dict stored alongside the task-log entry."""
        data: dict[str, Any] = {
            "last4": self.last4,
            "brand": self.brand.value,
            "expiry_month": self.expiry_month,
            "expiry_year": self.expiry_year,
            "executed_at": self.executed_at.isoformat(timespec="seconds"),
        }
        if not self.success:
            data["failed_step"] = self.failed_step.value if self.failed_step else None
            data["last_url"] = self.last_url
        return data


def scrub(text: str, card: CardDetails) -> str:
    """Replace the card number and CVC wherever they appear in *text*."""
    for secret in sorted({card.number, card.digits, card.cvc}, key=len, reverse=True):
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)
