"""CardPilot engine — browser automation for card updates.

Provides the complete workflow engine:
- retry_async / RetryPolicy: bounded retry with exponential backoff
- HumanEmulator: human-paced typing and clicks, fingerprint randomization
- resolve_field: field discovery across the page and its frames
- click_by_text: label-matched button activation
- classify_card_brand: best-effort card brand from leading digits
- LoginFlow / CardUpdateFlow: the two browser flows
- AutomationSession: browser lifecycle, step attribution and outcome logging
"""

from cardpilot.engine.card_brand import CardBrand, classify_card_brand, last_four
from cardpilot.engine.card_update_flow import CardUpdateFlow
from cardpilot.engine.clicker import click_by_text
from cardpilot.engine.errors import (
    FieldNotFoundError,
    FlowError,
    ResponseNotConfirmedError,
    SubmitControlNotFoundError,
)
from cardpilot.engine.field_resolver import FieldContext, resolve_field
from cardpilot.engine.humanize import Fingerprint, HumanEmulator
from cardpilot.engine.login_flow import LoginFlow, LoginState
from cardpilot.engine.outcome import CardMetadata, CardUpdateOutcome, FlowStep
from cardpilot.engine.protocols import (
    TaskLogEntry,
    TaskLogSink,
    User,
    UserLookup,
    UserNotFoundError,
)
from cardpilot.engine.retry import RetryPolicy, retry_async
from cardpilot.engine.session import AutomationSession, launch_chromium, update_card_for_user

__all__ = [
    "AutomationSession",
    "CardBrand",
    "CardMetadata",
    "CardUpdateFlow",
    "CardUpdateOutcome",
    "FieldContext",
    "FieldNotFoundError",
    "Fingerprint",
    "FlowError",
    "FlowStep",
    "HumanEmulator",
    "LoginFlow",
    "LoginState",
    "ResponseNotConfirmedError",
    "RetryPolicy",
    "SubmitControlNotFoundError",
    "TaskLogEntry",
    "TaskLogSink",
    "User",
    "UserLookup",
    "UserNotFoundError",
    "classify_card_brand",
    "click_by_text",
    "last_four",
    "launch_chromium",
    "resolve_field",
    "retry_async",
    "update_card_for_user",
]
