"""Locate form fields across the main document and embedded frames.

Target pages differ in whether credential and card inputs sit in the top
document or inside an iframe, and in whether they are addressed by ``name``,
``id`` or ``type``. The resolver tries every candidate selector in the main
page first, then in each frame in enumeration order, and returns the first
scope/selector pair that resolves.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from typing import Any

from playwright.async_api import Error as PlaywrightError

from cardpilot.engine.errors import FieldNotFoundError
from cardpilot.engine.protocols import FieldScope
from cardpilot.models import DEFAULT_RESOLVER_CANDIDATE_TIMEOUT, DEFAULT_RESOLVER_FALLBACK_TIMEOUT

logger = logging.getLogger("cardpilot.engine.field_resolver")


@dataclasses.dataclass(frozen=True)
class FieldContext:
    """Where a field lives and how to address it."""

    scope: FieldScope
    selector: str

    @property
    def in_frame(self) -> bool:
        return hasattr(self.scope, "parent_frame")

    async def value(self) -> str:
        return await self.scope.input_value(self.selector)


def iter_scopes(page: Any) -> list[FieldScope]:
    """Return the page followed by every non-main frame, in order."""
    main_frame = getattr(page, "main_frame", None)
    return [page, *(frame for frame in page.frames if frame is not main_frame)]


async def resolve_field(
    page: Any,
    selectors: Sequence[str],
    per_candidate_timeout: float = DEFAULT_RESOLVER_CANDIDATE_TIMEOUT,
    fallback_timeout: float = DEFAULT_RESOLVER_FALLBACK_TIMEOUT,
) -> FieldContext:
    """Find the first scope in which any of *selectors* resolves.

    Each candidate gets a bounded wait in each scope. If nothing matches,
    waits once more on the main page for the last candidate with
    *fallback_timeout* before raising FieldNotFoundError.
    """
    if not selectors:
        raise ValueError("resolve_field needs at least one selector")

    for index, scope in enumerate(iter_scopes(page)):
        for selector in selectors:
            if await _present(scope, selector, per_candidate_timeout):
                logger.debug(
                    "Resolved %s in %s",
                    selector, "main page" if index == 0 else f"frame #{index}",
                )
                return FieldContext(scope=scope, selector=selector)

    last = selectors[-1]
    logger.debug("No scope matched; waiting %.1fs for %s on main page", fallback_timeout, last)
    if await _present(page, last, fallback_timeout):
        return FieldContext(scope=page, selector=last)
    raise FieldNotFoundError(selectors)


async def _present(scope: FieldScope, selector: str, timeout: float) -> bool:
    try:
        handle = await scope.wait_for_selector(selector, timeout=timeout * 1000, state="attached")
    except PlaywrightError:
        # Timeouts and detached frames both mean "not here".
        return False
    return handle is not None
