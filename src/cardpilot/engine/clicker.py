"""Click buttons by their visible label.

Used where machine-readable attributes change between deployments but the
visible text ("Sign In", "Continue") does not.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from playwright.async_api import Error as PlaywrightError

from cardpilot.engine.protocols import FieldScope
from cardpilot.models import DEFAULT_CLICK_TIMEOUT

logger = logging.getLogger("cardpilot.engine.clicker")


async def click_by_text(
    scope: FieldScope,
    css_selector: str,
    labels: Iterable[str],
    timeout: float = DEFAULT_CLICK_TIMEOUT,
) -> bool:
    """Click the first visible element matching *css_selector* whose text contains a label.

    Text is trimmed and compared case-insensitively by substring. Hidden
    matches and matches that refuse the click are passed over. Returns
    whether an element was clicked.
    """
    wanted = [label.strip().lower() for label in labels if label.strip()]
    for element in await scope.query_selector_all(css_selector):
        try:
            text = (await element.inner_text()).strip().lower()
        except PlaywrightError:
            continue
        if not any(label in text for label in wanted):
            continue
        try:
            if not await element.is_visible():
                logger.debug("Skipping hidden %s with text %r", css_selector, text[:40])
                continue
            logger.debug("Clicking %s with text %r", css_selector, text[:40])
            await element.click(timeout=timeout * 1000)
        except PlaywrightError as exc:
            logger.debug("Click on %r failed: %s", text[:40], exc)
            continue
        return True
    return False
