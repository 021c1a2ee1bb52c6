"""Human-paced input and per-run client fingerprint randomization.

Typing cadence, click timing, viewport, user agent and request headers are
randomized so each run looks like an ordinary desktop browser session. None
of this changes functional outcome.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from playwright.async_api import Error as PlaywrightError

from cardpilot.engine.protocols import FieldScope
from cardpilot.models import (
    DEFAULT_CLICK_TIMEOUT,
    USER_AGENTS,
    VIEWPORT_HEIGHT_RANGE,
    VIEWPORT_WIDTH_RANGE,
)

logger = logging.getLogger("cardpilot.engine.humanize")

# Per-key delay range (ms)
KEY_DELAY_MS = (40, 180)
# Occasional hesitation while typing
HESITATION_PROBABILITY = 0.05
HESITATION_MS = (150, 350)
# Pause before a click, and how long the button is held down
PRE_CLICK_MS = (80, 260)
CLICK_HOLD_MS = (40, 140)


@dataclasses.dataclass(frozen=True)
class Fingerprint:
    """Client signals chosen for one run."""

    width: int
    height: int
    user_agent: str
    headers: dict[str, str]

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


class HumanEmulator:
    """Emits browser input with randomized, human-like timing.

    ``rng`` and ``sleep`` are injectable so tests can run deterministically
    and without real delays.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def random_delay(self, min_ms: int, max_ms: int) -> None:
        """Suspend for a uniformly random duration in [min_ms, max_ms]."""
        await self._sleep(self._rng.uniform(min_ms, max_ms) / 1000)

    async def type_like_human(self, scope: FieldScope, selector: str, text: str) -> None:
        """Focus *selector* then type *text* one key at a time."""
        await scope.focus(selector)
        for char in text:
            await scope.type(selector, char)
            await self.random_delay(*KEY_DELAY_MS)
            if self._rng.random() < HESITATION_PROBABILITY:
                await self.random_delay(*HESITATION_MS)

    async def click_like_human(
        self, scope: FieldScope, selector: str, timeout: float = DEFAULT_CLICK_TIMEOUT
    ) -> bool:
        """Click the first visible match for *selector* after a short pause.

        Returns False without raising when nothing visible matches or the
        click is refused within *timeout* seconds.
        """
        element = await _first_visible(scope, selector)
        if element is None:
            logger.debug("click_like_human: no visible %s", selector)
            return False
        await self.random_delay(*PRE_CLICK_MS)
        try:
            await element.click(delay=self._rng.randint(*CLICK_HOLD_MS), timeout=timeout * 1000)
        except PlaywrightError as exc:
            logger.warning("Click on %s failed: %s", selector, exc)
            return False
        return True

    def build_fingerprint(self) -> Fingerprint:
        """Pick a viewport, user agent and header set for one run."""
        user_agent = self._rng.choice(USER_AGENTS)
        return Fingerprint(
            width=self._rng.randint(*VIEWPORT_WIDTH_RANGE),
            height=self._rng.randint(*VIEWPORT_HEIGHT_RANGE),
            user_agent=user_agent,
            headers={
                "Accept-Language": self._rng.choice(
                    ("en-US,en;q=0.9", "en-US,en;q=0.8", "en-GB,en;q=0.9,en-US;q=0.8")
                ),
                "DNT": "1",
                "Upgrade-Insecure-Requests": "1",
                "Accept": (
                    "text/html,application/xhtml+xml,application/xml;q=0.9,"
                    "image/avif,image/webp,*/*;q=0.8"
                ),
            },
        )

    async def randomize_fingerprint(self, page: Any, fingerprint: Fingerprint | None = None) -> Fingerprint:
        """Apply a viewport, user agent and standard headers to *page*."""
        fingerprint = fingerprint or self.build_fingerprint()
        await page.set_viewport_size(fingerprint.viewport)
        await page.set_extra_http_headers(
            {"User-Agent": fingerprint.user_agent, **fingerprint.headers}
        )
        logger.info(
            "Fingerprint: viewport=%dx%d, user_agent=%s",
            fingerprint.width, fingerprint.height, fingerprint.user_agent[:60],
        )
        return fingerprint


async def _first_visible(scope: FieldScope, selector: str) -> Any:
    for element in await scope.query_selector_all(selector):
        try:
            if await element.is_visible():
                return element
        except PlaywrightError:
            continue
    return None
