"""Session Orchestrator — one browser, one page, one card-update run.

Resolves the user, launches an isolated Chromium, runs the Login Flow and
then the Card-Update Flow, attributes any failure to the step in progress,
hands the outcome to the task-log sink, and always tears the browser down.

Callers only ever see a boolean; failure detail lives in the task log.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from cardpilot.config import CardPilotConfig, resolve_browser_executable
from cardpilot.credentials import CardDetails, Credentials, mask_card_number
from cardpilot.engine.card_update_flow import CardUpdateFlow
from cardpilot.engine.humanize import HumanEmulator
from cardpilot.engine.login_flow import LoginFlow
from cardpilot.engine.outcome import CardUpdateOutcome, FlowStep
from cardpilot.engine.protocols import TaskLogEntry, TaskLogSink, User, UserLookup
from cardpilot.models import LAUNCH_ARGS, TASK_TYPE_UPDATE_CARD

logger = logging.getLogger("cardpilot.engine.session")

# Returns (driver, browser). The driver is stopped after the browser closes;
# it may be None when the browser is not owned by a Playwright instance.
BrowserLauncher = Callable[[CardPilotConfig], Awaitable[tuple[Any, Any]]]


async def launch_chromium(config: CardPilotConfig) -> tuple[Any, Any]:
    """Start Playwright and launch a sandbox-free headless Chromium."""
    from playwright.async_api import async_playwright

    driver = await async_playwright().start()
    try:
        browser = await driver.chromium.launch(
            headless=config.headless,
            executable_path=resolve_browser_executable(config),
            args=list(LAUNCH_ARGS),
        )
    except Exception:
        await driver.stop()
        raise
    return driver, browser


class AutomationSession:
    """Runs card updates against the target service.

    The session holds no per-run state, so one instance can serve several
    concurrent runs for different users.
    """

    def __init__(
        self,
        users: UserLookup,
        task_log: TaskLogSink,
        config: CardPilotConfig | None = None,
        launcher: BrowserLauncher = launch_chromium,
        emulator: HumanEmulator | None = None,
    ) -> None:
        self._users = users
        self._task_log = task_log
        self._config = config or CardPilotConfig()
        self._launcher = launcher
        self._emulator = emulator or HumanEmulator(rng=random.Random())

    async def update_card_for_user(
        self,
        user_id: str,
        credentials: Credentials,
        card: CardDetails,
    ) -> bool:
        """Sign in and replace the stored card. Returns True on full success.

        Raises UserNotFoundError before launching anything if *user_id* is
        unknown. Every other failure is logged and reported as False.
        """
        user = self._users.find_by_id(user_id)
        logger.info(
            "Card update requested for user %s (card %s)",
            user.email, mask_card_number(card.number),
        )

        step = FlowStep.INIT
        driver: Any = None
        browser: Any = None
        context: Any = None
        page: Any = None
        try:
            try:
                driver, browser = await self._launcher(self._config)
                fingerprint = self._emulator.build_fingerprint()
                context = await browser.new_context(
                    user_agent=fingerprint.user_agent,
                    viewport=fingerprint.viewport,
                )
                page = await context.new_page()
                await self._emulator.randomize_fingerprint(page, fingerprint)

                step = FlowStep.LOGIN
                await LoginFlow(page, self._config, self._emulator).run(credentials)

                step = FlowStep.APPLY_CARD
                metadata = await CardUpdateFlow(page, self._config, self._emulator).run(card)
                outcome = CardUpdateOutcome.succeeded(metadata)
                logger.info("Card update succeeded for user %s", user.email)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                outcome = CardUpdateOutcome.failed(
                    card, step, message, last_url=_current_url(page)
                )
                logger.error(
                    "Automation failed for user %s at %s: %s",
                    user.email, step.value, outcome.failure_message,
                )
            self._record(user, outcome)
            return outcome.success
        finally:
            await self._teardown(driver, browser, context, page)

    def _record(self, user: User, outcome: CardUpdateOutcome) -> None:
        entry = TaskLogEntry(
            user=user,
            task_type=TASK_TYPE_UPDATE_CARD,
            status=outcome.status,
            message="Card updated successfully" if outcome.success else outcome.failure_message or "",
            metadata=outcome.to_metadata(),
        )
        try:
            self._task_log.save(entry)
        except Exception as exc:
            logger.error("Failed to persist task log entry for user %s: %s", user.email, exc)

    async def _teardown(self, driver: Any, browser: Any, context: Any, page: Any) -> None:
        """Close page, context, browser, then the driver. Never raises."""
        for label, resource, method in (
            ("page", page, "close"),
            ("context", context, "close"),
            ("browser", browser, "close"),
            ("driver", driver, "stop"),
        ):
            if resource is None:
                continue
            if not await _close_quietly(getattr(resource, method)):
                logger.warning("Failed to close %s during teardown", label)


async def _close_quietly(closer: Callable[[], Awaitable[Any]]) -> bool:
    """Attempt *closer*; report whether it succeeded instead of raising."""
    try:
        await closer()
    except Exception:
        return False
    return True


def _current_url(page: Any) -> str | None:
    if page is None:
        return None
    try:
        return page.url
    except Exception:
        return None


async def update_card_for_user(
    users: UserLookup,
    task_log: TaskLogSink,
    user_id: str,
    credentials: Credentials,
    card: CardDetails,
    config: CardPilotConfig | None = None,
) -> bool:
    """Convenience wrapper: run a single card update with the default launcher."""
    session = AutomationSession(users=users, task_log=task_log, config=config)
    return await session.update_card_for_user(user_id, credentials, card)
