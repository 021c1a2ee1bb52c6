"""Collaborator contracts for the automation engine.

The engine drives a browser and nothing else. Looking up users and storing
task-log entries are delegated to implementations of the protocols below;
``cardpilot.store`` ships file-backed ones.

``FieldScope`` is the common surface of a Playwright ``Page`` and ``Frame``,
so a field can be addressed the same way whether it lives in the top
document or inside an iframe.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Protocol, runtime_checkable


class UserNotFoundError(Exception):
    """Raised by a UserLookup when no user has the requested id."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


@dataclasses.dataclass(frozen=True)
class User:
    """A registered user on whose behalf automation runs."""

    id: str
    email: str
    name: str = ""


@dataclasses.dataclass(frozen=True)
class TaskLogEntry:
    """One append-only record of an automation attempt."""

    user: User
    task_type: str
    status: str  # SUCCESS | FAILED
    message: str
    metadata: dict[str, Any]


@runtime_checkable
class UserLookup(Protocol):
    """Resolves a user id to a User or raises UserNotFoundError."""

    def find_by_id(self, user_id: str) -> User: ...


@runtime_checkable
class TaskLogSink(Protocol):
    """Persists task-log entries. The engine never reads them back."""

    def save(self, entry: TaskLogEntry) -> None: ...


@runtime_checkable
class FieldScope(Protocol):
    """Document scope a selector is evaluated in (page or frame)."""

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> Any: ...

    async def query_selector(self, selector: str) -> Any: ...

    async def query_selector_all(self, selector: str) -> list[Any]: ...

    async def focus(self, selector: str, **kwargs: Any) -> None: ...

    async def type(self, selector: str, text: str, **kwargs: Any) -> None: ...

    async def click(self, selector: str, **kwargs: Any) -> None: ...

    async def input_value(self, selector: str, **kwargs: Any) -> str: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...
