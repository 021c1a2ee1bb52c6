"""File-backed user directory and task log.

Reference implementations of the engine's ``UserLookup`` and
``TaskLogSink`` contracts for local use and the CLI. Deployments behind an
API layer plug in their own database-backed versions.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from cardpilot.config import CardPilotConfigError
from cardpilot.engine.protocols import TaskLogEntry, User, UserNotFoundError

logger = logging.getLogger("cardpilot.store")


class YamlUserDirectory:
    """Looks users up in a YAML file.

    Expected layout::

        users:
          - id: u1
            email: someone@example.com
            name: Someone
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._users: dict[str, User] | None = None

    def find_by_id(self, user_id: str) -> User:
        users = self._load()
        user = users.get(user_id)
        if user is None:
            logger.warning("User not found id=%s", user_id)
            raise UserNotFoundError(user_id)
        return user

    def all(self) -> list[User]:
        return list(self._load().values())

    def _load(self) -> dict[str, User]:
        if self._users is not None:
            return self._users
        if not self._path.exists():
            raise CardPilotConfigError(
                f"Users file not found: {self._path}\n\n"
                "To fix: create it with a top-level 'users' list"
            )
        with open(self._path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        users: dict[str, User] = {}
        for raw in data.get("users", []) or []:
            if not isinstance(raw, dict) or "id" not in raw or "email" not in raw:
                raise CardPilotConfigError(
                    f"Invalid user entry in {self._path}: each user needs 'id' and 'email'"
                )
            user = User(id=str(raw["id"]), email=str(raw["email"]), name=str(raw.get("name", "")))
            users[user.id] = user
        self._users = users
        return users


class JsonlTaskLog:
    """Append-only JSONL task log, hash-chained via ``previous_hash``."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, entry: TaskLogEntry) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            record = {
                "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
                "user_id": entry.user.id,
                "user_email": entry.user.email,
                "task_type": entry.task_type,
                "status": entry.status,
                "message": entry.message,
                "metadata": entry.metadata,
                "previous_hash": self._last_hash(),
            }
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, separators=(",", ":")) + "\n")
        logger.debug("Task log entry written: %s %s", entry.task_type, entry.status)

    def entries(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """Read back entries, oldest first, optionally for one user."""
        if not self._path.exists():
            return []
        result: list[dict[str, Any]] = []
        with self._path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed task log line in %s", self._path)
                    continue
                if user_id is None or record.get("user_id") == user_id:
                    result.append(record)
        return result

    def _last_hash(self) -> str | None:
        """SHA-256 of the last non-empty line, or None for an empty log."""
        if not self._path.exists():
            return None
        last_line = ""
        with self._path.open("r", encoding="utf-8") as fh:
            for line in fh:
                stripped = line.strip()
                if stripped:
                    last_line = stripped
        if not last_line:
            return None
        return "sha256:" + hashlib.sha256(last_line.encode("utf-8")).hexdigest()
