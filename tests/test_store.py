"""Unit tests for cardpilot.store — YAML user directory and JSONL task log."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from cardpilot.config import CardPilotConfigError
from cardpilot.engine.protocols import TaskLogEntry, TaskLogSink, User, UserLookup, UserNotFoundError
from cardpilot.store import JsonlTaskLog, YamlUserDirectory

OWNER = User(id="u1", email="owner@example.com", name="Owner")


def _entry(status: str = "SUCCESS", user: User = OWNER, **metadata) -> TaskLogEntry:
    return TaskLogEntry(
        user=user,
        task_type="UPDATE_CARD",
        status=status,
        message="Card updated successfully" if status == "SUCCESS" else "boom",
        metadata={"last4": "1111", "brand": "VISA", **metadata},
    )


# ---------------------------------------------------------------------------
# 1. YamlUserDirectory
# ---------------------------------------------------------------------------

class TestYamlUserDirectory:
    def test_satisfies_protocol(self, tmp_project_dir: Path) -> None:
        assert isinstance(YamlUserDirectory(tmp_project_dir / "users.yaml"), UserLookup)

    def test_find_by_id(self, tmp_project_dir: Path) -> None:
        users = YamlUserDirectory(tmp_project_dir / "users.yaml")
        assert users.find_by_id("u1") == OWNER

    def test_unknown_user(self, tmp_project_dir: Path) -> None:
        users = YamlUserDirectory(tmp_project_dir / "users.yaml")
        with pytest.raises(UserNotFoundError) as exc_info:
            users.find_by_id("nobody")
        assert exc_info.value.user_id == "nobody"

    def test_all(self, tmp_project_dir: Path) -> None:
        assert YamlUserDirectory(tmp_project_dir / "users.yaml").all() == [OWNER]

    def test_numeric_ids_are_strings(self, tmp_path: Path) -> None:
        path = tmp_path / "users.yaml"
        path.write_text("users:\n  - id: 42\n    email: n@example.com\n", encoding="utf-8")
        assert YamlUserDirectory(path).find_by_id("42").email == "n@example.com"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CardPilotConfigError, match="Users file not found"):
            YamlUserDirectory(tmp_path / "users.yaml").find_by_id("u1")

    def test_entry_without_email(self, tmp_path: Path) -> None:
        path = tmp_path / "users.yaml"
        path.write_text("users:\n  - id: u1\n", encoding="utf-8")
        with pytest.raises(CardPilotConfigError, match="'id' and 'email'"):
            YamlUserDirectory(path).all()


# ---------------------------------------------------------------------------
# 2. JsonlTaskLog
# ---------------------------------------------------------------------------

class TestJsonlTaskLog:
    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(JsonlTaskLog(tmp_path / "log.jsonl"), TaskLogSink)

    def test_save_creates_parent_dirs(self, tmp_path: Path) -> None:
        log = JsonlTaskLog(tmp_path / "nested" / "dir" / "log.jsonl")
        log.save(_entry())
        assert log.path.exists()

    def test_record_fields(self, tmp_path: Path) -> None:
        log = JsonlTaskLog(tmp_path / "log.jsonl")
        log.save(_entry())
        [record] = log.entries()
        assert record["user_id"] == "u1"
        assert record["user_email"] == "owner@example.com"
        assert record["task_type"] == "UPDATE_CARD"
        assert record["status"] == "SUCCESS"
        assert record["metadata"] == {"last4": "1111", "brand": "VISA"}
        assert record["previous_hash"] is None
        assert record["timestamp"]

    def test_hash_chain(self, tmp_path: Path) -> None:
        log = JsonlTaskLog(tmp_path / "log.jsonl")
        log.save(_entry())
        log.save(_entry(status="FAILED", failed_step="LOGIN"))
        lines = log.path.read_text(encoding="utf-8").splitlines()
        expected = "sha256:" + hashlib.sha256(lines[0].encode("utf-8")).hexdigest()
        assert json.loads(lines[1])["previous_hash"] == expected

    def test_filter_by_user(self, tmp_path: Path) -> None:
        other = User(id="u2", email="other@example.com")
        log = JsonlTaskLog(tmp_path / "log.jsonl")
        log.save(_entry())
        log.save(_entry(user=other))
        log.save(_entry(status="FAILED"))
        assert [r["status"] for r in log.entries(user_id="u1")] == ["SUCCESS", "FAILED"]
        assert len(log.entries(user_id="u2")) == 1

    def test_missing_file_reads_empty(self, tmp_path: Path) -> None:
        assert JsonlTaskLog(tmp_path / "absent.jsonl").entries() == []

    def test_malformed_lines_skipped(self, tmp_path: Path) -> None:
        log = JsonlTaskLog(tmp_path / "log.jsonl")
        log.save(_entry())
        with log.path.open("a", encoding="utf-8") as fh:
            fh.write("{not json\n\n")
        log.save(_entry(status="FAILED"))
        assert [r["status"] for r in log.entries()] == ["SUCCESS", "FAILED"]
