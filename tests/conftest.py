"""Shared fixtures for CardPilot unit tests."""

from __future__ import annotations

import random
from pathlib import Path

import pytest
import yaml
from fakes import ACCOUNT_URL, BILLING_URL, HOME_URL, no_sleep

from cardpilot.config import CardPilotConfig
from cardpilot.credentials import CardDetails, Credentials
from cardpilot.engine.humanize import HumanEmulator


@pytest.fixture
def config() -> CardPilotConfig:
    """Config pointed at the fake site, with zero retry backoff."""
    return CardPilotConfig(
        home_url=HOME_URL,
        account_url=ACCOUNT_URL,
        billing_url=BILLING_URL,
        billing_path="/billing",
        retry_initial_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def emulator() -> HumanEmulator:
    return HumanEmulator(rng=random.Random(1234), sleep=no_sleep)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(email="viewer@example.com", password="correct horse")


@pytest.fixture
def card() -> CardDetails:
    return CardDetails(
        number="4111111111111111",
        expiry_month=12,
        expiry_year=2030,
        cvc="123",
        holder_name="A B",
    )


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create a temporary .cardpilot/ project directory with users and config."""
    project_dir = tmp_path / ".cardpilot"
    project_dir.mkdir()
    config_data = {
        "headless": True,
        "target": {
            "home_url": HOME_URL,
            "account_url": ACCOUNT_URL,
            "billing_url": BILLING_URL,
        },
        "timeouts": {"submit": 15},
    }
    (project_dir / "config.yaml").write_text(
        yaml.dump(config_data, default_flow_style=False), encoding="utf-8"
    )
    users_data = {"users": [{"id": "u1", "email": "owner@example.com", "name": "Owner"}]}
    (project_dir / "users.yaml").write_text(
        yaml.dump(users_data, default_flow_style=False), encoding="utf-8"
    )
    return project_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a valid CardPilot config.yaml as a string."""
    return """\
headless: false
browser_executable: /opt/chrome/chrome
users_file: people.yaml
task_log_file: logs/tasks.jsonl
target:
  home_url: "https://tv.example.com/"
  account_url: "https://tv.example.com/account/"
  billing_url: "https://tv.example.com/account/billing/"
  billing_path: /payments
timeouts:
  navigation: 45
  field: 8
  submit: 25
  click: 2
retry:
  initial_delay: 0.5
  max_delay: 4
  backoff_factor: 3
"""
