"""Summary: Tests for the command-line interface.

Importance: The CLI is the only way to seed accounts, users, and keys.
Alternatives: Seed data with SQL scripts.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from inboxdesk.app import build_services
from inboxdesk.cli import run_cli
from inboxdesk.config import AppConfig


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "defaults.json").write_text(
        json.dumps(
            {
                "db_path": str(tmp_path / "cli.db"),
                "avatar_dir": str(tmp_path / "avatars"),
                "api_host": "127.0.0.1",
                "api_port": "8000",
                "token_secret": "secret",
                "log_level": "WARNING",
                "default_timezone": "UTC",
            }
        ),
        encoding="utf-8",
    )
    for key in ("INBOXDESK_DB_PATH", "INBOXDESK_AVATAR_DIR", "INBOXDESK_TOKEN_SECRET"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_seed_account_and_key(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Summary: Verify the seeding commands chain together.

    Importance: Confirms a fresh install can reach a usable API key.
    Alternatives: Validate each command in isolation.
    """

    assert run_cli(["init-db"]) == 0
    assert run_cli(["create-account", "Acme"]) == 0
    assert run_cli(["create-user", "Admin", "admin@acme.test"]) == 0
    assert run_cli(["add-account-user", "1", "1", "administrator"]) == 0
    assert run_cli(["create-api-key", "admin@acme.test", "--label", "cli"]) == 0
    output = capsys.readouterr().out
    assert "Created account 1." in output
    assert "User 1 is administrator of account 1." in output
    assert "API key 1:" in output


def test_missing_records_fail(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cli(["create-api-key", "nobody@acme.test"]) == 1
    assert run_cli(["is-open", "1", "99"]) == 1
    assert "Error:" in capsys.readouterr().out


def test_is_open_uses_schedule(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    run_cli(["create-account", "Acme"])
    run_cli(["create-user", "Admin", "admin@acme.test"])
    run_cli(["add-account-user", "1", "1", "administrator"])
    capsys.readouterr()
    services = build_services(AppConfig.from_env())
    inbox = services.inboxes.create_inbox(1, 1, "Support", {"type": "api"})
    services.inboxes.update_inbox(1, 1, inbox.id, {"working_hours_enabled": True})

    assert run_cli(["is-open", "1", str(inbox.id), "--at", "2026-10-18T12:00:00+00:00"]) == 0
    assert "is closed" in capsys.readouterr().out
    assert run_cli(["is-open", "1", str(inbox.id), "--at", "2026-10-19T12:00:00+00:00"]) == 0
    assert "is open" in capsys.readouterr().out


def test_listing_commands(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Summary: Verify accounts, account users, and agent bots can be listed."""

    run_cli(["create-account", "Acme"])
    run_cli(["create-account", "Globex"])
    run_cli(["create-user", "Admin", "admin@acme.test"])
    run_cli(["add-account-user", "1", "1", "administrator"])
    run_cli(["create-agent-bot", "Greeter"])
    run_cli(["create-agent-bot", "Private", "--account-id", "2"])
    capsys.readouterr()

    assert run_cli(["list-accounts"]) == 0
    assert capsys.readouterr().out.splitlines() == ["1: Acme", "2: Globex"]
    assert run_cli(["list-account-users", "1"]) == 0
    assert capsys.readouterr().out.strip() == "1: Admin <admin@acme.test> administrator"
    assert run_cli(["list-agent-bots", "1"]) == 0
    assert capsys.readouterr().out.strip() == "1: Greeter (global)"


def test_set_working_hours(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Summary: Verify the schedule command replaces hours and rejects bad input."""

    run_cli(["create-account", "Acme"])
    run_cli(["create-user", "Admin", "admin@acme.test"])
    run_cli(["add-account-user", "1", "1", "administrator"])
    services = build_services(AppConfig.from_env())
    inbox = services.inboxes.create_inbox(1, 1, "Support", {"type": "api"})
    capsys.readouterr()

    hours = json.dumps(
        [{"day_of_week": 0, "open_hour": 10, "open_minutes": 0, "close_hour": 14, "close_minutes": 0}]
    )
    assert run_cli(["set-working-hours", "1", str(inbox.id), hours, "--message", "Back Monday"]) == 0
    assert f"Inbox {inbox.id} has 1 schedule entries." in capsys.readouterr().out
    stored = services.store.get_inbox(1, inbox.id)
    assert stored.working_hours_enabled is True
    assert stored.out_of_office_message == "Back Monday"

    assert run_cli(["set-working-hours", "1", str(inbox.id), "not json"]) == 1
    assert run_cli(["set-working-hours", "1", str(inbox.id), '[{"day_of_week": 9}]']) == 1
    assert services.store.get_inbox(1, inbox.id) == stored
