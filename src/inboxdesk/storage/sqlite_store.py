"""Summary: SQLite storage implementation for InboxDesk.

Importance: Provides account-scoped persistence with atomic multi-row updates.
Alternatives: Use an ORM or an external database immediately.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from inboxdesk.models import (
    Account,
    AgentBot,
    Campaign,
    Inbox,
    Role,
    User,
    WeeklyScheduleEntry,
)


@dataclass(frozen=True)
class StoredUser:
    """Summary: User record with database identifier.

    Importance: Enables multi-user and per-account roles.
    Alternatives: Keep only a single implicit user without records.
    """

    id: int
    display_name: str
    email: str


@dataclass(frozen=True)
class StoredAccountUser:
    """Summary: User record paired with their role in one account."""

    user: StoredUser
    role: Role


@dataclass(frozen=True)
class StoredApiKey:
    """Summary: API key record with hashed token.

    Importance: Supports per-user authentication without storing raw tokens.
    Alternatives: Store raw tokens in the database.
    """

    id: int
    user_id: int
    token_hash: str
    label: str | None
    created_at: str


_INBOX_COLUMNS = """
    id, account_id, name, channel_type, channel_config, enable_auto_assignment, avatar_key,
    working_hours_enabled, out_of_office_message, timezone, agent_bot_id
"""

_SCHEDULE_COLUMNS = """
    day_of_week, open_hour, open_minutes, close_hour, close_minutes, closed_all_day, open_all_day
"""

_UPDATABLE_INBOX_FIELDS = frozenset(
    {
        "name",
        "channel_config",
        "enable_auto_assignment",
        "avatar_key",
        "working_hours_enabled",
        "out_of_office_message",
        "timezone",
    }
)


class SqliteStore:
    """Summary: SQLite-backed storage for InboxDesk.

    Importance: Every multi-row change runs on one connection and commits once,
    so a failure part way leaves prior state intact.
    Alternatives: Use Postgres and SQLAlchemy from day one.
    """

    def __init__(self, db_path: str) -> None:
        """Summary: Initialize the storage with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create tables if they do not exist.

        Importance: Ensures the database is ready before the API or CLI runs.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    display_name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS account_users (
                    account_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    PRIMARY KEY (account_id, user_id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS inboxes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    channel_type TEXT NOT NULL,
                    channel_config TEXT NOT NULL,
                    enable_auto_assignment INTEGER NOT NULL DEFAULT 1,
                    avatar_key TEXT,
                    working_hours_enabled INTEGER NOT NULL DEFAULT 0,
                    out_of_office_message TEXT,
                    timezone TEXT NOT NULL DEFAULT 'UTC',
                    agent_bot_id INTEGER
                )
                """
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS inboxes_account_id_index ON inboxes (account_id)"
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS working_hours (
                    inbox_id INTEGER NOT NULL,
                    day_of_week INTEGER NOT NULL,
                    open_hour INTEGER,
                    open_minutes INTEGER,
                    close_hour INTEGER,
                    close_minutes INTEGER,
                    closed_all_day INTEGER NOT NULL DEFAULT 0,
                    open_all_day INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (inbox_id, day_of_week)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS inbox_members (
                    inbox_id INTEGER NOT NULL,
                    user_id INTEGER NOT NULL,
                    PRIMARY KEY (inbox_id, user_id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS agent_bots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    outgoing_url TEXT,
                    account_id INTEGER
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS campaigns (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id INTEGER NOT NULL,
                    display_id INTEGER NOT NULL,
                    inbox_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    message TEXT NOT NULL,
                    enabled INTEGER NOT NULL DEFAULT 1,
                    UNIQUE(account_id, display_id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS api_keys (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    token_hash TEXT NOT NULL UNIQUE,
                    label TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            connection.commit()

    def create_account(self, name: str) -> int:
        """Summary: Create an account and return its ID."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("INSERT INTO accounts (name) VALUES (?)", (name,))
            account_id = cursor.lastrowid
            connection.commit()
        return int(account_id)

    def get_account(self, account_id: int) -> Account | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT id, name FROM accounts WHERE id = ?", (account_id,))
            row = cursor.fetchone()
        return Account(*row) if row else None

    def list_accounts(self) -> list[Account]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT id, name FROM accounts ORDER BY id")
            rows = cursor.fetchall()
        return [Account(*row) for row in rows]

    def ensure_user(self, user: User) -> int:
        """Summary: Ensure a user exists and return their ID.

        Importance: Provides a stable user record keyed by email.
        Alternatives: Fail when the email is already registered.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO users (display_name, email) VALUES (?, ?)",
                (user.display_name, user.email),
            )
            if cursor.rowcount:
                user_id = cursor.lastrowid
            else:
                cursor.execute("SELECT id FROM users WHERE email = ?", (user.email,))
                row = cursor.fetchone()
                user_id = int(row[0]) if row else 0
            connection.commit()
        return int(user_id)

    def get_user(self, user_id: int) -> StoredUser | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id, display_name, email FROM users WHERE id = ?", (user_id,)
            )
            row = cursor.fetchone()
        return StoredUser(*row) if row else None

    def get_user_by_email(self, email: str) -> StoredUser | None:
        """Summary: Fetch a user by email.

        Importance: Enables resolving users for API key issuance.
        Alternatives: Use user IDs only.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id, display_name, email FROM users WHERE email = ?", (email,)
            )
            row = cursor.fetchone()
        return StoredUser(*row) if row else None

    def set_account_user(self, account_id: int, user_id: int, role: Role) -> None:
        """Summary: Attach a user to an account with a role, replacing any prior role.

        Importance: Each user holds exactly one role per account.
        Alternatives: Store roles on the user record globally.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO account_users (account_id, user_id, role) VALUES (?, ?, ?)
                ON CONFLICT(account_id, user_id) DO UPDATE SET role = excluded.role
                """,
                (account_id, user_id, role.value),
            )
            connection.commit()

    def get_account_role(self, account_id: int, user_id: int) -> Role | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT role FROM account_users WHERE account_id = ? AND user_id = ?",
                (account_id, user_id),
            )
            row = cursor.fetchone()
        return Role(row[0]) if row else None

    def list_account_users(
        self, account_id: int, role: Role | None = None
    ) -> list[StoredAccountUser]:
        """Summary: List users of an account with their roles, optionally by role."""

        with self._connection() as connection:
            cursor = connection.cursor()
            if role is None:
                cursor.execute(
                    """
                    SELECT users.id, users.display_name, users.email, account_users.role
                    FROM account_users
                    JOIN users ON users.id = account_users.user_id
                    WHERE account_users.account_id = ?
                    ORDER BY users.id
                    """,
                    (account_id,),
                )
            else:
                cursor.execute(
                    """
                    SELECT users.id, users.display_name, users.email, account_users.role
                    FROM account_users
                    JOIN users ON users.id = account_users.user_id
                    WHERE account_users.account_id = ? AND account_users.role = ?
                    ORDER BY users.id
                    """,
                    (account_id, role.value),
                )
            rows = cursor.fetchall()
        return [StoredAccountUser(StoredUser(*row[:3]), Role(row[3])) for row in rows]

    def create_inbox(
        self,
        account_id: int,
        name: str,
        channel_type: str,
        channel_config: dict[str, Any],
        enable_auto_assignment: bool,
        timezone: str,
        schedule: Iterable[WeeklyScheduleEntry],
    ) -> Inbox:
        """Summary: Persist a new inbox together with its initial schedule.

        Importance: The inbox and its schedule appear in one commit.
        Alternatives: Create the schedule lazily on first read.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO inboxes (
                    account_id, name, channel_type, channel_config, enable_auto_assignment, timezone
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    account_id,
                    name,
                    channel_type,
                    json.dumps(channel_config, sort_keys=True),
                    int(enable_auto_assignment),
                    timezone,
                ),
            )
            inbox_id = int(cursor.lastrowid)
            self._write_schedule(cursor, inbox_id, schedule)
            connection.commit()
            return self._fetch_inbox(cursor, account_id, inbox_id)

    def get_inbox(self, account_id: int, inbox_id: int) -> Inbox | None:
        """Summary: Fetch an inbox only if it belongs to the given account.

        Importance: Cross-account lookups come back empty rather than erroring.
        Alternatives: Fetch by ID and compare accounts in the caller.
        """

        with self._connection() as connection:
            return self._fetch_inbox(connection.cursor(), account_id, inbox_id)

    def list_inboxes(self, account_id: int, member_user_id: int | None = None) -> list[Inbox]:
        """Summary: List an account's inboxes, optionally only those a user is a member of."""

        with self._connection() as connection:
            cursor = connection.cursor()
            if member_user_id is None:
                cursor.execute(
                    f"SELECT {_INBOX_COLUMNS} FROM inboxes WHERE account_id = ? ORDER BY id",
                    (account_id,),
                )
            else:
                cursor.execute(
                    f"""
                    SELECT {_INBOX_COLUMNS}
                    FROM inboxes
                    WHERE account_id = ?
                      AND id IN (SELECT inbox_id FROM inbox_members WHERE user_id = ?)
                    ORDER BY id
                    """,
                    (account_id, member_user_id),
                )
            rows = cursor.fetchall()
            return [self._row_to_inbox(cursor, row) for row in rows]

    def update_inbox(
        self,
        account_id: int,
        inbox_id: int,
        fields: dict[str, Any],
        schedule: Iterable[WeeklyScheduleEntry] | None = None,
    ) -> Inbox | None:
        """Summary: Apply field changes and an optional schedule replacement atomically.

        Importance: A schedule replace never leaves a partial set of days behind.
        Alternatives: Upsert each schedule day in its own statement and commit.
        """

        unknown = set(fields) - _UPDATABLE_INBOX_FIELDS
        if unknown:
            raise ValueError(f"Unknown inbox fields: {', '.join(sorted(unknown))}")
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id FROM inboxes WHERE id = ? AND account_id = ?",
                (inbox_id, account_id),
            )
            if cursor.fetchone() is None:
                return None
            if fields:
                columns = sorted(fields)
                assignments = ", ".join(f"{column} = ?" for column in columns)
                values = [_to_column(column, fields[column]) for column in columns]
                cursor.execute(
                    f"UPDATE inboxes SET {assignments} WHERE id = ? AND account_id = ?",
                    (*values, inbox_id, account_id),
                )
            if schedule is not None:
                cursor.execute("DELETE FROM working_hours WHERE inbox_id = ?", (inbox_id,))
                self._write_schedule(cursor, inbox_id, schedule)
            connection.commit()
            return self._fetch_inbox(cursor, account_id, inbox_id)

    def delete_inbox(self, account_id: int, inbox_id: int) -> bool:
        """Summary: Delete an inbox with its memberships, schedule, and campaigns in one commit.

        Importance: Never leaves memberships or campaigns pointing at a deleted inbox.
        Alternatives: Rely on foreign key cascades.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "DELETE FROM inboxes WHERE id = ? AND account_id = ?",
                (inbox_id, account_id),
            )
            if cursor.rowcount == 0:
                return False
            cursor.execute("DELETE FROM inbox_members WHERE inbox_id = ?", (inbox_id,))
            cursor.execute("DELETE FROM working_hours WHERE inbox_id = ?", (inbox_id,))
            cursor.execute(
                "DELETE FROM campaigns WHERE inbox_id = ? AND account_id = ?",
                (inbox_id, account_id),
            )
            connection.commit()
        return True

    def count_avatar_references(self, avatar_key: str) -> int:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT COUNT(*) FROM inboxes WHERE avatar_key = ?", (avatar_key,))
            row = cursor.fetchone()
        return int(row[0])

    def set_agent_bot(self, account_id: int, inbox_id: int, agent_bot_id: int | None) -> bool:
        """Summary: Point an inbox at a bot, or clear the pointer.

        Importance: A single UPDATE swaps the binding so readers see old or new, never neither.
        Alternatives: Keep a join table with one row per binding.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "UPDATE inboxes SET agent_bot_id = ? WHERE id = ? AND account_id = ?",
                (agent_bot_id, inbox_id, account_id),
            )
            updated = cursor.rowcount > 0
            connection.commit()
        return updated

    def is_member(self, inbox_id: int, user_id: int) -> bool:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT 1 FROM inbox_members WHERE inbox_id = ? AND user_id = ?",
                (inbox_id, user_id),
            )
            row = cursor.fetchone()
        return row is not None

    def add_members(self, inbox_id: int, user_ids: Iterable[int]) -> int:
        """Summary: Grant memberships, ignoring ones that already exist.

        Importance: Granting twice is a no-op rather than a conflict.
        Alternatives: Raise on duplicate memberships.
        """

        added = 0
        with self._connection() as connection:
            cursor = connection.cursor()
            for user_id in user_ids:
                cursor.execute(
                    "INSERT OR IGNORE INTO inbox_members (inbox_id, user_id) VALUES (?, ?)",
                    (inbox_id, user_id),
                )
                added += cursor.rowcount
            connection.commit()
        return added

    def remove_members(self, inbox_id: int, user_ids: Iterable[int]) -> int:
        removed = 0
        with self._connection() as connection:
            cursor = connection.cursor()
            for user_id in user_ids:
                cursor.execute(
                    "DELETE FROM inbox_members WHERE inbox_id = ? AND user_id = ?",
                    (inbox_id, user_id),
                )
                removed += cursor.rowcount
            connection.commit()
        return removed

    def replace_members(self, inbox_id: int, user_ids: Iterable[int]) -> None:
        """Summary: Replace the full member set of an inbox in one commit."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("DELETE FROM inbox_members WHERE inbox_id = ?", (inbox_id,))
            cursor.executemany(
                "INSERT OR IGNORE INTO inbox_members (inbox_id, user_id) VALUES (?, ?)",
                [(inbox_id, user_id) for user_id in user_ids],
            )
            connection.commit()

    def list_member_ids(self, inbox_id: int) -> set[int]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT user_id FROM inbox_members WHERE inbox_id = ?", (inbox_id,)
            )
            rows = cursor.fetchall()
        return {int(row[0]) for row in rows}

    def create_agent_bot(
        self,
        name: str,
        description: str | None = None,
        outgoing_url: str | None = None,
        account_id: int | None = None,
    ) -> AgentBot:
        """Summary: Create an agent bot, global when no account is given."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO agent_bots (name, description, outgoing_url, account_id)
                VALUES (?, ?, ?, ?)
                """,
                (name, description, outgoing_url, account_id),
            )
            bot_id = int(cursor.lastrowid)
            connection.commit()
        return AgentBot(
            id=bot_id,
            name=name,
            description=description,
            outgoing_url=outgoing_url,
            account_id=account_id,
        )

    def get_agent_bot(self, agent_bot_id: int) -> AgentBot | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT id, name, description, outgoing_url, account_id FROM agent_bots WHERE id = ?",
                (agent_bot_id,),
            )
            row = cursor.fetchone()
        return AgentBot(*row) if row else None

    def list_agent_bots(self, account_id: int) -> list[AgentBot]:
        """Summary: List global bots and bots owned by an account."""

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, name, description, outgoing_url, account_id
                FROM agent_bots
                WHERE account_id IS NULL OR account_id = ?
                ORDER BY id
                """,
                (account_id,),
            )
            rows = cursor.fetchall()
        return [AgentBot(*row) for row in rows]

    def create_campaign(
        self, account_id: int, inbox_id: int, title: str, message: str, enabled: bool = True
    ) -> Campaign:
        """Summary: Create a campaign with the next display ID of its account.

        Importance: Display IDs are sequential per account, independent of row IDs.
        Alternatives: Expose raw row IDs to clients.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "SELECT COALESCE(MAX(display_id), 0) + 1 FROM campaigns WHERE account_id = ?",
                (account_id,),
            )
            display_id = int(cursor.fetchone()[0])
            cursor.execute(
                """
                INSERT INTO campaigns (account_id, display_id, inbox_id, title, message, enabled)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (account_id, display_id, inbox_id, title, message, int(enabled)),
            )
            campaign_id = int(cursor.lastrowid)
            connection.commit()
        return Campaign(
            id=campaign_id,
            display_id=display_id,
            account_id=account_id,
            inbox_id=inbox_id,
            title=title,
            message=message,
            enabled=enabled,
        )

    def list_campaigns(self, account_id: int, inbox_id: int) -> list[Campaign]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, display_id, account_id, inbox_id, title, message, enabled
                FROM campaigns
                WHERE account_id = ? AND inbox_id = ?
                ORDER BY display_id
                """,
                (account_id, inbox_id),
            )
            rows = cursor.fetchall()
        return [Campaign(*row[:6], enabled=bool(row[6])) for row in rows]

    def create_api_key(
        self, user_id: int, token_hash: str, label: str | None, created_at: str
    ) -> int:
        """Summary: Persist an API key hash for a user.

        Importance: Enables per-user authentication without storing raw tokens.
        Alternatives: Store raw tokens in the database.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO api_keys (user_id, token_hash, label, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, token_hash, label, created_at),
            )
            key_id = cursor.lastrowid
            connection.commit()
        return int(key_id)

    def list_api_keys(self, user_id: int) -> list[StoredApiKey]:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                SELECT id, user_id, token_hash, label, created_at
                FROM api_keys
                WHERE user_id = ?
                ORDER BY id DESC
                """,
                (user_id,),
            )
            rows = cursor.fetchall()
        return [StoredApiKey(*row) for row in rows]

    def delete_api_key(self, user_id: int, key_id: int) -> bool:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                "DELETE FROM api_keys WHERE id = ? AND user_id = ?", (key_id, user_id)
            )
            deleted = cursor.rowcount > 0
            connection.commit()
        return deleted

    def get_user_id_by_api_key(self, token_hash: str) -> int | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT user_id FROM api_keys WHERE token_hash = ?", (token_hash,))
            row = cursor.fetchone()
        return int(row[0]) if row else None

    def _fetch_inbox(self, cursor: sqlite3.Cursor, account_id: int, inbox_id: int) -> Inbox | None:
        cursor.execute(
            f"SELECT {_INBOX_COLUMNS} FROM inboxes WHERE id = ? AND account_id = ?",
            (inbox_id, account_id),
        )
        row = cursor.fetchone()
        return self._row_to_inbox(cursor, row) if row else None

    def _row_to_inbox(self, cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> Inbox:
        cursor.execute(
            f"SELECT {_SCHEDULE_COLUMNS} FROM working_hours WHERE inbox_id = ? ORDER BY day_of_week",
            (row[0],),
        )
        schedule = tuple(
            WeeklyScheduleEntry(
                *entry[:5], closed_all_day=bool(entry[5]), open_all_day=bool(entry[6])
            )
            for entry in cursor.fetchall()
        )
        return Inbox(
            id=row[0],
            account_id=row[1],
            name=row[2],
            channel_type=row[3],
            channel_config=json.loads(row[4]),
            enable_auto_assignment=bool(row[5]),
            avatar_key=row[6],
            working_hours_enabled=bool(row[7]),
            out_of_office_message=row[8],
            timezone=row[9],
            agent_bot_id=row[10],
            weekly_schedule=schedule,
        )

    def _write_schedule(
        self, cursor: sqlite3.Cursor, inbox_id: int, schedule: Iterable[WeeklyScheduleEntry]
    ) -> None:
        cursor.executemany(
            f"""
            INSERT INTO working_hours (inbox_id, {_SCHEDULE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    inbox_id,
                    entry.day_of_week,
                    entry.open_hour,
                    entry.open_minutes,
                    entry.close_hour,
                    entry.close_minutes,
                    int(entry.closed_all_day),
                    int(entry.open_all_day),
                )
                for entry in schedule
            ],
        )

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Closing without commit rolls back, which keeps multi-row changes atomic.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def _to_column(column: str, value: Any) -> Any:
    if column == "channel_config":
        return json.dumps(value, sort_keys=True)
    if column in {"enable_auto_assignment", "working_hours_enabled"}:
        return int(bool(value))
    return value
