"""Summary: Tests for role resolution and inbox memberships.

Importance: Every authorization decision starts from these two lookups.
Alternatives: Cover them only through the inbox service tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from inboxdesk.errors import AuthenticationError, NotFoundError
from inboxdesk.models import Role, User
from inboxdesk.services import MembershipIndex, RoleResolver
from inboxdesk.storage.sqlite_store import SqliteStore


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(str(tmp_path / "test.db"))
    store.initialize()
    return store


def test_role_resolution_is_per_account(tmp_path: Path) -> None:
    """Summary: Verify a user's role is looked up within one account.

    Importance: The same user may administer one account and be an agent in another.
    Alternatives: Keep a single global role per user.
    """

    store = _store(tmp_path)
    first = store.create_account("Acme")
    second = store.create_account("Globex")
    third = store.create_account("Initech")
    user_id = store.ensure_user(User(display_name="Sam", email="sam@acme.test"))
    store.set_account_user(first, user_id, Role.ADMINISTRATOR)
    store.set_account_user(second, user_id, Role.AGENT)
    roles = RoleResolver(store=store)

    assert roles.resolve(user_id, first) is Role.ADMINISTRATOR
    assert roles.resolve(user_id, second) is Role.AGENT
    with pytest.raises(NotFoundError):
        roles.resolve(user_id, third)

    actor = roles.actor_for(user_id, second)
    assert actor.role is Role.AGENT
    assert actor.account_id == second
    assert actor.email == "sam@acme.test"


def test_actor_requires_authentication(tmp_path: Path) -> None:
    store = _store(tmp_path)
    account_id = store.create_account("Acme")
    with pytest.raises(AuthenticationError):
        RoleResolver(store=store).actor_for(None, account_id)


def test_grant_and_revoke_are_idempotent(tmp_path: Path) -> None:
    """Summary: Verify repeated grants and revokes leave one consistent state."""

    store = _store(tmp_path)
    account_id = store.create_account("Acme")
    user_id = store.ensure_user(User(display_name="Sam", email="sam@acme.test"))
    inbox = store.create_inbox(account_id, "Support", "api", {}, True, "UTC", ())
    memberships = MembershipIndex(store=store)

    memberships.grant(inbox.id, user_id)
    memberships.grant(inbox.id, user_id)
    assert memberships.is_member(inbox.id, user_id)
    assert memberships.list_members(inbox.id) == {user_id}

    memberships.revoke(inbox.id, user_id)
    memberships.revoke(inbox.id, user_id)
    assert not memberships.is_member(inbox.id, user_id)
    assert memberships.list_members(inbox.id) == set()


def test_replace_sets_exact_members(tmp_path: Path) -> None:
    store = _store(tmp_path)
    account_id = store.create_account("Acme")
    first = store.ensure_user(User(display_name="A", email="a@acme.test"))
    second = store.ensure_user(User(display_name="B", email="b@acme.test"))
    inbox = store.create_inbox(account_id, "Support", "api", {}, True, "UTC", ())
    memberships = MembershipIndex(store=store)
    memberships.grant(inbox.id, first)
    memberships.replace(inbox.id, [second])
    assert memberships.list_members(inbox.id) == {second}
