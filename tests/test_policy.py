"""Summary: Tests for the inbox access policy table.

Importance: Each role and action combination is checked independently.
Alternatives: Cover permissions only through HTTP tests.
"""

from __future__ import annotations

import pytest

from inboxdesk.models import Role
from inboxdesk.policy import Action, DenyReason, decide


ADMIN_ONLY = [
    Action.CREATE_INBOX,
    Action.UPDATE_INBOX,
    Action.DELETE_INBOX,
    Action.SET_AGENT_BOT,
    Action.MANAGE_MEMBERS,
    Action.LIST_CAMPAIGNS,
]


@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("is_member", [True, False])
def test_administrator_is_allowed_everything(action: Action, is_member: bool) -> None:
    """Summary: Verify administrators pass every action regardless of membership.

    Importance: Administrators implicitly own every inbox of their account.
    Alternatives: Require administrators to hold memberships too.
    """

    assert decide(Role.ADMINISTRATOR, action, is_member).allowed


@pytest.mark.parametrize("action", [Action.READ_INBOX, Action.LIST_ASSIGNABLE_AGENTS])
def test_agent_reads_are_membership_gated(action: Action) -> None:
    """Summary: Verify agent reads depend on membership and hide the inbox otherwise.

    Importance: Non-members must see a missing inbox, not a permission error.
    Alternatives: Deny with a permission error.
    """

    assert decide(Role.AGENT, action, is_member=True).allowed
    denied = decide(Role.AGENT, action, is_member=False)
    assert not denied.allowed
    assert denied.reason is DenyReason.NOT_A_MEMBER


@pytest.mark.parametrize("action", ADMIN_ONLY)
@pytest.mark.parametrize("is_member", [True, False])
def test_agent_is_denied_admin_actions(action: Action, is_member: bool) -> None:
    """Summary: Verify agents cannot mutate inboxes or list campaigns, even as members."""

    decision = decide(Role.AGENT, action, is_member)
    assert not decision.allowed
    assert decision.reason is DenyReason.WRONG_ROLE


def test_agent_listing_is_a_filter_not_a_denial() -> None:
    assert decide(Role.AGENT, Action.LIST_INBOXES, is_member=False).allowed


def test_missing_role_is_unauthenticated() -> None:
    decision = decide(None, Action.READ_INBOX, is_member=True)
    assert not decision.allowed
    assert decision.reason is DenyReason.NOT_AUTHENTICATED
