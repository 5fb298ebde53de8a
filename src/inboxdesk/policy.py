"""Summary: Access policy for inbox actions.

Importance: Encodes who may do what as one table so each rule is testable on its own.
Alternatives: Scatter role checks across controllers and services.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inboxdesk.models import Role


class Action(str, Enum):
    """Summary: Operations subject to authorization."""

    LIST_INBOXES = "list_inboxes"
    READ_INBOX = "read_inbox"
    LIST_ASSIGNABLE_AGENTS = "list_assignable_agents"
    CREATE_INBOX = "create_inbox"
    UPDATE_INBOX = "update_inbox"
    DELETE_INBOX = "delete_inbox"
    SET_AGENT_BOT = "set_agent_bot"
    MANAGE_MEMBERS = "manage_members"
    LIST_CAMPAIGNS = "list_campaigns"


class DenyReason(str, Enum):
    """Summary: Why an action was refused.

    Importance: The HTTP layer surfaces NOT_A_MEMBER as not-found, the rest as permission errors.
    Alternatives: Return a bare boolean and lose the distinction.
    """

    NOT_AUTHENTICATED = "not_authenticated"
    WRONG_ROLE = "wrong_role"
    NOT_A_MEMBER = "not_a_member"


@dataclass(frozen=True)
class Decision:
    """Summary: Outcome of an authorization check."""

    allowed: bool
    reason: DenyReason | None = None

    @staticmethod
    def allow() -> "Decision":
        return Decision(allowed=True)

    @staticmethod
    def deny(reason: DenyReason) -> "Decision":
        return Decision(allowed=False, reason=reason)


# Listing is a filter applied by the caller, so it is always allowed here.
_OPEN_ACTIONS = frozenset({Action.LIST_INBOXES})
_MEMBER_READ_ACTIONS = frozenset({Action.READ_INBOX, Action.LIST_ASSIGNABLE_AGENTS})
_ADMIN_ONLY_ACTIONS = frozenset(
    {
        Action.CREATE_INBOX,
        Action.UPDATE_INBOX,
        Action.DELETE_INBOX,
        Action.SET_AGENT_BOT,
        Action.MANAGE_MEMBERS,
        Action.LIST_CAMPAIGNS,
    }
)


def decide(role: Role | None, action: Action, is_member: bool) -> Decision:
    """Summary: Decide whether a role may perform an action on an inbox.

    Importance: Single source of truth for the role and membership rules.
    Alternatives: Use per-endpoint decorators with hardcoded roles.
    """

    if role is None:
        return Decision.deny(DenyReason.NOT_AUTHENTICATED)
    if role is Role.ADMINISTRATOR:
        return Decision.allow()
    if role is not Role.AGENT:
        raise ValueError(f"Unknown role: {role}")
    if action in _OPEN_ACTIONS:
        return Decision.allow()
    if action in _MEMBER_READ_ACTIONS:
        return Decision.allow() if is_member else Decision.deny(DenyReason.NOT_A_MEMBER)
    if action in _ADMIN_ONLY_ACTIONS:
        return Decision.deny(DenyReason.WRONG_ROLE)
    raise ValueError(f"Unhandled action: {action}")
