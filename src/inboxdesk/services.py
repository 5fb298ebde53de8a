"""Summary: Core application services for InboxDesk.

Importance: Resolves roles and memberships, enforces the access policy, and
orchestrates inbox, schedule, and bot changes on top of storage.
Alternatives: Build a full service layer with dependency injection framework.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Iterable

from inboxdesk import schedule as schedule_rules
from inboxdesk.avatars import LocalAvatarStorage
from inboxdesk.channels import merge_channel_config, parse_channel
from inboxdesk.errors import (
    AuthenticationError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from inboxdesk.models import (
    Account,
    Actor,
    AgentBot,
    AssignableAgent,
    Campaign,
    Inbox,
    Role,
    User,
    WeeklyScheduleEntry,
)
from inboxdesk.policy import Action, Decision, DenyReason, decide
from inboxdesk.storage.sqlite_store import (
    SqliteStore,
    StoredAccountUser,
    StoredApiKey,
    StoredUser,
)


logger = logging.getLogger(__name__)

_UPDATE_FIELDS = frozenset(
    {
        "name",
        "enable_auto_assignment",
        "channel",
        "avatar",
        "working_hours",
        "working_hours_enabled",
        "out_of_office_message",
        "timezone",
    }
)
_NULLABLE_UPDATE_FIELDS = frozenset({"avatar", "out_of_office_message"})


@dataclass(frozen=True)
class AvatarUpload:
    """Summary: Avatar bytes submitted with an inbox update."""

    data: bytes
    content_type: str


@dataclass(frozen=True)
class UserService:
    """Summary: Manages user records for multi-user workflows.

    Importance: Provides user creation and lookup for per-user auth.
    Alternatives: Use an external identity provider.
    """

    store: SqliteStore

    def create_user(self, display_name: str, email: str) -> int:
        """Summary: Create or ensure a user exists.

        Importance: Allows onboarding multiple users without a schema rewrite.
        Alternatives: Keep a single hardcoded user.
        """

        if "@" not in email:
            raise ValidationError(f"Invalid email: {email}")
        user_id = self.store.ensure_user(User(display_name=display_name, email=email))
        logger.info("Ensured user %s (%s).", user_id, email)
        return user_id

    def get_user_by_email(self, email: str) -> StoredUser | None:
        return self.store.get_user_by_email(email)


@dataclass(frozen=True)
class AccountService:
    """Summary: Manages accounts and the roles users hold in them.

    Importance: Accounts are the isolation boundary for every inbox rule.
    Alternatives: Derive accounts from email domains.
    """

    store: SqliteStore

    def create_account(self, name: str) -> int:
        if not name.strip():
            raise ValidationError("Account name must not be empty")
        account_id = self.store.create_account(name.strip())
        logger.info("Created account %s.", account_id)
        return account_id

    def add_user(self, account_id: int, user_id: int, role: Role) -> None:
        """Summary: Attach a user to an account with a role.

        Importance: Without this record the user cannot act in the account at all.
        Alternatives: Invite users by email and attach on first login.
        """

        if self.store.get_account(account_id) is None:
            raise NotFoundError(f"Account {account_id} not found")
        if self.store.get_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        self.store.set_account_user(account_id, user_id, role)
        logger.info("Added user %s to account %s as %s.", user_id, account_id, role.value)

    def list_accounts(self) -> list[Account]:
        return self.store.list_accounts()

    def list_users(self, account_id: int) -> list[StoredAccountUser]:
        return self.store.list_account_users(account_id)


@dataclass(frozen=True)
class ApiKeyService:
    """Summary: Issues and verifies API keys for users.

    Importance: Enables per-user API authentication tokens.
    Alternatives: Use OAuth or an external auth service.
    """

    store: SqliteStore
    token_secret: str

    def create_api_key(self, user_id: int, label: str | None = None) -> tuple[int, str]:
        """Summary: Create a new API key for a user.

        Importance: Returns a one-time plaintext token for client storage.
        Alternatives: Store raw tokens in the database.
        """

        raw_token = secrets.token_urlsafe(32)
        token_hash = self._hash_token(raw_token)
        key_id = self.store.create_api_key(
            user_id=user_id,
            token_hash=token_hash,
            label=label,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info("Created API key %s for user %s.", key_id, user_id)
        return key_id, raw_token

    def revoke_api_key(self, user_id: int, key_id: int) -> bool:
        """Summary: Revoke an API key for a user.

        Importance: Allows invalidating compromised keys.
        Alternatives: Rotate keys by issuing replacements only.
        """

        return self.store.delete_api_key(user_id, key_id)

    def list_api_keys(self, user_id: int) -> list[StoredApiKey]:
        return self.store.list_api_keys(user_id)

    def resolve_user_id(self, token: str) -> int | None:
        """Summary: Resolve a user ID from an API key.

        Importance: Supports per-user API authentication.
        Alternatives: Validate tokens with an external service.
        """

        token_hash = self._hash_token(token)
        return self.store.get_user_id_by_api_key(token_hash)

    def _hash_token(self, token: str) -> str:
        """Summary: Hash an API token with a secret salt.

        Importance: Avoids storing raw API keys in the database.
        Alternatives: Use an HSM or external secrets manager.
        """

        salt = self.token_secret or "inboxdesk"
        digest = hashlib.sha256(f"{salt}:{token}".encode("utf-8")).hexdigest()
        return digest


@dataclass(frozen=True)
class RoleResolver:
    """Summary: Resolves the role a user holds within an account.

    Importance: Accounts are isolated; a user outside the account resolves to nothing.
    Alternatives: Store a single global role per user.
    """

    store: SqliteStore

    def resolve(self, user_id: int, account_id: int) -> Role:
        role = self.store.get_account_role(account_id, user_id)
        if role is None:
            raise NotFoundError(f"Account {account_id} not found")
        return role

    def actor_for(self, user_id: int | None, account_id: int) -> Actor:
        """Summary: Build the acting identity for a request.

        Importance: Every service call starts here, before any resource lookup.
        Alternatives: Pass raw user IDs through to each check.
        """

        if user_id is None:
            raise AuthenticationError("Authentication required")
        role = self.resolve(user_id, account_id)
        user = self.store.get_user(user_id)
        return Actor(
            user_id=user_id,
            account_id=account_id,
            role=role,
            display_name=user.display_name if user else "",
            email=user.email if user else "",
        )


@dataclass(frozen=True)
class MembershipIndex:
    """Summary: Tracks which agents may act on which inbox.

    Importance: Foundation for every agent-scoped decision.
    Alternatives: Store allowed inbox IDs on the user record.
    """

    store: SqliteStore

    def is_member(self, inbox_id: int, user_id: int) -> bool:
        return self.store.is_member(inbox_id, user_id)

    def grant(self, inbox_id: int, user_id: int) -> None:
        """Summary: Grant a membership; granting an existing one is a no-op."""

        if self.store.add_members(inbox_id, [user_id]):
            logger.info("Granted inbox %s to user %s.", inbox_id, user_id)

    def revoke(self, inbox_id: int, user_id: int) -> None:
        """Summary: Revoke a membership; revoking a missing one is a no-op."""

        if self.store.remove_members(inbox_id, [user_id]):
            logger.info("Revoked inbox %s from user %s.", inbox_id, user_id)

    def replace(self, inbox_id: int, user_ids: Iterable[int]) -> None:
        self.store.replace_members(inbox_id, user_ids)
        logger.info("Replaced members of inbox %s.", inbox_id)

    def list_members(self, inbox_id: int) -> set[int]:
        return self.store.list_member_ids(inbox_id)


@dataclass(frozen=True)
class AuthorizationEngine:
    """Summary: Applies the access policy to an actor, inbox, and action.

    Importance: Keeps the policy table pure while membership lookups stay here.
    Alternatives: Evaluate permissions inside each endpoint.
    """

    memberships: MembershipIndex

    def authorize(
        self, actor: Actor | None, account_id: int, inbox: Inbox | None, action: Action
    ) -> Decision:
        """Summary: Decide whether an actor may perform an action.

        Importance: Returns a decision with a reason rather than raising, so callers can filter lists.
        Alternatives: Raise immediately and lose the reason.
        """

        if actor is None:
            return Decision.deny(DenyReason.NOT_AUTHENTICATED)
        if actor.account_id != account_id:
            return Decision.deny(DenyReason.NOT_A_MEMBER)
        if inbox is not None and inbox.account_id != account_id:
            return Decision.deny(DenyReason.NOT_A_MEMBER)
        is_member = False
        if inbox is not None and actor.role is Role.AGENT:
            is_member = self.memberships.is_member(inbox.id, actor.user_id)
        return decide(actor.role, action, is_member)

    def enforce(
        self, actor: Actor | None, account_id: int, inbox: Inbox | None, action: Action
    ) -> None:
        """Summary: Raise the matching error when an action is denied."""

        decision = self.authorize(actor, account_id, inbox, action)
        if decision.allowed:
            return
        if decision.reason is DenyReason.NOT_AUTHENTICATED:
            raise AuthenticationError("Authentication required")
        if decision.reason is DenyReason.NOT_A_MEMBER:
            raise NotFoundError(f"Inbox {inbox.id} not found" if inbox else "Not found")
        raise UnauthorizedError(f"Not allowed to {action.value.replace('_', ' ')}")


@dataclass(frozen=True)
class ScheduleService:
    """Summary: Replaces an inbox's weekly schedule and answers open/closed queries.

    Importance: Validation runs over the whole set before anything is written.
    Alternatives: Upsert each day independently.
    """

    store: SqliteStore

    def set_schedule(
        self,
        inbox: Inbox,
        entries: Iterable[WeeklyScheduleEntry | dict[str, Any]],
        enabled: bool,
        out_of_office_message: str | None,
    ) -> Inbox:
        """Summary: Replace the schedule, its enabled flag, and the out-of-office message.

        Importance: Nothing is written unless the whole entry set is valid.
        Alternatives: Write each day as it validates.
        """

        fields, validated = self.validate_changes(
            {
                "working_hours": list(entries),
                "working_hours_enabled": enabled,
                "out_of_office_message": out_of_office_message,
            }
        )
        updated = self.store.update_inbox(inbox.account_id, inbox.id, fields, schedule=validated)
        if updated is None:
            raise NotFoundError(f"Inbox {inbox.id} not found")
        logger.info("Replaced schedule of inbox %s with %s entries.", inbox.id, len(validated))
        return updated

    def validate_changes(
        self, changes: dict[str, Any]
    ) -> tuple[dict[str, Any], tuple[WeeklyScheduleEntry, ...] | None]:
        """Summary: Validate the schedule keys of an inbox update.

        Importance: Shared by full schedule replaces and partial inbox updates.
        Alternatives: Validate schedule fields separately in each caller.
        """

        fields: dict[str, Any] = {}
        if "working_hours_enabled" in changes:
            fields["working_hours_enabled"] = _require_bool(
                "working_hours_enabled", changes["working_hours_enabled"]
            )
        if "out_of_office_message" in changes:
            message = changes["out_of_office_message"]
            if message is not None and not isinstance(message, str):
                raise ValidationError("out_of_office_message must be a string")
            fields["out_of_office_message"] = message
        schedule = None
        if "working_hours" in changes:
            if not isinstance(changes["working_hours"], (list, tuple)):
                raise ValidationError("working_hours must be a list")
            schedule = schedule_rules.validate_schedule(changes["working_hours"])
        return fields, schedule

    def is_open_at(self, inbox: Inbox, timestamp: datetime) -> bool:
        return schedule_rules.is_open_at(inbox, timestamp)

    def out_of_office_message_at(self, inbox: Inbox, timestamp: datetime) -> str | None:
        return schedule_rules.out_of_office_message_at(inbox, timestamp)


@dataclass(frozen=True)
class BotAssignmentService:
    """Summary: Binds and unbinds agent bots on inboxes.

    Importance: The binding is a current-state pointer; clearing it never deletes the bot.
    Alternatives: Keep a history table of bot assignments.
    """

    store: SqliteStore

    def register_bot(
        self,
        name: str,
        description: str | None = None,
        outgoing_url: str | None = None,
        account_id: int | None = None,
    ) -> AgentBot:
        if not name.strip():
            raise ValidationError("Agent bot name must not be empty")
        bot = self.store.create_agent_bot(name.strip(), description, outgoing_url, account_id)
        logger.info("Registered agent bot %s.", bot.id)
        return bot

    def list_bots(self, account_id: int) -> list[AgentBot]:
        return self.store.list_agent_bots(account_id)

    def resolve_bot(self, account_id: int, agent_bot_id: int) -> AgentBot:
        """Summary: Find a bot usable from an account.

        Importance: Bots owned by other accounts are reported as missing.
        Alternatives: Allow any bot to be bound anywhere.
        """

        bot = self.store.get_agent_bot(agent_bot_id)
        if bot is None or (bot.account_id is not None and bot.account_id != account_id):
            raise NotFoundError(f"Agent bot {agent_bot_id} not found")
        return bot

    def set_bot(self, inbox: Inbox, agent_bot_id: int | None) -> Inbox:
        """Summary: Bind a bot, or disconnect when no bot is given.

        Importance: An unknown bot fails before the binding is touched.
        Alternatives: Silently clear the binding on unknown bots.
        """

        if agent_bot_id is not None:
            self.resolve_bot(inbox.account_id, agent_bot_id)
        if not self.store.set_agent_bot(inbox.account_id, inbox.id, agent_bot_id):
            raise NotFoundError(f"Inbox {inbox.id} not found")
        if agent_bot_id is None:
            logger.info("Disconnected agent bot from inbox %s.", inbox.id)
        else:
            logger.info("Bound agent bot %s to inbox %s.", agent_bot_id, inbox.id)
        updated = self.store.get_inbox(inbox.account_id, inbox.id)
        if updated is None:
            raise NotFoundError(f"Inbox {inbox.id} not found")
        return updated

    def current_bot(self, inbox: Inbox) -> AgentBot | None:
        if inbox.agent_bot_id is None:
            return None
        return self.store.get_agent_bot(inbox.agent_bot_id)


@dataclass(frozen=True)
class InboxService:
    """Summary: Serves inbox reads and mutations for an acting user.

    Importance: Resolves the inbox inside the request's account before any
    policy check, so foreign inboxes always look absent.
    Alternatives: Let each HTTP handler combine lookups and checks itself.
    """

    store: SqliteStore
    roles: RoleResolver
    memberships: MembershipIndex
    authorization: AuthorizationEngine
    schedules: ScheduleService
    bots: BotAssignmentService
    avatars: LocalAvatarStorage
    default_timezone: str = "UTC"

    def list_inboxes(self, user_id: int | None, account_id: int) -> list[Inbox]:
        """Summary: List the inboxes an actor can see.

        Importance: Agents without memberships get an empty list, not an error.
        Alternatives: Deny the whole listing for agents.
        """

        actor = self.roles.actor_for(user_id, account_id)
        self.authorization.enforce(actor, account_id, None, Action.LIST_INBOXES)
        if actor.role is Role.ADMINISTRATOR:
            return self.store.list_inboxes(account_id)
        return self.store.list_inboxes(account_id, member_user_id=actor.user_id)

    def get_inbox(self, user_id: int | None, account_id: int, inbox_id: int) -> Inbox:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.READ_INBOX)
        return inbox

    def get_assignable_agents(
        self, user_id: int | None, account_id: int, inbox_id: int
    ) -> list[AssignableAgent]:
        """Summary: List inbox members plus every administrator of the account.

        Importance: Feeds conversation assignment pickers.
        Alternatives: List only explicit members.
        """

        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.LIST_ASSIGNABLE_AGENTS)
        member_ids = self.memberships.list_members(inbox.id)
        return [
            AssignableAgent(
                user_id=account_user.user.id,
                display_name=account_user.user.display_name,
                email=account_user.user.email,
                role=account_user.role,
            )
            for account_user in self.store.list_account_users(account_id)
            if account_user.role is Role.ADMINISTRATOR or account_user.user.id in member_ids
        ]

    def list_campaigns(self, user_id: int | None, account_id: int, inbox_id: int) -> list[Campaign]:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.LIST_CAMPAIGNS)
        return self.store.list_campaigns(account_id, inbox.id)

    def create_inbox(
        self,
        user_id: int | None,
        account_id: int,
        name: str,
        channel: dict[str, Any],
        enable_auto_assignment: bool = True,
        timezone: str | None = None,
    ) -> Inbox:
        """Summary: Create an inbox after validating its channel payload.

        Importance: A malformed channel never reaches storage.
        Alternatives: Persist first and validate asynchronously.
        """

        actor = self.roles.actor_for(user_id, account_id)
        self.authorization.enforce(actor, account_id, None, Action.CREATE_INBOX)
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Inbox name must not be empty")
        channel_type, channel_config = parse_channel(channel)
        zone = schedule_rules.validate_timezone(timezone or self.default_timezone)
        inbox = self.store.create_inbox(
            account_id=account_id,
            name=name.strip(),
            channel_type=channel_type,
            channel_config=channel_config,
            enable_auto_assignment=enable_auto_assignment,
            timezone=zone,
            schedule=schedule_rules.default_schedule(),
        )
        logger.info("Created %s inbox %s in account %s.", channel_type, inbox.id, account_id)
        return inbox

    def update_inbox(
        self, user_id: int | None, account_id: int, inbox_id: int, changes: dict[str, Any]
    ) -> Inbox:
        """Summary: Apply a partial update to an inbox.

        Importance: Only fields present in the request change; everything is
        validated before the first write so a rejected request changes nothing.
        Alternatives: Require full replacement of the inbox on every update.
        """

        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.UPDATE_INBOX)
        fields, schedule = self._prepare_update(inbox, changes)

        new_avatar_key: str | None = None
        if "avatar" in changes and changes["avatar"] is not None:
            upload = changes["avatar"]
            if not isinstance(upload, AvatarUpload):
                raise ValidationError("Avatar must be an uploaded image")
            new_avatar_key = self.avatars.save(upload.data, upload.content_type)
            fields["avatar_key"] = new_avatar_key
        elif "avatar" in changes:
            fields["avatar_key"] = None

        try:
            updated = self.store.update_inbox(account_id, inbox.id, fields, schedule=schedule)
            if updated is None:
                raise NotFoundError(f"Inbox {inbox_id} not found")
        except Exception:
            if new_avatar_key and new_avatar_key != inbox.avatar_key:
                self._release_avatar(new_avatar_key)
            raise
        if "avatar_key" in fields and inbox.avatar_key and inbox.avatar_key != updated.avatar_key:
            self._release_avatar(inbox.avatar_key)
        logger.info("Updated inbox %s (%s).", inbox.id, ", ".join(sorted(changes)) or "no fields")
        return updated

    def delete_inbox(self, user_id: int | None, account_id: int, inbox_id: int) -> None:
        """Summary: Delete an inbox with its memberships, schedule, and campaigns."""

        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.DELETE_INBOX)
        if not self.store.delete_inbox(account_id, inbox.id):
            raise NotFoundError(f"Inbox {inbox_id} not found")
        if inbox.avatar_key:
            self._release_avatar(inbox.avatar_key)
        logger.info("Deleted inbox %s from account %s.", inbox.id, account_id)

    def set_agent_bot(
        self, user_id: int | None, account_id: int, inbox_id: int, agent_bot_id: int | None
    ) -> Inbox:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.SET_AGENT_BOT)
        return self.bots.set_bot(inbox, agent_bot_id)

    def get_agent_bot(self, user_id: int | None, account_id: int, inbox_id: int) -> AgentBot | None:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.READ_INBOX)
        return self.bots.current_bot(inbox)

    def inbox_status(
        self, user_id: int | None, account_id: int, inbox_id: int, at: datetime
    ) -> tuple[bool, str | None]:
        """Summary: Report open status and any out-of-office message at a moment."""

        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.READ_INBOX)
        return self.schedules.is_open_at(inbox, at), self.schedules.out_of_office_message_at(inbox, at)

    def list_members(self, user_id: int | None, account_id: int, inbox_id: int) -> list[StoredUser]:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.READ_INBOX)
        member_ids = self.memberships.list_members(inbox.id)
        return [
            account_user.user
            for account_user in self.store.list_account_users(account_id)
            if account_user.user.id in member_ids
        ]

    def add_members(
        self, user_id: int | None, account_id: int, inbox_id: int, member_ids: Iterable[int]
    ) -> list[StoredUser]:
        inbox, member_ids = self._prepare_members(user_id, account_id, inbox_id, member_ids)
        for member_id in member_ids:
            self.memberships.grant(inbox.id, member_id)
        return self.list_members(user_id, account_id, inbox_id)

    def remove_members(
        self, user_id: int | None, account_id: int, inbox_id: int, member_ids: Iterable[int]
    ) -> list[StoredUser]:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.MANAGE_MEMBERS)
        for member_id in member_ids:
            self.memberships.revoke(inbox.id, member_id)
        return self.list_members(user_id, account_id, inbox_id)

    def update_members(
        self, user_id: int | None, account_id: int, inbox_id: int, member_ids: Iterable[int]
    ) -> list[StoredUser]:
        """Summary: Replace the member set of an inbox with exactly the given users."""

        inbox, member_ids = self._prepare_members(user_id, account_id, inbox_id, member_ids)
        self.memberships.replace(inbox.id, member_ids)
        return self.list_members(user_id, account_id, inbox_id)

    def _load(self, user_id: int | None, account_id: int, inbox_id: int) -> tuple[Actor, Inbox]:
        actor = self.roles.actor_for(user_id, account_id)
        inbox = self.store.get_inbox(account_id, inbox_id)
        if inbox is None:
            raise NotFoundError(f"Inbox {inbox_id} not found")
        return actor, inbox

    def _prepare_members(
        self, user_id: int | None, account_id: int, inbox_id: int, member_ids: Iterable[int]
    ) -> tuple[Inbox, list[int]]:
        actor, inbox = self._load(user_id, account_id, inbox_id)
        self.authorization.enforce(actor, account_id, inbox, Action.MANAGE_MEMBERS)
        unique_ids = sorted(set(member_ids))
        account_user_ids = {
            account_user.user.id for account_user in self.store.list_account_users(account_id)
        }
        outsiders = [member_id for member_id in unique_ids if member_id not in account_user_ids]
        if outsiders:
            raise ValidationError(
                f"Users not in this account: {', '.join(str(item) for item in outsiders)}"
            )
        return inbox, unique_ids

    def _prepare_update(
        self, inbox: Inbox, changes: dict[str, Any]
    ) -> tuple[dict[str, Any], tuple[WeeklyScheduleEntry, ...] | None]:
        unknown = set(changes) - _UPDATE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown inbox fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            if value is None and key not in _NULLABLE_UPDATE_FIELDS:
                raise ValidationError(f"{key} cannot be null")

        fields: dict[str, Any] = {}
        if "name" in changes:
            name = changes["name"]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Inbox name must not be empty")
            fields["name"] = name.strip()
        if "enable_auto_assignment" in changes:
            fields["enable_auto_assignment"] = _require_bool(
                "enable_auto_assignment", changes["enable_auto_assignment"]
            )
        if "channel" in changes:
            fields["channel_config"] = merge_channel_config(
                inbox.channel_type, inbox.channel_config, changes["channel"]
            )
        if "timezone" in changes:
            fields["timezone"] = schedule_rules.validate_timezone(changes["timezone"])
        schedule_fields, schedule = self.schedules.validate_changes(changes)
        fields.update(schedule_fields)
        return fields, schedule

    def _release_avatar(self, avatar_key: str) -> None:
        # Keys are content-addressed, so another inbox may share the file.
        if self.store.count_avatar_references(avatar_key) == 0:
            self.avatars.delete(avatar_key)


def _require_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean")
    return value
