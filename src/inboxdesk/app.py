"""Summary: Application factory wiring core services.

Importance: Centralizes dependency creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from inboxdesk.avatars import LocalAvatarStorage
from inboxdesk.config import AppConfig
from inboxdesk.services import (
    AccountService,
    ApiKeyService,
    AuthorizationEngine,
    BotAssignmentService,
    InboxService,
    MembershipIndex,
    RoleResolver,
    ScheduleService,
    UserService,
)
from inboxdesk.storage.sqlite_store import SqliteStore


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for InboxDesk.

    Importance: Simplifies passing dependencies to the API and CLI layers.
    Alternatives: Use a dependency injection container.
    """

    inboxes: InboxService
    roles: RoleResolver
    memberships: MembershipIndex
    authorization: AuthorizationEngine
    schedules: ScheduleService
    bots: BotAssignmentService
    accounts: AccountService
    users: UserService
    api_keys: ApiKeyService
    avatars: LocalAvatarStorage
    store: SqliteStore


def build_services(config: AppConfig) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path for the application.
    Alternatives: Instantiate services directly within each entrypoint.
    """

    store = SqliteStore(config.db_path)
    store.initialize()
    avatars = LocalAvatarStorage(config.avatar_dir)
    roles = RoleResolver(store=store)
    memberships = MembershipIndex(store=store)
    authorization = AuthorizationEngine(memberships=memberships)
    schedules = ScheduleService(store=store)
    bots = BotAssignmentService(store=store)
    inboxes = InboxService(
        store=store,
        roles=roles,
        memberships=memberships,
        authorization=authorization,
        schedules=schedules,
        bots=bots,
        avatars=avatars,
        default_timezone=config.default_timezone,
    )
    return AppServices(
        inboxes=inboxes,
        roles=roles,
        memberships=memberships,
        authorization=authorization,
        schedules=schedules,
        bots=bots,
        accounts=AccountService(store=store),
        users=UserService(store=store),
        api_keys=ApiKeyService(store=store, token_secret=config.token_secret),
        avatars=avatars,
        store=store,
    )
