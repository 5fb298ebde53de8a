"""Summary: Command-line interface for InboxDesk.

Importance: Seeds accounts, users, keys, and bots, and runs the API server.
Alternatives: Build an admin web UI first.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime

from inboxdesk.app import AppServices, build_services
from inboxdesk.config import AppConfig
from inboxdesk.errors import InboxDeskError, NotFoundError, ValidationError
from inboxdesk.models import Role


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="InboxDesk CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    create_account = subparsers.add_parser("create-account", help="Create an account")
    create_account.add_argument("name", type=str)

    subparsers.add_parser("list-accounts", help="List accounts")

    create_user = subparsers.add_parser("create-user", help="Create a user")
    create_user.add_argument("display_name", type=str)
    create_user.add_argument("email", type=str)

    add_account_user = subparsers.add_parser(
        "add-account-user", help="Attach a user to an account with a role"
    )
    add_account_user.add_argument("account_id", type=int)
    add_account_user.add_argument("user_id", type=int)
    add_account_user.add_argument("role", choices=[role.value for role in Role])

    list_account_users = subparsers.add_parser(
        "list-account-users", help="List users of an account with their roles"
    )
    list_account_users.add_argument("account_id", type=int)

    create_api_key = subparsers.add_parser("create-api-key", help="Issue an API key for a user")
    create_api_key.add_argument("email", type=str)
    create_api_key.add_argument("--label", type=str, default=None)

    create_agent_bot = subparsers.add_parser("create-agent-bot", help="Register an agent bot")
    create_agent_bot.add_argument("name", type=str)
    create_agent_bot.add_argument("--description", type=str, default=None)
    create_agent_bot.add_argument("--outgoing-url", type=str, default=None)
    create_agent_bot.add_argument(
        "--account-id", type=int, default=None, help="Omit for a global bot"
    )

    list_agent_bots = subparsers.add_parser(
        "list-agent-bots", help="List bots usable from an account"
    )
    list_agent_bots.add_argument("account_id", type=int)

    create_campaign = subparsers.add_parser("create-campaign", help="Create a campaign")
    create_campaign.add_argument("account_id", type=int)
    create_campaign.add_argument("inbox_id", type=int)
    create_campaign.add_argument("title", type=str)
    create_campaign.add_argument("message", type=str)

    list_inboxes = subparsers.add_parser("list-inboxes", help="List inboxes visible to a user")
    list_inboxes.add_argument("account_id", type=int)
    list_inboxes.add_argument("user_id", type=int)

    grant_member = subparsers.add_parser("grant-member", help="Add a user to an inbox")
    grant_member.add_argument("account_id", type=int)
    grant_member.add_argument("inbox_id", type=int)
    grant_member.add_argument("user_id", type=int)

    revoke_member = subparsers.add_parser("revoke-member", help="Remove a user from an inbox")
    revoke_member.add_argument("account_id", type=int)
    revoke_member.add_argument("inbox_id", type=int)
    revoke_member.add_argument("user_id", type=int)

    set_hours = subparsers.add_parser(
        "set-working-hours", help="Replace the weekly schedule of an inbox"
    )
    set_hours.add_argument("account_id", type=int)
    set_hours.add_argument("inbox_id", type=int)
    set_hours.add_argument("entries", type=str, help="JSON list of schedule entries")
    set_hours.add_argument(
        "--disabled", action="store_true", help="Store the hours but keep the inbox always open"
    )
    set_hours.add_argument("--message", type=str, default=None, help="Out-of-office message")

    is_open = subparsers.add_parser("is-open", help="Check whether an inbox is open")
    is_open.add_argument("account_id", type=int)
    is_open.add_argument("inbox_id", type=int)
    is_open.add_argument("--at", type=datetime.fromisoformat, default=None)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    """Summary: Execute the CLI based on parsed arguments.

    Importance: Connects user commands to service workflows.
    Alternatives: Provide an interactive REPL or GUI.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        from inboxdesk.api import create_app

        uvicorn.run(
            create_app(config),
            host=args.host or config.api_host,
            port=args.port or config.api_port,
            log_level=config.log_level.lower(),
        )
        return 0

    services = build_services(config)
    try:
        _dispatch(args, services)
    except InboxDeskError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        return 1
    return 0


def _dispatch(args: argparse.Namespace, services: AppServices) -> None:
    if args.command == "init-db":
        print("Database initialized.")
        return

    if args.command == "create-account":
        account_id = services.accounts.create_account(args.name)
        print(f"Created account {account_id}.")
        return

    if args.command == "list-accounts":
        for account in services.accounts.list_accounts():
            print(f"{account.id}: {account.name}")
        return

    if args.command == "create-user":
        user_id = services.users.create_user(args.display_name, args.email)
        print(f"User {user_id}: {args.email}")
        return

    if args.command == "add-account-user":
        services.accounts.add_user(args.account_id, args.user_id, Role(args.role))
        print(f"User {args.user_id} is {args.role} of account {args.account_id}.")
        return

    if args.command == "list-account-users":
        for account_user in services.accounts.list_users(args.account_id):
            user = account_user.user
            print(f"{user.id}: {user.display_name} <{user.email}> {account_user.role.value}")
        return

    if args.command == "create-api-key":
        user = services.users.get_user_by_email(args.email)
        if user is None:
            raise NotFoundError(f"User {args.email} not found")
        key_id, token = services.api_keys.create_api_key(user.id, label=args.label)
        print(f"API key {key_id}: {token}")
        return

    if args.command == "create-agent-bot":
        bot = services.bots.register_bot(
            args.name,
            description=args.description,
            outgoing_url=args.outgoing_url,
            account_id=args.account_id,
        )
        print(f"Created agent bot {bot.id}.")
        return

    if args.command == "list-agent-bots":
        for bot in services.bots.list_bots(args.account_id):
            scope = "global" if bot.account_id is None else f"account {bot.account_id}"
            print(f"{bot.id}: {bot.name} ({scope})")
        return

    if args.command == "create-campaign":
        if services.store.get_inbox(args.account_id, args.inbox_id) is None:
            raise NotFoundError(f"Inbox {args.inbox_id} not found")
        campaign = services.store.create_campaign(
            args.account_id, args.inbox_id, args.title, args.message
        )
        print(f"Created campaign #{campaign.display_id}.")
        return

    if args.command == "list-inboxes":
        for inbox in services.inboxes.list_inboxes(args.user_id, args.account_id):
            bot = f" bot={inbox.agent_bot_id}" if inbox.agent_bot_id else ""
            print(f"{inbox.id}: {inbox.name} [{inbox.channel_type}]{bot}")
        return

    if args.command in {"grant-member", "revoke-member"}:
        if services.store.get_inbox(args.account_id, args.inbox_id) is None:
            raise NotFoundError(f"Inbox {args.inbox_id} not found")
        if args.command == "grant-member":
            services.roles.resolve(args.user_id, args.account_id)
            services.memberships.grant(args.inbox_id, args.user_id)
            print(f"User {args.user_id} added to inbox {args.inbox_id}.")
        else:
            services.memberships.revoke(args.inbox_id, args.user_id)
            print(f"User {args.user_id} removed from inbox {args.inbox_id}.")
        return

    if args.command == "set-working-hours":
        inbox = services.store.get_inbox(args.account_id, args.inbox_id)
        if inbox is None:
            raise NotFoundError(f"Inbox {args.inbox_id} not found")
        try:
            entries = json.loads(args.entries)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Schedule entries are not valid JSON: {exc}") from exc
        if not isinstance(entries, list):
            raise ValidationError("Schedule entries must be a JSON list")
        inbox = services.schedules.set_schedule(
            inbox, entries, enabled=not args.disabled, out_of_office_message=args.message
        )
        print(f"Inbox {inbox.id} has {len(inbox.weekly_schedule)} schedule entries.")
        return

    if args.command == "is-open":
        inbox = services.store.get_inbox(args.account_id, args.inbox_id)
        if inbox is None:
            raise NotFoundError(f"Inbox {args.inbox_id} not found")
        moment = args.at or datetime.now().astimezone()
        if services.schedules.is_open_at(inbox, moment):
            print(f"Inbox {inbox.id} is open at {moment.isoformat()}.")
        else:
            message = services.schedules.out_of_office_message_at(inbox, moment)
            print(f"Inbox {inbox.id} is closed at {moment.isoformat()}.")
            if message:
                print(message)
        return


if __name__ == "__main__":
    raise SystemExit(run_cli())
