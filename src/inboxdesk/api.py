"""Summary: FastAPI application for InboxDesk.

Importance: Exposes the account-scoped inbox endpoints to UI clients and integrations.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from inboxdesk.app import build_services
from inboxdesk.config import AppConfig
from inboxdesk.errors import (
    AuthenticationError,
    InboxDeskError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from inboxdesk.models import AgentBot, AssignableAgent, Campaign, Inbox
from inboxdesk.services import AvatarUpload
from inboxdesk.storage.sqlite_store import StoredUser


logger = logging.getLogger(__name__)

ACCOUNT_PREFIX = "/api/v1/accounts/{account_id}"


class InboxCreateRequest(BaseModel):
    """Summary: Request payload for inbox creation.

    Importance: The channel object carries its type plus type-specific settings.
    Alternatives: Use a separate endpoint per channel type.
    """

    name: str
    channel: dict[str, Any]
    enable_auto_assignment: bool = True
    timezone: str | None = None


class WorkingHoursEntry(BaseModel):
    """Summary: One day of business hours in an update request."""

    day_of_week: int
    open_hour: int | None = None
    open_minutes: int | None = None
    close_hour: int | None = None
    close_minutes: int | None = None
    closed_all_day: bool = False
    open_all_day: bool = False


class AvatarPayload(BaseModel):
    """Summary: Base64-encoded avatar image.

    Importance: Keeps avatar uploads in the same JSON request as other inbox changes.
    Alternatives: Accept multipart form uploads.
    """

    content_type: str
    data: str


class InboxUpdateRequest(BaseModel):
    """Summary: Partial update payload for an inbox.

    Importance: Only fields sent by the client are applied.
    Alternatives: Require the full inbox representation on every update.
    """

    name: str | None = None
    enable_auto_assignment: bool | None = None
    channel: dict[str, Any] | None = None
    avatar: AvatarPayload | None = None
    working_hours: list[WorkingHoursEntry] | None = None
    working_hours_enabled: bool | None = None
    out_of_office_message: str | None = None
    timezone: str | None = None


class SetAgentBotRequest(BaseModel):
    """Summary: Request payload for binding an agent bot; null disconnects."""

    agent_bot: int | None = None


class InboxMembersRequest(BaseModel):
    """Summary: Request payload listing user IDs for membership changes."""

    user_ids: list[int] = Field(default_factory=list)


def inbox_payload(inbox: Inbox) -> dict[str, Any]:
    """Summary: Serialize an inbox for API responses."""

    return {
        "id": inbox.id,
        "account_id": inbox.account_id,
        "name": inbox.name,
        "channel_type": inbox.channel_type,
        "channel": {"type": inbox.channel_type, **inbox.channel_config},
        "enable_auto_assignment": inbox.enable_auto_assignment,
        "avatar_url": (
            f"{ACCOUNT_PREFIX.format(account_id=inbox.account_id)}/inboxes/{inbox.id}/avatar"
            if inbox.avatar_key
            else None
        ),
        "working_hours_enabled": inbox.working_hours_enabled,
        "out_of_office_message": inbox.out_of_office_message,
        "timezone": inbox.timezone,
        "agent_bot_id": inbox.agent_bot_id,
        "working_hours": [entry.as_dict() for entry in inbox.weekly_schedule],
    }


def agent_payload(agent: AssignableAgent) -> dict[str, Any]:
    return {
        "id": agent.user_id,
        "name": agent.display_name,
        "email": agent.email,
        "role": agent.role.value,
    }


def campaign_payload(campaign: Campaign) -> dict[str, Any]:
    return {
        "id": campaign.display_id,
        "title": campaign.title,
        "message": campaign.message,
        "inbox_id": campaign.inbox_id,
        "enabled": campaign.enabled,
    }


def agent_bot_payload(bot: AgentBot | None) -> dict[str, Any] | None:
    if bot is None:
        return None
    return {
        "id": bot.id,
        "name": bot.name,
        "description": bot.description,
        "outgoing_url": bot.outgoing_url,
        "account_id": bot.account_id,
    }


def user_payload(user: StoredUser) -> dict[str, Any]:
    return {"id": user.id, "name": user.display_name, "email": user.email}


def _error_response(request: Request, status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "status_code": status_code,
            "message": message,
            "path": request.url.path,
            **extra,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Summary: Map domain errors to HTTP responses.

    Importance: Services raise domain errors; status codes are decided here only.
    Alternatives: Raise HTTPException from inside services.
    """

    status_codes: dict[type[InboxDeskError], int] = {
        AuthenticationError: 401,
        UnauthorizedError: 401,
        NotFoundError: 404,
        ValidationError: 422,
    }

    async def domain_error_handler(request: Request, exc: InboxDeskError) -> JSONResponse:
        status_code = 500
        for error_type, code in status_codes.items():
            if isinstance(exc, error_type):
                status_code = code
                break
        if status_code == 500:
            logger.error("Unhandled domain error: %s", exc)
            return _error_response(request, 500, "Internal server error")
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, status_code, exc)
        return _error_response(request, status_code, str(exc))

    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
        return _error_response(request, exc.status_code, str(exc.detail))

    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("%s %s -> 422: %s", request.method, request.url.path, exc.errors())
        return _error_response(
            request, 422, "Validation error", details=jsonable_errors(exc.errors())
        )

    app.add_exception_handler(InboxDeskError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


def jsonable_errors(errors: Any) -> list[dict[str, Any]]:
    # Pydantic may embed exception objects under "ctx".
    return [
        {key: value for key, value in error.items() if key in {"loc", "msg", "type"}}
        for error in errors
    ]


def create_app(config: AppConfig) -> FastAPI:
    """Summary: Create a FastAPI app wired to InboxDesk services.

    Importance: Ensures the API layer shares the same configuration and storage.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=getattr(logging, config.log_level, logging.INFO),
            format="%(levelname)s %(name)s: %(message)s",
        )
    app = FastAPI(title="InboxDesk API", version="0.1.0")
    services = build_services(config)
    app.state.services = services
    register_error_handlers(app)

    def current_user_id(x_api_key: str | None = Header(default=None)) -> int:
        """Summary: Resolve the acting user from the X-Api-Key header.

        Importance: Unauthenticated requests stop here and never reach the services.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not x_api_key:
            raise HTTPException(status_code=401, detail="Authentication required")
        user_id = services.api_keys.resolve_user_id(x_api_key)
        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid API key")
        return user_id

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok"}

    @app.get(f"{ACCOUNT_PREFIX}/inboxes")
    def list_inboxes(account_id: int, user_id: int = Depends(current_user_id)) -> dict[str, Any]:
        """Summary: List inboxes visible to the caller.

        Importance: Administrators see every inbox; agents only their memberships.
        Alternatives: Return every inbox and filter on the client.
        """

        inboxes = services.inboxes.list_inboxes(user_id, account_id)
        return {"payload": [inbox_payload(inbox) for inbox in inboxes]}

    @app.post(f"{ACCOUNT_PREFIX}/inboxes")
    def create_inbox(
        account_id: int, payload: InboxCreateRequest, user_id: int = Depends(current_user_id)
    ) -> dict[str, Any]:
        inbox = services.inboxes.create_inbox(
            user_id,
            account_id,
            name=payload.name,
            channel=payload.channel,
            enable_auto_assignment=payload.enable_auto_assignment,
            timezone=payload.timezone,
        )
        return inbox_payload(inbox)

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}")
    def get_inbox(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> dict[str, Any]:
        return inbox_payload(services.inboxes.get_inbox(user_id, account_id, inbox_id))

    @app.patch(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}")
    def update_inbox(
        account_id: int,
        inbox_id: int,
        payload: InboxUpdateRequest,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        """Summary: Partially update an inbox.

        Importance: Unsent fields are untouched; explicit nulls clear nullable fields.
        Alternatives: Use PUT with full replacement semantics.
        """

        changes = payload.model_dump(exclude_unset=True)
        if "avatar" in payload.model_fields_set and payload.avatar is not None:
            changes["avatar"] = _decode_avatar(payload.avatar)
        inbox = services.inboxes.update_inbox(user_id, account_id, inbox_id, changes)
        return inbox_payload(inbox)

    @app.delete(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}")
    def delete_inbox(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> dict[str, str]:
        services.inboxes.delete_inbox(user_id, account_id, inbox_id)
        return {"status": "ok"}

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/avatar")
    def get_avatar(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> Response:
        """Summary: Serve the avatar image of an inbox the caller can read."""

        inbox = services.inboxes.get_inbox(user_id, account_id, inbox_id)
        data = services.avatars.load(inbox.avatar_key) if inbox.avatar_key else None
        if data is None:
            raise HTTPException(status_code=404, detail="Avatar not found")
        media_type = mimetypes.guess_type(inbox.avatar_key)[0] or "application/octet-stream"
        return Response(content=data, media_type=media_type)

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/assignable_agents")
    def assignable_agents(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> dict[str, Any]:
        """Summary: List inbox members together with account administrators."""

        agents = services.inboxes.get_assignable_agents(user_id, account_id, inbox_id)
        return {"payload": [agent_payload(agent) for agent in agents]}

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/campaigns")
    def list_campaigns(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> list[dict[str, Any]]:
        campaigns = services.inboxes.list_campaigns(user_id, account_id, inbox_id)
        return [campaign_payload(campaign) for campaign in campaigns]

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/agent_bot")
    def get_agent_bot(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> dict[str, Any]:
        bot = services.inboxes.get_agent_bot(user_id, account_id, inbox_id)
        return {"agent_bot": agent_bot_payload(bot)}

    @app.post(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/set_agent_bot")
    def set_agent_bot(
        account_id: int,
        inbox_id: int,
        payload: SetAgentBotRequest | None = None,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        """Summary: Bind or disconnect the inbox's agent bot.

        Importance: A missing or null agent_bot disconnects; an unknown one is a 404.
        Alternatives: Use separate connect and disconnect endpoints.
        """

        agent_bot_id = payload.agent_bot if payload else None
        inbox = services.inboxes.set_agent_bot(user_id, account_id, inbox_id, agent_bot_id)
        return inbox_payload(inbox)

    @app.get(f"{ACCOUNT_PREFIX}/inboxes/{{inbox_id}}/status")
    def inbox_status(
        account_id: int,
        inbox_id: int,
        at: datetime | None = None,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        """Summary: Report whether the inbox is open at a moment, defaulting to now."""

        moment = at or datetime.now(timezone.utc)
        is_open, message = services.inboxes.inbox_status(user_id, account_id, inbox_id, moment)
        return {"open": is_open, "out_of_office_message": message, "at": moment.isoformat()}

    @app.get(f"{ACCOUNT_PREFIX}/inbox_members/{{inbox_id}}")
    def list_inbox_members(
        account_id: int, inbox_id: int, user_id: int = Depends(current_user_id)
    ) -> dict[str, Any]:
        members = services.inboxes.list_members(user_id, account_id, inbox_id)
        return {"payload": [user_payload(member) for member in members]}

    @app.post(f"{ACCOUNT_PREFIX}/inbox_members/{{inbox_id}}")
    def add_inbox_members(
        account_id: int,
        inbox_id: int,
        payload: InboxMembersRequest,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        members = services.inboxes.add_members(user_id, account_id, inbox_id, payload.user_ids)
        return {"payload": [user_payload(member) for member in members]}

    @app.patch(f"{ACCOUNT_PREFIX}/inbox_members/{{inbox_id}}")
    def update_inbox_members(
        account_id: int,
        inbox_id: int,
        payload: InboxMembersRequest,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        members = services.inboxes.update_members(user_id, account_id, inbox_id, payload.user_ids)
        return {"payload": [user_payload(member) for member in members]}

    @app.delete(f"{ACCOUNT_PREFIX}/inbox_members/{{inbox_id}}")
    def remove_inbox_members(
        account_id: int,
        inbox_id: int,
        payload: InboxMembersRequest,
        user_id: int = Depends(current_user_id),
    ) -> dict[str, Any]:
        members = services.inboxes.remove_members(user_id, account_id, inbox_id, payload.user_ids)
        return {"payload": [user_payload(member) for member in members]}

    return app


def _decode_avatar(payload: AvatarPayload) -> AvatarUpload:
    try:
        data = base64.b64decode(payload.data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Avatar data must be base64 encoded") from exc
    return AvatarUpload(data=data, content_type=payload.content_type)
