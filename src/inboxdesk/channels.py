"""Summary: Channel configuration validation per channel type.

Importance: Ensures an inbox is never persisted with a malformed channel payload.
Alternatives: Accept any JSON and let channel integrations fail later.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from inboxdesk.errors import ValidationError


@dataclass(frozen=True)
class ChannelSpec:
    """Summary: Allowed keys for one channel type."""

    required: frozenset[str]
    optional: frozenset[str]

    @property
    def allowed(self) -> frozenset[str]:
        return self.required | self.optional


CHANNEL_SPECS: dict[str, ChannelSpec] = {
    "web_widget": ChannelSpec(
        required=frozenset({"website_url"}),
        optional=frozenset({"widget_color", "welcome_title", "welcome_tagline"}),
    ),
    "api": ChannelSpec(required=frozenset(), optional=frozenset({"webhook_url"})),
    "email": ChannelSpec(
        required=frozenset({"email"}),
        optional=frozenset({"forward_to_email"}),
    ),
}


def parse_channel(payload: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Summary: Split a create payload into channel type and validated config.

    Importance: Create requests carry the type inline with the settings.
    Alternatives: Require separate endpoints per channel type.
    """

    if not isinstance(payload, dict):
        raise ValidationError("Channel must be an object")
    channel_type = payload.get("type")
    if not channel_type:
        raise ValidationError("Channel type is required")
    config = {key: value for key, value in payload.items() if key != "type"}
    return channel_type, validate_channel_config(channel_type, config)


def merge_channel_config(
    channel_type: str, current: dict[str, Any], changes: dict[str, Any]
) -> dict[str, Any]:
    """Summary: Apply a partial channel update and validate the result.

    Importance: Lets clients change one setting without resending the rest.
    Alternatives: Require the full channel configuration on every update.
    """

    if not isinstance(changes, dict):
        raise ValidationError("Channel must be an object")
    requested_type = changes.get("type")
    if requested_type is not None and requested_type != channel_type:
        raise ValidationError("Channel type cannot be changed")
    merged = dict(current)
    for key, value in changes.items():
        if key == "type":
            continue
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return validate_channel_config(channel_type, merged)


def validate_channel_config(channel_type: str, config: dict[str, Any]) -> dict[str, Any]:
    """Summary: Validate a channel configuration for its type."""

    spec = CHANNEL_SPECS.get(channel_type)
    if spec is None:
        raise ValidationError(f"Unknown channel type: {channel_type}")
    unknown = set(config) - spec.allowed
    if unknown:
        raise ValidationError(
            f"Unknown {channel_type} settings: {', '.join(sorted(unknown))}"
        )
    missing = spec.required - set(config)
    if missing:
        raise ValidationError(
            f"Missing {channel_type} settings: {', '.join(sorted(missing))}"
        )
    for key, value in config.items():
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        if key in spec.required and not value.strip():
            raise ValidationError(f"{key} must not be empty")
    if channel_type == "email" and "@" not in config["email"]:
        raise ValidationError("email must be an email address")
    return dict(config)
