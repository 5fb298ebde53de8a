"""Summary: Error kinds raised by InboxDesk services.

Importance: Lets the HTTP layer map outcomes to status codes in one place.
Alternatives: Raise HTTPException directly from services.
"""

from __future__ import annotations


class InboxDeskError(Exception):
    """Summary: Base class for domain errors."""


class AuthenticationError(InboxDeskError):
    """Summary: No actor could be resolved for the request."""


class UnauthorizedError(InboxDeskError):
    """Summary: The actor's role does not permit the action.

    Importance: Distinguishes a known but insufficient actor from a missing resource.
    Alternatives: Reuse a single generic permission error.
    """


class NotFoundError(InboxDeskError):
    """Summary: The resource is absent, in another account, or hidden from the actor.

    Importance: Keeps absent and hidden resources indistinguishable to callers.
    Alternatives: Return 403 for hidden resources and leak their existence.
    """


class ValidationError(InboxDeskError, ValueError):
    """Summary: Input failed validation and nothing was changed."""
