"""Summary: Local file storage for inbox avatars.

Importance: Keeps avatar bytes out of the database; inboxes store only a key.
Alternatives: Store images as BLOBs or upload them to object storage.
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
from pathlib import Path

from inboxdesk.errors import ValidationError


logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})
MAX_AVATAR_BYTES = 5 * 1024 * 1024


class LocalAvatarStorage:
    """Summary: Stores avatar files under a root directory.

    Importance: Provides a simple storage collaborator for local deployments.
    Alternatives: Use S3 or another blob store behind the same interface.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root)

    def save(self, data: bytes, content_type: str) -> str:
        """Summary: Persist avatar bytes and return their storage key.

        Importance: Content-addressed keys make re-uploads of the same file idempotent.
        Alternatives: Use random keys and track duplicates separately.
        """

        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Unsupported avatar type: {content_type}")
        if not data:
            raise ValidationError("Avatar is empty")
        if len(data) > MAX_AVATAR_BYTES:
            raise ValidationError("Avatar is too large")
        extension = mimetypes.guess_extension(content_type) or ".bin"
        key = f"{hashlib.sha256(data).hexdigest()}{extension}"
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._root / key
        if not path.exists():
            path.write_bytes(data)
        logger.info("Stored avatar %s.", key)
        return key

    def load(self, key: str) -> bytes | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            logger.info("Deleted avatar %s.", key)

    def exists(self, key: str) -> bool:
        return self._path_for(key).exists()

    def _path_for(self, key: str) -> Path:
        # Keys are generated by save(); anything with a path component is rejected.
        if Path(key).name != key:
            raise ValidationError(f"Invalid avatar key: {key}")
        return self._root / key
