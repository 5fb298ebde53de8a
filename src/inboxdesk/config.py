"""Summary: Application configuration for InboxDesk.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for storage and the API server.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    db_path: str
    avatar_dir: str
    api_host: str
    api_port: int
    token_secret: str
    log_level: str = "INFO"
    default_timezone: str = "UTC"

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            db_path=os.getenv("INBOXDESK_DB_PATH", defaults["db_path"]),
            avatar_dir=os.getenv("INBOXDESK_AVATAR_DIR", defaults["avatar_dir"]),
            api_host=os.getenv("INBOXDESK_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("INBOXDESK_API_PORT", defaults["api_port"])),
            token_secret=os.getenv("INBOXDESK_TOKEN_SECRET", defaults["token_secret"]),
            log_level=os.getenv("INBOXDESK_LOG_LEVEL", defaults["log_level"]).upper(),
            default_timezone=os.getenv(
                "INBOXDESK_DEFAULT_TIMEZONE", defaults["default_timezone"]
            ),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
