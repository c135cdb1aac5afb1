"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

REDACTED = "***"


def _csv(value: str) -> list[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Data
    store_path: Optional[str] = field(default_factory=lambda: os.getenv("STORE_PATH") or None)

    # Images
    object_store_root: str = field(
        default_factory=lambda: os.getenv("OBJECT_STORE_ROOT", "./data/objects")
    )
    object_store_base_url: str = field(
        default_factory=lambda: os.getenv("OBJECT_STORE_BASE_URL", "/files")
    )
    max_image_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))
    )

    # Sessions
    session_secret: Optional[str] = field(default_factory=lambda: os.getenv("SESSION_SECRET") or None)
    session_duration_hours: int = field(
        default_factory=lambda: int(os.getenv("SESSION_DURATION_HOURS", "8"))
    )
    owner_emails: list[str] = field(default_factory=lambda: _csv(os.getenv("OWNER_EMAILS", "")))
    owner_password_hash: Optional[str] = field(
        default_factory=lambda: os.getenv("OWNER_PASSWORD_HASH") or None
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary, with secrets redacted."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "store_path": self.store_path,
            "object_store_root": self.object_store_root,
            "object_store_base_url": self.object_store_base_url,
            "max_image_bytes": self.max_image_bytes,
            "session_secret": REDACTED if self.session_secret else None,
            "session_duration_hours": self.session_duration_hours,
            "owner_emails": list(self.owner_emails),
            "owner_password_hash": REDACTED if self.owner_password_hash else None,
        }
