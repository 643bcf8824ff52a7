"""
Configuration management for the moderation bot.
Loads environment variables and provides configuration settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from commands.interaction_router import SyncPolicy
from utils.validation import ValidationUtils

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

TRUE_VALUES = ("1", "true", "yes", "on")


class ConfigError(ValueError):
    """Configuration is missing or malformed."""


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a whole number, got {raw!r}") from None


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in TRUE_VALUES


@dataclass(frozen=True)
class Config:
    """Bot configuration settings."""

    # Discord
    DISCORD_TOKEN: str

    # Guilds that receive the slash command set
    GUILD_IDS: Tuple[int, ...] = ()

    # Moderation
    BAN_DELETE_MESSAGE_DAYS: int = 0

    # Command registration
    COMMAND_SYNC_POLICY: SyncPolicy = SyncPolicy.RETRY
    COMMAND_SYNC_ATTEMPTS: int = 3
    COMMAND_SYNC_RETRY_DELAY: float = 5.0

    # Web Server (keep-alive / health)
    KEEP_ALIVE: bool = False
    PORT: int = 11186
    HOST: str = "0.0.0.0"

    # Debug
    DEBUG: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ConfigError: if a value cannot be parsed
        """
        env = os.environ if environ is None else environ

        guild_ids = ValidationUtils.parse_guild_ids(env.get("GUILD_IDS", ""))
        if not guild_ids:
            raise ConfigError(f"GUILD_IDS: {guild_ids.error}")

        raw_policy = env.get("COMMAND_SYNC_POLICY", SyncPolicy.RETRY.value).strip().lower()
        try:
            policy = SyncPolicy(raw_policy)
        except ValueError:
            valid = ", ".join(p.value for p in SyncPolicy)
            raise ConfigError(f"COMMAND_SYNC_POLICY must be one of {valid}, got {raw_policy!r}") from None

        return cls(
            DISCORD_TOKEN=env.get("DISCORD_TOKEN", "").strip(),
            GUILD_IDS=guild_ids.value,
            BAN_DELETE_MESSAGE_DAYS=_get_int(env, "BAN_DELETE_MESSAGE_DAYS", 0),
            COMMAND_SYNC_POLICY=policy,
            COMMAND_SYNC_ATTEMPTS=_get_int(env, "COMMAND_SYNC_ATTEMPTS", 3),
            COMMAND_SYNC_RETRY_DELAY=_get_float(env, "COMMAND_SYNC_RETRY_DELAY", 5.0),
            KEEP_ALIVE=_get_bool(env, "KEEP_ALIVE", False),
            PORT=_get_int(env, "PORT", 11186),
            HOST=env.get("HOST", "0.0.0.0"),
            DEBUG=_get_bool(env, "DEBUG", False),
        )

    def validate(self) -> None:
        """Validate required configuration."""
        if not self.DISCORD_TOKEN:
            raise ConfigError("DISCORD_TOKEN is required")

        if not self.GUILD_IDS:
            raise ConfigError("GUILD_IDS is required (comma-separated guild IDs)")

        days = ValidationUtils.validate_delete_message_days(self.BAN_DELETE_MESSAGE_DAYS)
        if not days:
            raise ConfigError(f"BAN_DELETE_MESSAGE_DAYS: {days.error}")

        if self.COMMAND_SYNC_ATTEMPTS < 1:
            raise ConfigError("COMMAND_SYNC_ATTEMPTS must be at least 1")

        if self.COMMAND_SYNC_RETRY_DELAY < 0:
            raise ConfigError("COMMAND_SYNC_RETRY_DELAY cannot be negative")

        if not 0 < self.PORT < 65536:
            raise ConfigError(f"PORT out of range: {self.PORT}")
