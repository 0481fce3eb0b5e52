"""Configuration management for Standup."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)

STANDUP_HOME = Path(os.environ.get("STANDUP_HOME", Path.home() / "standup"))
CONFIG_FILE = STANDUP_HOME / "config" / "standup.conf"
TOKEN_FILE = STANDUP_HOME / "config" / ".tokens.json"
DATA_DIR = STANDUP_HOME / "data"

BACKENDS = ("file", "supabase")

# Environment variables that override config file values
ENV_OVERRIDES = {
    "STANDUP_SUPABASE_URL": "supabase_url",
    "STANDUP_SUPABASE_ANON_KEY": "supabase_anon_key",
    "STANDUP_SUPABASE_EMAIL": "supabase_email",
    "STANDUP_USER_ID": "user_id",
    "STANDUP_TELEGRAM_BOT_TOKEN": "telegram_bot_token",
}


@dataclass
class Config:
    """Standup configuration."""

    backend: str = "file"
    data_dir: str = ""
    user_id: str = ""
    timezone: str = "America/Toronto"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_email: str = ""
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    telegram_card_time: str = "08:00"
    telegram_reminder_time: str = "17:30"


@dataclass
class Tokens:
    """Session tokens for the hosted backend."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0
    user_id: str = ""

    def save(self) -> None:
        """Write the session to the tokens file, readable only by the owner."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(json.dumps(asdict(self)))
        TOKEN_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Tokens":
        """Read the saved session. A missing or unreadable file gives an empty one."""
        try:
            data = json.loads(TOKEN_FILE.read_text())
        except FileNotFoundError:
            return cls()
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable tokens file {TOKEN_FILE}")
            return cls()
        if not isinstance(data, dict):
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from standup.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "backend":
                    value = value.lower()
                    if value in BACKENDS:
                        config.backend = value
                    else:
                        logger.warning(f"Unknown BACKEND {value!r}, using {config.backend!r}")
                case "data_dir":
                    config.data_dir = value
                case "user_id":
                    config.user_id = value
                case "timezone":
                    config.timezone = value
                case "supabase_url":
                    config.supabase_url = value.rstrip("/")
                case "supabase_anon_key":
                    config.supabase_anon_key = value
                case "supabase_email":
                    config.supabase_email = value
                case "telegram_bot_token":
                    config.telegram_bot_token = value
                case "telegram_allowed_users":
                    try:
                        config.telegram_allowed_users = [
                            int(u.strip()) for u in value.split(",") if u.strip()
                        ]
                    except ValueError:
                        logger.warning(f"Failed to parse TELEGRAM_ALLOWED_USERS: {value!r}")
                case "telegram_card_time":
                    config.telegram_card_time = value
                case "telegram_reminder_time":
                    config.telegram_reminder_time = value

    for env_key, attr in ENV_OVERRIDES.items():
        if os.environ.get(env_key):
            setattr(config, attr, os.environ[env_key])

    return config
