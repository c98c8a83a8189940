"""Environment-driven settings and logging setup.

``Settings.from_env()`` is called once by the process entry point (the web
application factory or the CLI); nothing else reads the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def _load_env() -> None:
    # .env next to the project root first, then whatever python-dotenv finds
    root_env = Path(__file__).resolve().parents[1] / ".env"
    if root_env.is_file():
        load_dotenv(dotenv_path=root_env)
    else:
        load_dotenv()


def _env_str(name: str, default: str = "") -> str:
    return (os.environ.get(name, default) or default).strip().strip('"').strip("'")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime configuration for the admin backend."""

    store_backend: str = "memory"  # "firestore" | "memory"
    firebase_project_id: str = ""
    firebase_service_account_json: str = ""
    firebase_service_account_path: str = ""

    admin_email: str = "admin@example.com"
    admin_password: str = ""
    jwt_secret: str = "change-me"
    token_ttl_hours: int = 24
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3001"])
    environment: str = "development"

    score_min: float = 9.0
    score_max: float = 10.0
    feed_min_score: float = 9.0
    batch_size: int = 200
    max_batches: int = 100

    resend_api_key: str = ""
    resend_api_base: str = "https://api.resend.com"
    mail_from: str = ""

    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        if load_dotenv_file:
            _load_env()
        origins = _env_str("CORS_ORIGIN", "http://localhost:3001")
        return cls(
            store_backend=_env_str("CURATOR_STORE", "firestore").lower(),
            firebase_project_id=_env_str("FIREBASE_PROJECT_ID"),
            firebase_service_account_json=os.environ.get("FIREBASE_SERVICE_ACCOUNT_JSON", ""),
            firebase_service_account_path=_env_str("FIREBASE_SERVICE_ACCOUNT_JSON_PATH"),
            admin_email=_env_str("ADMIN_EMAIL", "admin@example.com"),
            admin_password=_env_str("ADMIN_PASSWORD"),
            jwt_secret=_env_str("ADMIN_JWT_SECRET", "change-me"),
            token_ttl_hours=_env_int("ADMIN_TOKEN_TTL_HOURS", 24),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            environment=_env_str("CURATOR_ENV") or _env_str("NODE_ENV", "development"),
            score_min=_env_float("CURATOR_SCORE_MIN", 9.0),
            score_max=_env_float("CURATOR_SCORE_MAX", 10.0),
            feed_min_score=_env_float("CURATOR_FEED_MIN_SCORE", 9.0),
            batch_size=max(1, _env_int("CURATOR_BATCH_SIZE", 200)),
            max_batches=max(1, _env_int("CURATOR_MAX_BATCHES", 100)),
            resend_api_key=_env_str("RESEND_API_KEY"),
            resend_api_base=_env_str("RESEND_API_BASE", "https://api.resend.com").rstrip("/"),
            mail_from=_env_str("SMTP_FROM"),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: Optional[str] = None) -> None:
    """Install the process-wide log format. Safe to call more than once."""
    logging.basicConfig(level=getattr(logging, (level or "INFO").upper(), logging.INFO), format=LOG_FORMAT)
