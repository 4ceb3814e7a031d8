from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the repository root for local development. Variables already
# present in the environment win.
_root_env = Path(__file__).resolve().parents[2] / ".env"
if _root_env.exists():
    load_dotenv(dotenv_path=_root_env, override=False)

DEFAULT_JWT_SECRET = "change-me"


@dataclass
class Settings:
    """Centralized application settings.

    This keeps environment-variable handling in one place so other modules can
    depend on strongly-typed attributes instead of calling os.getenv
    directly.
    """

    # SQLAlchemy database URL. SQLite is the default for local development;
    # any SQLAlchemy-supported URL (e.g. postgresql+psycopg://...) works.
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./dispatch.db")
    # Create tables on startup. Deployments managing schema through
    # migrations should turn this off.
    create_tables_on_startup: bool = os.getenv("CREATE_TABLES_ON_STARTUP", "true").lower() == "true"

    # Session credential signing.
    jwt_secret: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

    # When true, approve/revoke/status-patch are checked against the incident
    # transition graph. Off by default: only the approve-twice and
    # revoke-twice guards apply.
    strict_incident_transitions: bool = os.getenv("STRICT_INCIDENT_TRANSITIONS", "false").lower() == "true"

    # CORS configuration: comma-separated origins. "*" (allow all) is fine for
    # local development but should be tightened in production.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
