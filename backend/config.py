"""
Application Configuration Module

Settings are read from environment variables (optionally loaded from a .env
file) into a single Settings object. The object is built once by
``main.create_app`` and handed to everything that needs it; nothing in the
application reads configuration from module-level globals.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _default_database_url() -> str:
    # MySQL/MariaDB connection settings, same variable names the old Node server used
    db_user = os.getenv("DB_USER", "root")
    db_password = os.getenv("DB_PASSWORD", "root")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "3306")
    db_name = os.getenv("DB_NAME", "loundary")
    return f"mysql+pymysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}?charset=utf8mb4"


@dataclass
class Settings:
    database_url: str = "sqlite://"
    db_pool_size: int = 10
    db_pool_timeout: int = 30

    jwt_secret: str = "change-this-secret-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24

    cors_allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])

    log_dir: Optional[str] = None
    log_level: str = "INFO"

    display_timezone: str = "Africa/Mogadishu"
    audit_retention_days: int = 365
    enable_audit_cleanup_job: bool = False
    auto_create_tables: bool = True

    business_name: str = "Laundry Management"
    business_address: str = ""
    business_phone: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and .env, if present)."""
        load_dotenv()

        allowed_origins_str = os.getenv(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173"
        )
        # Split the string into a list, stripping any whitespace
        allowed_origins = [origin.strip() for origin in allowed_origins_str.split(",") if origin.strip()]

        return cls(
            database_url=os.getenv("DATABASE_URL", "").strip() or _default_database_url(),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", 10)),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", 30)),
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", 60 * 24)),
            cors_allowed_origins=allowed_origins,
            log_dir=os.getenv("LOG_DIR", "logs"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            display_timezone=os.getenv("DISPLAY_TIMEZONE", "Africa/Mogadishu"),
            audit_retention_days=int(os.getenv("AUDIT_RETENTION_DAYS", 365)),
            enable_audit_cleanup_job=_env_bool("ENABLE_AUDIT_CLEANUP_JOB", False),
            auto_create_tables=_env_bool("AUTO_CREATE_TABLES", True),
            business_name=os.getenv("BUSINESS_NAME", "Laundry Management"),
            business_address=os.getenv("BUSINESS_ADDRESS", ""),
            business_phone=os.getenv("BUSINESS_PHONE", ""),
        )
