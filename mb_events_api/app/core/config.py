"""
Application configuration.

The ``Settings`` dataclass holds every tunable value the service needs.
It is built once at start-up (normally through ``Settings.from_env``)
and handed to ``create_app``; components receive it from the
application state rather than reading environment variables on their
own.  Defaults are suitable for local development only; override the
secrets via environment variables in any real deployment.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    project_name: str = "MB Events API"
    api_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Path of the SQLite database file.  Relative paths are resolved
    # against the project root by ``core.db``.
    database_url: str = "mb_events.db"

    jwt_secret: str = "change_me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    reset_token_expire_minutes: int = 15

    # Base URL of the web client; used to build links in e-mails.
    frontend_url: str = "http://localhost:5173"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Media host (Cloudinary-compatible upload API).
    media_cloud_name: str = ""
    media_api_key: str = ""
    media_api_secret: str = ""
    media_folder: str = "mbevents"
    media_upload_url: str = "https://api.cloudinary.com/v1_1"
    media_timeout_seconds: float = 30.0

    # Outgoing mail.  An empty ``smtp_host`` disables sending; callers
    # treat that as a failed (and logged) notification.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_sender: str = "MB Events <no-reply@mbevents.local>"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Variables that are not set fall back to the dataclass defaults.
        ``environ`` defaults to ``os.environ`` and exists so tests can
        pass a plain dictionary.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        origins = env.get("CORS_ORIGINS")
        return cls(
            project_name=env.get("PROJECT_NAME", defaults.project_name),
            api_version=env.get("API_VERSION", defaults.api_version),
            debug=_env_bool(env.get("DEBUG"), defaults.debug),
            log_level=env.get("LOG_LEVEL", defaults.log_level),
            log_file=env.get("LOG_FILE") or None,
            database_url=env.get("DATABASE_URL", defaults.database_url),
            jwt_secret=env.get("JWT_SECRET", defaults.jwt_secret),
            jwt_algorithm=env.get("JWT_ALGORITHM", defaults.jwt_algorithm),
            access_token_expire_minutes=int(
                env.get("ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes)
            ),
            reset_token_expire_minutes=int(
                env.get("RESET_TOKEN_EXPIRE_MINUTES", defaults.reset_token_expire_minutes)
            ),
            frontend_url=env.get("FRONTEND_URL", defaults.frontend_url),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else list(defaults.cors_origins)
            ),
            media_cloud_name=env.get("CLOUD_NAME", defaults.media_cloud_name),
            media_api_key=env.get("CLOUD_API_KEY", defaults.media_api_key),
            media_api_secret=env.get("CLOUD_API_SECRET", defaults.media_api_secret),
            media_folder=env.get("MEDIA_FOLDER", defaults.media_folder),
            media_upload_url=env.get("MEDIA_UPLOAD_URL", defaults.media_upload_url),
            media_timeout_seconds=float(
                env.get("MEDIA_TIMEOUT_SECONDS", defaults.media_timeout_seconds)
            ),
            smtp_host=env.get("SMTP_HOST", defaults.smtp_host),
            smtp_port=int(env.get("SMTP_PORT", defaults.smtp_port)),
            smtp_user=env.get("SMTP_USER", defaults.smtp_user),
            smtp_password=env.get("SMTP_PASSWORD", defaults.smtp_password),
            smtp_use_tls=_env_bool(env.get("SMTP_USE_TLS"), defaults.smtp_use_tls),
            mail_sender=env.get("MAIL_SENDER", defaults.mail_sender),
        )
