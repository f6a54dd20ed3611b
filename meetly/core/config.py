from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getint(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    app_base_url: str
    signing_key_pem: str | None

    # Calendar / storage provider (delegated per-user credentials)
    google_client_id: str | None
    google_client_secret: str | None

    # Invoicing provider
    xendit_secret_key: str | None
    xendit_webhook_token: str | None
    payment_proxy_url: str | None
    external_id_prefix: str = "meetly-"
    currency: str = "IDR"

    # Per-user and per-package limits
    max_events_per_user: int = 5
    max_meetings_per_package: int = 3
    max_invitees: int = 3
    meeting_duration_minutes: int = 60

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    currency = _getenv("CURRENCY", "IDR").upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"CURRENCY must be a 3-letter code (got {currency!r})")

    google_client_id = _getenv("GOOGLE_CLIENT_ID", "") or None
    google_client_secret = _getenv("GOOGLE_CLIENT_SECRET", "") or None
    xendit_secret_key = _getenv("XENDIT_SECRET_KEY", "") or None
    payment_proxy_url = _getenv("PAYMENT_PROXY_URL", "") or None

    # Outside prod the API falls back to in-memory providers.
    if app_env_raw == "prod":
        if not (google_client_id and google_client_secret):
            raise ValueError(
                "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required when APP_ENV=prod"
            )
        if not (xendit_secret_key or payment_proxy_url):
            raise ValueError(
                "XENDIT_SECRET_KEY or PAYMENT_PROXY_URL is required when APP_ENV=prod"
            )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        app_base_url=_getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
        signing_key_pem=os.environ.get("SIGNING_KEY_PEM") or None,
        google_client_id=google_client_id,
        google_client_secret=google_client_secret,
        xendit_secret_key=xendit_secret_key,
        xendit_webhook_token=_getenv("XENDIT_WEBHOOK_TOKEN", "") or None,
        payment_proxy_url=payment_proxy_url,
        external_id_prefix=_getenv("EXTERNAL_ID_PREFIX", "meetly-"),
        currency=currency,
        max_events_per_user=_getint("MAX_EVENTS_PER_USER", 5, minimum=1),
        max_meetings_per_package=_getint("MAX_MEETINGS_PER_PACKAGE", 3, minimum=1),
        max_invitees=_getint("MAX_INVITEES", 3, minimum=1),
        meeting_duration_minutes=_getint("MEETING_DURATION_MINUTES", 60, minimum=1),
    )


SETTINGS = load_settings()
