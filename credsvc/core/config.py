from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
ServiceKind = Literal["issuance", "verification"]

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///data/credentials.db"
DEFAULT_PORTS: dict[str, int] = {"issuance": 3001, "verification": 3002}


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it's easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getint(name: str, default: str) -> int:
    raw = _getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    service: ServiceKind
    port: int
    worker_id: str | None
    database_url: str | None
    redis_url: str | None
    rate_limit_capacity: int = 100
    rate_limit_window_seconds: int = 900
    cors_origins: tuple[str, ...] = ("*",)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    service_raw = _getenv("SERVICE", "issuance").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if service_raw not in ("issuance", "verification"):
        raise ValueError(
            f"SERVICE must be issuance|verification (got {service_raw!r})"
        )

    port = _getint("PORT", str(DEFAULT_PORTS[service_raw]))
    capacity = _getint("RATE_LIMIT_CAPACITY", "100")
    window = _getint("RATE_LIMIT_WINDOW_SECONDS", "900")
    if capacity < 1 or window < 1:
        raise ValueError("RATE_LIMIT_CAPACITY and RATE_LIMIT_WINDOW_SECONDS must be >= 1")

    # "memory" (or an explicitly empty value) selects the in-memory store
    database_url = _getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if database_url.lower() in ("", "memory"):
        database_url = None

    origins = tuple(
        o.strip() for o in _getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        service=service_raw,
        port=port,
        worker_id=_getenv("WORKER_ID", "") or None,
        database_url=database_url,
        redis_url=_getenv("REDIS_URL", "") or None,
        rate_limit_capacity=capacity,
        rate_limit_window_seconds=window,
        cors_origins=origins or ("*",),
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()
