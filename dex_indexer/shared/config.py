from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str) -> bool:
    return str(_env(name, default)).strip().lower() in {"1", "true", "yes", "on"}


def _json_list(name: str, default: list[str]) -> list[str]:
    value = _env(name)
    if not value:
        return list(default)
    return list(json.loads(value))


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    networks_config_path: str
    log_level: str
    cors_allow_origins: list[str]
    price_cycle_enabled: bool
    price_cycle_interval_seconds: float
    price_cycle_run_on_start: bool
    shutdown_grace_seconds: float
    subgraph_timeout_seconds: float
    subgraph_max_retries: int
    subgraph_min_interval_ms: int
    subgraph_pool_limit: int
    rpc_timeout_seconds: float
    spot_price_max_workers: int
    db_auto_create_schema: bool
    token_list_url: str
    token_refresh_enabled: bool
    token_refresh_interval_seconds: float
    token_refresh_run_on_start: bool
    token_list_timeout_seconds: float


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        networks_config_path=_env("NETWORKS_CONFIG_PATH", "config/networks.json"),
        log_level=_env("LOG_LEVEL", "INFO"),
        cors_allow_origins=_json_list("CORS_ALLOW_ORIGINS", ["*"]),
        price_cycle_enabled=_bool("PRICE_CYCLE_ENABLED", "true"),
        price_cycle_interval_seconds=float(_env("PRICE_CYCLE_INTERVAL_SECONDS", "60")),
        price_cycle_run_on_start=_bool("PRICE_CYCLE_RUN_ON_START", "false"),
        shutdown_grace_seconds=float(_env("SHUTDOWN_GRACE_SECONDS", "30")),
        subgraph_timeout_seconds=float(_env("SUBGRAPH_TIMEOUT_SECONDS", "15")),
        subgraph_max_retries=int(_env("SUBGRAPH_MAX_RETRIES", "3")),
        subgraph_min_interval_ms=int(_env("SUBGRAPH_MIN_INTERVAL_MS", "120")),
        subgraph_pool_limit=int(_env("SUBGRAPH_POOL_LIMIT", "250")),
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "10")),
        spot_price_max_workers=int(_env("SPOT_PRICE_MAX_WORKERS", "8")),
        db_auto_create_schema=_bool("DB_AUTO_CREATE_SCHEMA", "false"),
        token_list_url=_env("TOKEN_LIST_URL", ""),
        token_refresh_enabled=_bool("TOKEN_REFRESH_ENABLED", "true"),
        token_refresh_interval_seconds=float(_env("TOKEN_REFRESH_INTERVAL_SECONDS", "3600")),
        token_refresh_run_on_start=_bool("TOKEN_REFRESH_RUN_ON_START", "true"),
        token_list_timeout_seconds=float(_env("TOKEN_LIST_TIMEOUT_SECONDS", "15")),
    )
