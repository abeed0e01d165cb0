from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dex_indexer.api.deps import build_refresh_tokens_use_case, build_run_price_cycle_use_case
from dex_indexer.api.routers.chains import router as chains_router
from dex_indexer.api.routers.health import router as health_router
from dex_indexer.api.routers.prices import router as prices_router
from dex_indexer.domain.exceptions import NetworkConfigError
from dex_indexer.infrastructure.db.engine import get_engine, init_schema
from dex_indexer.infrastructure.scheduler.periodic_task import PeriodicTask
from dex_indexer.shared.config import get_settings
from dex_indexer.shared.log_config import configure_logging


logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="DEX Price Indexer")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(health_router)
app.include_router(chains_router)
app.include_router(prices_router)
app.state.price_task = None
app.state.token_task = None


def build_price_task() -> PeriodicTask:
    use_case = build_run_price_cycle_use_case()
    return PeriodicTask(
        name="usd-prices",
        interval_seconds=settings.price_cycle_interval_seconds,
        job=lambda tick_at: use_case.execute(tick_at),
        run_on_start=settings.price_cycle_run_on_start,
    )


def build_token_task() -> PeriodicTask:
    use_case = build_refresh_tokens_use_case()
    return PeriodicTask(
        name="token-list",
        interval_seconds=settings.token_refresh_interval_seconds,
        job=lambda _tick_at: use_case.execute(),
        run_on_start=settings.token_refresh_run_on_start,
    )


def _start_token_task() -> None:
    if not settings.token_refresh_enabled:
        logger.info("main: token refresh disabled by TOKEN_REFRESH_ENABLED")
        return
    if not settings.token_list_url:
        logger.warning("main: TOKEN_LIST_URL not set, token refresh disabled")
        return

    try:
        task = build_token_task()
    except NetworkConfigError as exc:
        logger.error("main: token refresh not started error=%s", exc)
        return
    task.start()
    app.state.token_task = task


def _start_price_task() -> None:
    if not settings.price_cycle_enabled:
        logger.info("main: price cycle disabled by PRICE_CYCLE_ENABLED")
        return

    try:
        task = build_price_task()
    except NetworkConfigError as exc:
        logger.error("main: price cycle not started error=%s", exc)
        return
    task.start()
    app.state.price_task = task


@app.on_event("startup")
def on_startup() -> None:
    if not settings.postgres_dsn:
        logger.warning("main: POSTGRES_DSN not set, background tasks disabled")
        return

    if settings.db_auto_create_schema:
        init_schema(get_engine(settings.postgres_dsn))

    _start_token_task()
    _start_price_task()


@app.on_event("shutdown")
def on_shutdown() -> None:
    for attr in ("price_task", "token_task"):
        task: PeriodicTask | None = getattr(app.state, attr)
        if task is None:
            continue
        if not task.stop(grace_seconds=settings.shutdown_grace_seconds):
            logger.warning("main: background task still running after grace period task=%s", attr)
        setattr(app.state, attr, None)
