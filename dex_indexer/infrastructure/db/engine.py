from __future__ import annotations

from functools import lru_cache
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


@lru_cache(maxsize=4)
def get_engine(dsn: str):
    return create_engine(dsn, future=True, pool_pre_ping=True)


def init_schema(engine) -> None:
    # Registers the mapped tables on Base.metadata.
    from dex_indexer.infrastructure.db.models import prices  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("db: schema ensured tables=%s", sorted(Base.metadata.tables))
