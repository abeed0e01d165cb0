from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from dex_indexer.infrastructure.db.engine import Base


class TokenModel(Base):
    __tablename__ = "tokens"
    __table_args__ = (
        UniqueConstraint("chain_id", "address", name="uq_tokens_chain_address"),
        {"schema": "public"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str] = mapped_column(String(64), nullable=False)
    symbol: Mapped[str | None] = mapped_column(String(24), nullable=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("18"))
    ignored: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class _PriceSeriesColumns:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_id: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[str] = mapped_column(String(256), nullable=False)
    low: Mapped[str] = mapped_column(String(256), nullable=False)
    high: Mapped[str] = mapped_column(String(256), nullable=False)
    tick_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class PriceUsdMinuteModel(_PriceSeriesColumns, Base):
    __tablename__ = "prices_usd"
    __table_args__ = (
        UniqueConstraint("token_id", "tick_at", name="uq_prices_usd_token_tick"),
        {"schema": "public"},
    )


class PriceUsdHourlyModel(_PriceSeriesColumns, Base):
    __tablename__ = "prices_usd_hourly"
    __table_args__ = (
        UniqueConstraint("token_id", "tick_at", name="uq_prices_usd_hourly_token_tick"),
        {"schema": "public"},
    )


class PriceUsdDailyModel(_PriceSeriesColumns, Base):
    __tablename__ = "prices_usd_daily"
    __table_args__ = (
        UniqueConstraint("token_id", "tick_at", name="uq_prices_usd_daily_token_tick"),
        {"schema": "public"},
    )
