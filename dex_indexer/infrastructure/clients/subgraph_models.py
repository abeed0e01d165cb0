from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubgraphPool(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    base: str
    quote: str
    pool_idx: int = Field(..., alias="poolIdx")

    @field_validator("base", "quote")
    @classmethod
    def lower_address(cls, value: str) -> str:
        return value.strip().lower()


class SubgraphPoolsData(BaseModel):
    pools: list[SubgraphPool] = Field(default_factory=list)


class SubgraphToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    last_price_usd: str | None = Field(None, alias="lastPriceUsd")

    @field_validator("id")
    @classmethod
    def lower_address(cls, value: str) -> str:
        return value.strip().lower()


class SubgraphTokensData(BaseModel):
    tokens: list[SubgraphToken] = Field(default_factory=list)
