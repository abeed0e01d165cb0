from __future__ import annotations

from pydantic import BaseModel


class ChainResponse(BaseModel):
    name: str
    chain_id: int
    features: list[str]
    stablecoin_address: str
    native_address: str
    wrapped_native_address: str | None = None
