from __future__ import annotations

from dataclasses import dataclass
import logging
import time

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dex_indexer.domain.entities.token import TokenMetadata
from dex_indexer.domain.exceptions import ChainSourceError


logger = logging.getLogger(__name__)


class TokenListError(ChainSourceError):
    pass


class TokenListItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(..., min_length=1)
    symbol: str | None = None
    name: str | None = None
    decimals: int = Field(18, ge=0)
    logo_uri: str | None = Field(None, alias="logoURI")


@dataclass(frozen=True)
class TokenListClientSettings:
    base_url: str
    timeout_seconds: float
    max_retries: int = 3


class TokenListClient:
    """Reads `<base_url>/<chain_id>/tokens.json`, a JSON array of token entries."""

    def __init__(self, settings: TokenListClientSettings):
        self._settings = settings

    def fetch_token_list(self, *, chain_id: int) -> list[TokenMetadata]:
        if not self._settings.base_url:
            raise TokenListError("TOKEN_LIST_URL is not configured.")

        url = f"{self._settings.base_url.rstrip('/')}/{chain_id}/tokens.json"
        payload = self._get_json(url)
        if not isinstance(payload, list):
            raise TokenListError(f"Token list at {url} is not a JSON array.")

        tokens: list[TokenMetadata] = []
        invalid = 0
        for raw in payload:
            try:
                item = TokenListItem.model_validate(raw)
            except ValidationError:
                invalid += 1
                continue
            tokens.append(
                TokenMetadata(
                    address=item.address.strip().lower(),
                    symbol=item.symbol,
                    name=item.name,
                    decimals=item.decimals,
                    logo_url=item.logo_uri,
                )
            )

        logger.info(
            "token_list_client: fetched chain_id=%s tokens=%s invalid=%s",
            chain_id,
            len(tokens),
            invalid,
        )
        return tokens

    def _get_json(self, url: str):
        attempts = max(1, self._settings.max_retries)
        delay = 0.5
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                    response = client.get(url)
                    response.raise_for_status()
                    return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "token_list_client: retry attempt=%s/%s url=%s error=%s",
                    attempt,
                    attempts,
                    url,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise TokenListError(f"Token list request failed for {url}: {last_exc}") from last_exc
