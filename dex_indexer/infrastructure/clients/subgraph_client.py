from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time

import httpx
from pydantic import ValidationError

from dex_indexer.infrastructure.clients.subgraph_models import (
    SubgraphPool,
    SubgraphPoolsData,
    SubgraphToken,
    SubgraphTokensData,
)


logger = logging.getLogger(__name__)


POOLS_QUERY = """
query Pools($first: Int!, $lastId: String!) {
  pools(first: $first, orderBy: id, orderDirection: asc, where: { id_gt: $lastId }) {
    id
    base
    quote
    poolIdx
  }
}
"""

TOKENS_QUERY = """
query TokenPrices($ids: [ID!]!, $first: Int!) {
  tokens(first: $first, where: { id_in: $ids }) {
    id
    lastPriceUsd
  }
}
"""


class SubgraphError(RuntimeError):
    pass


@dataclass(frozen=True)
class SubgraphClientSettings:
    timeout_seconds: float
    max_retries: int
    min_interval_ms: int
    page_size: int = 250


class SubgraphClient:
    def __init__(self, settings: SubgraphClientSettings):
        self._settings = settings
        self._lock = Lock()
        self._last_request_at = 0.0

    def fetch_pools(self, *, url: str) -> list[SubgraphPool]:
        page_size = max(1, self._settings.page_size)
        last_id = ""
        pools: list[SubgraphPool] = []
        pages = 0

        while True:
            payload = self._post_graphql(
                url=url,
                query=POOLS_QUERY,
                variables={"first": page_size, "lastId": last_id},
            )
            try:
                page = SubgraphPoolsData.model_validate(payload.get("data") or {})
            except ValidationError as exc:
                raise SubgraphError(f"Malformed pools response: {exc}") from exc

            pages += 1
            pools.extend(page.pools)
            if len(page.pools) < page_size:
                break
            last_id = page.pools[-1].id

        logger.info(
            "subgraph_client: fetched_pools fetched=%s pages=%s url=%s",
            len(pools),
            pages,
            url,
        )
        return pools

    def fetch_token_prices(self, *, url: str, addresses: list[str]) -> list[SubgraphToken]:
        ids = sorted({address.strip().lower() for address in addresses if address})
        if not ids:
            return []

        payload = self._post_graphql(
            url=url,
            query=TOKENS_QUERY,
            variables={"ids": ids, "first": len(ids)},
        )
        try:
            data = SubgraphTokensData.model_validate(payload.get("data") or {})
        except ValidationError as exc:
            raise SubgraphError(f"Malformed tokens response: {exc}") from exc

        logger.info(
            "subgraph_client: fetched_token_prices requested=%s fetched=%s url=%s",
            len(ids),
            len(data.tokens),
            url,
        )
        return data.tokens

    def _post_graphql(self, *, url: str, query: str, variables: dict) -> dict:
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._respect_rate_limit()
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                    response = client.post(
                        url,
                        json={"query": query, "variables": variables},
                    )
                    response.raise_for_status()
                    payload = response.json()

                errors = payload.get("errors") or []
                if errors:
                    message = " | ".join(str(err.get("message", err)) for err in errors)
                    raise SubgraphError(message)

                return payload
            except (httpx.HTTPError, SubgraphError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "subgraph_client: graphql_retry attempt=%s/%s error=%s",
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise SubgraphError(f"GraphQL request failed after retries: {last_exc}") from last_exc

    def _respect_rate_limit(self) -> None:
        min_interval = max(0, self._settings.min_interval_ms) / 1000.0
        if min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_at = time.monotonic()
