from __future__ import annotations

import logging

from dex_indexer.application.dto.token_refresh import RefreshTokensOutput
from dex_indexer.application.ports.token_list_port import TokenListPort
from dex_indexer.application.ports.token_port import TokenWritePort
from dex_indexer.domain.entities.network import NetworkRegistry
from dex_indexer.domain.exceptions import ChainSourceError, PriceStoreError
from dex_indexer.domain.services.token_list import plan_token_refresh


logger = logging.getLogger(__name__)


class RefreshTokensUseCase:
    """Sync the tracked token table with the published token list of each chain.

    A chain whose list cannot be fetched, or comes back empty, keeps its current
    tokens untouched so a list outage never mass-ignores tokens.
    """

    def __init__(
        self,
        *,
        network_registry: NetworkRegistry,
        token_list_port: TokenListPort,
        token_write_port: TokenWritePort,
    ):
        self._network_registry = network_registry
        self._token_list_port = token_list_port
        self._token_write_port = token_write_port

    def execute(self) -> RefreshTokensOutput:
        refreshed: list[int] = []
        failed: list[int] = []
        skipped: list[int] = []
        upserted: dict[int, int] = {}
        ignored: dict[int, int] = {}

        for network in self._network_registry.list_chains():
            chain_id = network.chain_id
            try:
                listed = self._token_list_port.fetch_token_list(chain_id=chain_id)
            except ChainSourceError as exc:
                logger.warning("refresh_tokens: list fetch failed chain_id=%s error=%s", chain_id, exc)
                failed.append(chain_id)
                continue

            if not listed:
                logger.warning("refresh_tokens: empty token list chain_id=%s", chain_id)
                skipped.append(chain_id)
                continue

            try:
                plan = plan_token_refresh(
                    stored=self._token_write_port.list_token_metadata(chain_id=chain_id),
                    listed=listed,
                )
                upserted[chain_id] = (
                    self._token_write_port.upsert_tokens(chain_id=chain_id, tokens=plan.upserts)
                    if plan.upserts
                    else 0
                )
                ignored[chain_id] = (
                    self._token_write_port.mark_ignored(chain_id=chain_id, addresses=plan.ignore_addresses)
                    if plan.ignore_addresses
                    else 0
                )
            except PriceStoreError as exc:
                logger.error("refresh_tokens: store failed chain_id=%s error=%s", chain_id, exc)
                failed.append(chain_id)
                continue

            refreshed.append(chain_id)
            logger.info(
                "refresh_tokens: refreshed chain_id=%s listed=%s upserted=%s ignored=%s",
                chain_id,
                len(listed),
                upserted[chain_id],
                ignored[chain_id],
            )

        return RefreshTokensOutput(
            refreshed_chain_ids=refreshed,
            failed_chain_ids=failed,
            skipped_chain_ids=skipped,
            upserted=upserted,
            ignored=ignored,
        )
