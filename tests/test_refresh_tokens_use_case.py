from __future__ import annotations

from dex_indexer.application.use_cases.refresh_tokens import RefreshTokensUseCase
from dex_indexer.domain.entities.network import Network, NetworkFeature, NetworkRegistry
from dex_indexer.domain.entities.token import StoredTokenMetadata, TokenMetadata
from dex_indexer.domain.exceptions import ChainSourceError, PriceStoreError


def _network(name: str, chain_id: int) -> Network:
    return Network(
        name=name,
        chain_id=chain_id,
        rpc_url=f"https://rpc.{name}.example",
        features=(NetworkFeature.LEGACY,),
        stablecoin_address="0x01",
    )


REGISTRY = NetworkRegistry.from_networks(
    [_network("rootstock", 30), _network("bob", 60808), _network("sepolia", 11155111)]
)


class FakeTokenListPort:
    def __init__(self, lists: dict[int, list[TokenMetadata]], failing: set[int] | None = None):
        self._lists = lists
        self._failing = failing or set()

    def fetch_token_list(self, *, chain_id: int) -> list[TokenMetadata]:
        if chain_id in self._failing:
            raise ChainSourceError(f"list unavailable for {chain_id}")
        return list(self._lists.get(chain_id, []))


class FakeTokenWritePort:
    def __init__(self, stored: dict[int, list[StoredTokenMetadata]], error: Exception | None = None):
        self.stored = stored
        self.upserts: dict[int, list[TokenMetadata]] = {}
        self.ignored: dict[int, list[str]] = {}
        self._error = error

    def list_token_metadata(self, *, chain_id: int) -> list[StoredTokenMetadata]:
        if self._error is not None:
            raise self._error
        return list(self.stored.get(chain_id, []))

    def upsert_tokens(self, *, chain_id: int, tokens: list[TokenMetadata]) -> int:
        self.upserts[chain_id] = list(tokens)
        return len(tokens)

    def mark_ignored(self, *, chain_id: int, addresses: list[str]) -> int:
        self.ignored[chain_id] = list(addresses)
        return len(addresses)


def _stored(address: str, ignored: bool = False) -> StoredTokenMetadata:
    return StoredTokenMetadata(address=address, symbol="OLD", name="Old", decimals=18, ignored=ignored)


def test_refresh_upserts_listed_tokens_and_ignores_delisted_ones():
    token_list = FakeTokenListPort(
        {
            30: [
                TokenMetadata(address="0xA", symbol="OLD", name="Old", decimals=18),
                TokenMetadata(address="0xC", symbol="NEW", name="New", decimals=6),
            ]
        },
        failing={60808},
    )
    store = FakeTokenWritePort({30: [_stored("0xa"), _stored("0xb")], 60808: [_stored("0xd")]})

    output = RefreshTokensUseCase(
        network_registry=REGISTRY,
        token_list_port=token_list,
        token_write_port=store,
    ).execute()

    assert output.refreshed_chain_ids == [30]
    assert output.failed_chain_ids == [60808]
    assert output.skipped_chain_ids == [11155111]
    assert output.upserted == {30: 1}
    assert output.ignored == {30: 1}
    assert [token.address for token in store.upserts[30]] == ["0xc"]
    assert store.ignored == {30: ["0xb"]}


def test_unavailable_or_empty_list_leaves_stored_tokens_untouched():
    store = FakeTokenWritePort({30: [_stored("0xa")], 60808: [_stored("0xb")]})

    output = RefreshTokensUseCase(
        network_registry=REGISTRY,
        token_list_port=FakeTokenListPort({}, failing={30}),
        token_write_port=store,
    ).execute()

    assert output.refreshed_chain_ids == []
    assert output.failed_chain_ids == [30]
    assert output.skipped_chain_ids == [60808, 11155111]
    assert store.upserts == {}
    assert store.ignored == {}


def test_storage_failure_marks_chain_failed_and_continues():
    listed = [TokenMetadata(address="0xa", symbol="A", name="A", decimals=18)]

    output = RefreshTokensUseCase(
        network_registry=REGISTRY,
        token_list_port=FakeTokenListPort({30: listed, 60808: listed, 11155111: listed}),
        token_write_port=FakeTokenWritePort({}, error=PriceStoreError("db down")),
    ).execute()

    assert output.refreshed_chain_ids == []
    assert output.failed_chain_ids == [30, 60808, 11155111]
