from __future__ import annotations

from fastapi import APIRouter, Depends

from dex_indexer.api.deps import get_list_chains_use_case
from dex_indexer.api.schemas.chains import ChainResponse
from dex_indexer.application.use_cases.list_chains import ListChainsUseCase

router = APIRouter()


@router.get("/v1/chains", response_model=list[ChainResponse])
def list_chains(use_case: ListChainsUseCase = Depends(get_list_chains_use_case)):
    return [
        ChainResponse(
            name=network.name,
            chain_id=network.chain_id,
            features=[feature.value for feature in network.features],
            stablecoin_address=network.stablecoin_address,
            native_address=network.native_address,
            wrapped_native_address=network.wrapped_native_address,
        )
        for network in use_case.execute()
    ]
