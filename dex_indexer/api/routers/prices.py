from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from dex_indexer.api.deps import get_last_price_use_case, get_price_history_use_case
from dex_indexer.api.schemas.prices import (
    LastPriceResponse,
    PriceHistoryResponse,
    PricePointResponse,
)
from dex_indexer.application.dto.price_query import GetLastPriceInput, GetPriceHistoryInput
from dex_indexer.application.use_cases.get_last_price import GetLastPriceUseCase
from dex_indexer.application.use_cases.get_price_history import GetPriceHistoryUseCase
from dex_indexer.domain.entities.price import Granularity
from dex_indexer.domain.exceptions import (
    NetworkNotFoundError,
    PriceNotFoundError,
    PriceQueryInputError,
    PriceStoreError,
)
from dex_indexer.domain.services.price_composer import format_price

router = APIRouter()


@router.get("/v1/prices/last", response_model=LastPriceResponse)
def get_last_price(
    chain_id: int,
    base: str,
    quote: str | None = None,
    granularity: Granularity = Granularity.MINUTE,
    use_case: GetLastPriceUseCase = Depends(get_last_price_use_case),
):
    try:
        result = use_case.execute(
            GetLastPriceInput(
                chain_id=chain_id,
                base_address=base,
                quote_address=quote,
                granularity=granularity,
            )
        )
    except (NetworkNotFoundError, PriceNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PriceQueryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PriceStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return LastPriceResponse(
        chain_id=result.chain_id,
        base=result.base_address,
        quote=result.quote_address,
        granularity=granularity.value,
        price=format_price(result.price),
        tick_at=result.tick_at,
    )


@router.get("/v1/tokens/{token_id}/prices", response_model=PriceHistoryResponse)
def get_price_history(
    token_id: int,
    start: datetime,
    end: datetime,
    granularity: Granularity = Granularity.HOUR,
    use_case: GetPriceHistoryUseCase = Depends(get_price_history_use_case),
):
    try:
        result = use_case.execute(
            GetPriceHistoryInput(
                token_id=token_id,
                granularity=granularity,
                start=start,
                end=end,
            )
        )
    except PriceQueryInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PriceStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return PriceHistoryResponse(
        token_id=result.token_id,
        granularity=result.granularity.value,
        series=[
            PricePointResponse(
                tick_at=row.tick_at,
                value=format_price(row.value),
                low=format_price(row.low),
                high=format_price(row.high),
            )
            for row in result.series
        ],
    )
