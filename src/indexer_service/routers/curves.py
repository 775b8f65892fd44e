"""Launchpad curve route handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse

from indexer_service.core.state import AppState, current_snapshot, get_app_state
from indexer_service.routers.agents import cache_headers
from indexer_service.schemas import BalanceResponse, CurveDetail, CurveItem, QuoteResponse
from indexer_service.services import details as details_service
from indexer_service.services import summary as summary_service

if TYPE_CHECKING:
    from indexer_service.models import Curve

router = APIRouter()


def curve_item(curve: Curve) -> CurveItem:
    return CurveItem(
        id=curve.id,
        creator=curve.creator,
        name=curve.name,
        symbol=curve.symbol,
        stx_reserve=str(curve.stx_reserve),
        tokens_sold=str(curve.tokens_sold),
        graduated=curve.graduated,
        created_at=curve.created_at,
        trade_count=curve.trade_count,
    )


@router.get("/curves")
async def list_curves(state: AppState = Depends(get_app_state)) -> JSONResponse:
    """Return every indexed bonding curve."""
    snapshot = await current_snapshot(state)
    content = [curve_item(curve).model_dump(by_alias=True) for curve in snapshot.curve_list()]
    return JSONResponse(content=content, headers=cache_headers(state))


@router.get("/curves/{curve_id}")
async def get_curve(
    curve_id: int = Path(ge=0),
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Return one curve read live from the launchpad."""
    assert state.ledger_client is not None
    data = await details_service.get_curve_detail(state.ledger_client, curve_id)
    return JSONResponse(content=CurveDetail(**data).model_dump(by_alias=True))


@router.get("/curves/{curve_id}/quote")
async def get_quote(
    curve_id: int = Path(ge=0),
    side: Literal["buy", "sell"] = Query(...),
    amount: int = Query(..., gt=0),
    source: Literal["index", "chain"] = Query("index"),
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """
    Quote a buy (amount in micro-STX) or a sell (amount in token units).

    ``source=index`` prices against the indexed reserves with the configured
    launchpad parameters; ``source=chain`` asks the contract.
    """
    if source == "chain":
        assert state.ledger_client is not None
        data = await details_service.get_chain_quote(state.ledger_client, curve_id, side, amount)
    else:
        assert state.curve_params is not None
        snapshot = await current_snapshot(state)
        data = summary_service.quote(snapshot, curve_id, side, amount, state.curve_params)
    return JSONResponse(content=QuoteResponse(**data).model_dump(by_alias=True))


@router.get("/curves/{curve_id}/balances/{holder}")
async def get_balance(
    holder: str,
    curve_id: int = Path(ge=0),
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Return a holder's token balance on one curve."""
    assert state.ledger_client is not None
    data = await details_service.get_holder_balance(state.ledger_client, curve_id, holder)
    return JSONResponse(content=BalanceResponse(**data).model_dump(by_alias=True))
