from fastapi import APIRouter, Depends
from fooswap.config.settings import RECENT_SWAPS_LIMIT
from fooswap.storage.db import get_store
from fooswap.storage.ledger_store import LedgerStore
from fooswap.utils.pricing import parse_pair, spot_price
import logging

log = logging.getLogger(__name__)

router = APIRouter()


def _error(message: str) -> dict:
    return {"status": "error", "message": message}


@router.get("/pools")
def list_pools(store: LedgerStore = Depends(get_store)):
    return {"status": "ok", "data": store.list_pools()}


@router.get("/swaps/{pool_id}")
def recent_swaps(pool_id: str, store: LedgerStore = Depends(get_store)):
    return {"status": "ok", "data": store.recent_swaps(pool_id, RECENT_SWAPS_LIMIT)}


@router.get("/price")
def price(pair: str | None = None, store: LedgerStore = Depends(get_store)):
    """Spot price of token B in A for `pair=TOKENA/TOKENB`, from current reserves."""
    if pair is None:
        return _error("Missing `pair` query parameter")

    tokens = parse_pair(pair)
    if tokens is None:
        return _error("Query parameter `pair` must be in the form TOKENA/TOKENB")

    pool = store.pool_by_token_pair(*tokens)
    if pool is None:
        return _error(f"No pool found for {pair}")

    return {
        "status": "ok",
        "pair": pair,
        "pool_id": pool["pool_id"],
        "price": spot_price(pool["reserve_a"], pool["reserve_b"]),
    }


@router.get("/indexer")
def indexer_status(store: LedgerStore = Depends(get_store)):
    return {"status": "ok", "indexer": store.indexer_name, "cursor": store.get_cursor()}
