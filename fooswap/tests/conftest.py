from dotenv import load_dotenv
import pathlib
import pytest

# Automatically load .env from project root
load_dotenv(dotenv_path=pathlib.Path(__file__).parent.parent.parent / ".env")

from fooswap.storage.db import init_db, make_engine, make_session_factory
from fooswap.storage.ledger_store import LedgerStore
from fooswap.utils.types import RawEvent

PACKAGE = "0xfeed"
POOL_CREATED_TYPE = f"{PACKAGE}::fooswap::PoolCreatedEvent"
SWAP_TYPE = f"{PACKAGE}::fooswap::SwapEvent"


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'fooswap_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return LedgerStore(make_session_factory(engine), indexer_name="test", start_ms=0)


@pytest.fixture
def event_types(monkeypatch):
    """Point the normalizer at a test package id."""
    from fooswap.sources.sui_pipeline import normalizer
    monkeypatch.setattr(normalizer, "_PARSERS", {
        POOL_CREATED_TYPE: normalizer._pool_created,
        SWAP_TYPE: normalizer._swap,
    })
    return POOL_CREATED_TYPE, SWAP_TYPE


def pool_created_record(pool_id="p1", ts=100, token_a="A", token_b="B",
                        reserve_a="1000", reserve_b="500", digest="tx-pool"):
    return {
        "id": {"txDigest": digest, "eventSeq": "0"},
        "parsedJson": {
            "creator": "0xabc",
            "pool_id": pool_id,
            "token_a": token_a,
            "token_b": token_b,
            "initial_reserve_a": reserve_a,
            "initial_reserve_b": reserve_b,
        },
        "timestampMs": str(ts),
        "type": POOL_CREATED_TYPE,
    }


def swap_record(pool_id="p1", ts=200, digest="tx-1", amount_in="20", amount_out="10",
                new_reserve_a="80", new_reserve_b="120"):
    return {
        "id": {"txDigest": digest, "eventSeq": "0"},
        "parsedJson": {
            "pool_id": pool_id,
            "amount_in": amount_in,
            "amount_out": amount_out,
            "new_reserve_a": new_reserve_a,
            "new_reserve_b": new_reserve_b,
        },
        "timestampMs": str(ts),
        "type": SWAP_TYPE,
    }


def raw(record: dict) -> RawEvent:
    return RawEvent.from_record(record)
