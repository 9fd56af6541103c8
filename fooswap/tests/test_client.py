import json

import httpx
import pytest

from fooswap.sources.sui_pipeline.client import (
    ProtocolError,
    SuiEventClient,
    TransportError,
    build_query,
)
from conftest import POOL_CREATED_TYPE, SWAP_TYPE, pool_created_record, swap_record

RPC_URL = "https://sui.test"


def make_client(handler) -> SuiEventClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SuiEventClient(rpc_url=RPC_URL, http_client=http,
                          event_types=(POOL_CREATED_TYPE, SWAP_TYPE))


def rpc_ok(data, has_next=False):
    return httpx.Response(200, json={
        "jsonrpc": "2.0", "id": 1,
        "result": {"data": data, "nextCursor": None, "hasNextPage": has_next},
    })


def test_build_query_shape():
    body = build_query(SWAP_TYPE, 10, 20)

    assert body["method"] == "suix_queryEvents"
    assert body["params"] == [
        {"MoveEventType": SWAP_TYPE},
        None,
        100,
        False,
        {"TimeRange": {"start_time": 10, "end_time": 20}},
    ]


@pytest.mark.asyncio
async def test_fetch_window_queries_each_type_in_order():
    seen = []

    def handler(request: httpx.Request):
        body = json.loads(request.content)
        event_type = body["params"][0]["MoveEventType"]
        seen.append(event_type)
        if event_type == POOL_CREATED_TYPE:
            return rpc_ok([pool_created_record(ts=150)])
        return rpc_ok([swap_record(ts=120, digest="d1"), swap_record(ts=160, digest="d2")])

    client = make_client(handler)
    events = await client.fetch_window(100, 200)

    assert seen == [POOL_CREATED_TYPE, SWAP_TYPE]
    assert [e.event_type for e in events] == [POOL_CREATED_TYPE, SWAP_TYPE, SWAP_TYPE]
    assert [e.tx_digest for e in events[1:]] == ["d1", "d2"]
    assert events[0].parsed_json["pool_id"] == "p1"
    assert events[0].event_seq == "0"


@pytest.mark.asyncio
async def test_non_2xx_is_transport_error_after_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    client = make_client(handler)
    with pytest.raises(TransportError):
        await client.fetch(SWAP_TYPE, 0, 1)
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_transient_transport_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("boom", request=request)
        return rpc_ok([swap_record()])

    client = make_client(handler)
    events = await client.fetch(SWAP_TYPE, 0, 1)

    assert len(calls) == 2
    assert len(events) == 1


@pytest.mark.asyncio
async def test_malformed_json_is_protocol_error():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, content=b"{not json")

    client = make_client(handler)
    with pytest.raises(ProtocolError):
        await client.fetch(SWAP_TYPE, 0, 1)
    # protocol errors are left for the next cycle
    assert len(calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"jsonrpc": "2.0", "id": 1, "result": {}},
    {"jsonrpc": "2.0", "id": 1, "result": {"data": "nope"}},
    {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid params"}},
    [1, 2, 3],
])
async def test_unexpected_shape_is_protocol_error(payload):
    client = make_client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(ProtocolError):
        await client.fetch(SWAP_TYPE, 0, 1)


@pytest.mark.asyncio
async def test_full_page_is_reported(caplog):
    records = [swap_record(digest=f"d{i}") for i in range(100)]
    client = make_client(lambda request: rpc_ok(records))

    events = await client.fetch(SWAP_TYPE, 0, 1)

    assert len(events) == 100
    assert "page full" in caplog.text


@pytest.mark.asyncio
async def test_non_object_records_skipped():
    client = make_client(lambda request: rpc_ok(["junk", swap_record()]))

    events = await client.fetch(SWAP_TYPE, 0, 1)

    assert len(events) == 1
