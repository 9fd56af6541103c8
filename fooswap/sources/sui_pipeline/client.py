import httpx
import backoff
import logging
from typing import List, Optional

from fooswap.config.settings import (
    EVENT_TYPES,
    FETCH_MAX_TRIES,
    FETCH_TIMEOUT_SECS,
    QUERY_PAGE_LIMIT,
    SUI_RPC_URL,
)
from fooswap.utils.types import RawEvent

log = logging.getLogger(__name__)


class FetchError(Exception):
    """The upstream query failed; the window should be retried next cycle."""


class TransportError(FetchError):
    """Network failure, timeout or non-2xx HTTP status."""


class ProtocolError(FetchError):
    """The response was not the JSON-RPC shape we expect."""


def build_query(event_type: str, from_ts: int, to_ts: int, limit: int = QUERY_PAGE_LIMIT) -> dict:
    """`suix_queryEvents` body for one event type over [from_ts, to_ts)."""
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "suix_queryEvents",
        "params": [
            {"MoveEventType": event_type},
            None,    # cursor: always start from the window, no continuation
            limit,
            False,   # ascending
            {"TimeRange": {"start_time": from_ts, "end_time": to_ts}},
        ],
    }


def extract_events(payload, event_type: str, from_ts: int, to_ts: int,
                   limit: int = QUERY_PAGE_LIMIT) -> List[RawEvent]:
    """Pull `result.data` out of a decoded response, raising ProtocolError on a bad shape."""
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(payload).__name__}")
    if payload.get("error") is not None:
        raise ProtocolError(f"RPC error for {event_type}: {payload['error']}")

    result = payload.get("result")
    data = result.get("data") if isinstance(result, dict) else None
    if not isinstance(data, list):
        raise ProtocolError(f"Response has no result.data array for {event_type}")

    # Single page only: a full page means the window may be under-reported.
    if len(data) >= limit or result.get("hasNextPage"):
        log.warning(
            f"⚠️  {event_type.rsplit('::', 1)[-1]}: page full ({len(data)}/{limit}) for window "
            f"[{from_ts}, {to_ts}); events beyond the first page are not fetched"
        )

    events = []
    for record in data:
        if not isinstance(record, dict):
            log.warning(f"Skipping non-object event record: {record!r}")
            continue
        events.append(RawEvent.from_record(record))
    return events


class SuiEventClient:
    """
    Thin async client over the Sui JSON-RPC `suix_queryEvents` method.

    Parameters
    ----------
    rpc_url      : fullnode endpoint (SUI_RPC_URL)
    http_client  : optional pre-built httpx.AsyncClient (tests inject a MockTransport)
    timeout      : per-request timeout in seconds
    event_types  : fully-qualified Move event types, queried in this order
    """

    def __init__(
        self,
        rpc_url: str = SUI_RPC_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = FETCH_TIMEOUT_SECS,
        event_types=EVENT_TYPES,
        page_limit: int = QUERY_PAGE_LIMIT,
    ):
        self.rpc_url = rpc_url
        self.event_types = tuple(event_types)
        self.page_limit = page_limit
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @backoff.on_exception(
        backoff.expo, TransportError, max_tries=FETCH_MAX_TRIES, factor=0.5, jitter=None
    )
    async def _post(self, body: dict):
        try:
            resp = await self._client.post(self.rpc_url, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise TransportError(f"Sui RPC returned error status: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolError(f"Malformed JSON from Sui RPC: {e}") from e

    async def fetch(self, event_type: str, from_ts: int, to_ts: int) -> List[RawEvent]:
        """Events of one type with from_ts <= timestampMs < to_ts (first page only)."""
        body = build_query(event_type, from_ts, to_ts, self.page_limit)
        log.debug(f"Querying {self.rpc_url} for {event_type} in [{from_ts}, {to_ts})")
        payload = await self._post(body)
        return extract_events(payload, event_type, from_ts, to_ts, self.page_limit)

    async def fetch_window(self, from_ts: int, to_ts: int) -> List[RawEvent]:
        """All configured event types for the window, concatenated in query order."""
        events: List[RawEvent] = []
        for event_type in self.event_types:
            events.extend(await self.fetch(event_type, from_ts, to_ts))
        return events
