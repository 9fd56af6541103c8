from typing import Any, NamedTuple, Union


class RawEvent(NamedTuple):
    """Unparsed event record as returned by `suix_queryEvents`."""
    event_type: str
    tx_digest: str
    timestamp_ms: Any          # upstream sends a string; validated by the normalizer
    parsed_json: dict
    event_seq: str = ""

    @classmethod
    def from_record(cls, record: dict) -> "RawEvent":
        event_id = record.get("id")
        if not isinstance(event_id, dict):
            event_id = {}
        parsed = record.get("parsedJson")
        return cls(
            event_type=record.get("type") or "",
            tx_digest=event_id.get("txDigest") or "",
            timestamp_ms=record.get("timestampMs"),
            parsed_json=parsed if isinstance(parsed, dict) else {},
            event_seq=str(event_id.get("eventSeq") or ""),
        )


class PoolCreated(NamedTuple):
    pool_id: str
    token_a: str
    token_b: str
    reserve_a: float
    reserve_b: float
    ts: int


class SwapEvent(NamedTuple):
    pool_id: str
    amount_in: float
    amount_out: float
    new_reserve_a: float
    new_reserve_b: float
    ts: int
    tx_digest: str


DomainEvent = Union[PoolCreated, SwapEvent]
