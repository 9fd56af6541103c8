# normalizer.py
# --------------------------------------------------------------
# Raw `suix_queryEvents` records → PoolCreated / SwapEvent
# --------------------------------------------------------------
import math
import logging
from typing import Optional

from fooswap.config.settings import POOL_CREATED_EVENT_TYPE, SWAP_EVENT_TYPE
from fooswap.utils.types import DomainEvent, PoolCreated, RawEvent, SwapEvent

logger = logging.getLogger(__name__)


class EventParseError(ValueError):
    """A required field is missing or unparsable; the event is dropped."""


def _number(value, field: str, *, required: bool = True, non_negative: bool = False) -> float:
    # Sui serialises u64 as strings; accept JSON numbers too, never bools
    if value is None or value == "":
        if required:
            raise EventParseError(f"missing {field}")
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise EventParseError(f"{field} is not numeric: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise EventParseError(f"{field} is not numeric: {value!r}") from None
    if not math.isfinite(number):
        raise EventParseError(f"{field} is not finite: {value!r}")
    if non_negative and number < 0:
        raise EventParseError(f"{field} is negative: {value!r}")
    return number


def _identifier(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise EventParseError(f"missing {field}")
    return value


def _timestamp(value) -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise EventParseError("missing timestampMs")
    try:
        ts = int(value)
    except (TypeError, ValueError, OverflowError):
        raise EventParseError(f"timestampMs is not an integer: {value!r}") from None
    if ts < 0:
        raise EventParseError(f"timestampMs is negative: {value!r}")
    return ts


def _pool_created(raw: RawEvent) -> PoolCreated:
    p = raw.parsed_json
    return PoolCreated(
        pool_id=_identifier(p.get("pool_id"), "pool_id"),
        token_a=_identifier(p.get("token_a"), "token_a"),
        token_b=_identifier(p.get("token_b"), "token_b"),
        reserve_a=_number(p.get("initial_reserve_a"), "initial_reserve_a", non_negative=True),
        reserve_b=_number(p.get("initial_reserve_b"), "initial_reserve_b", non_negative=True),
        ts=_timestamp(raw.timestamp_ms),
    )


def _swap(raw: RawEvent) -> SwapEvent:
    p = raw.parsed_json
    return SwapEvent(
        pool_id=_identifier(p.get("pool_id"), "pool_id"),
        amount_in=_number(p.get("amount_in"), "amount_in", required=False),
        amount_out=_number(p.get("amount_out"), "amount_out", required=False),
        new_reserve_a=_number(p.get("new_reserve_a"), "new_reserve_a", non_negative=True),
        new_reserve_b=_number(p.get("new_reserve_b"), "new_reserve_b", non_negative=True),
        ts=_timestamp(raw.timestamp_ms),
        tx_digest=_identifier(raw.tx_digest, "txDigest"),
    )


# exact fully-qualified type → parser; anything else is not ours
_PARSERS = {
    POOL_CREATED_EVENT_TYPE: _pool_created,
    SWAP_EVENT_TYPE: _swap,
}


def normalize(raw: RawEvent, parsers: Optional[dict] = None) -> Optional[DomainEvent]:
    """Convert one raw event into a domain event, or None if it is unknown or malformed."""
    if not isinstance(raw.event_type, str):
        logger.warning(f"❌ Dropping event with non-string type {raw.event_type!r} ({raw.tx_digest!r})")
        return None
    parse = (parsers or _PARSERS).get(raw.event_type)
    if parse is None:
        logger.debug(f"Ignoring event of unknown type {raw.event_type!r} ({raw.tx_digest})")
        return None
    try:
        event = parse(raw)
    except EventParseError as e:
        logger.warning(
            f"❌ Dropping {raw.event_type.rsplit('::', 1)[-1]} from tx {raw.tx_digest or '?'}: {e}"
        )
        return None
    logger.debug(f"Parsed {event!r}")
    return event
