"""
Polling indexer: fetch → normalize → apply → advance cursor, forever.

The cursor lives in the store (`indexer_state`) and is written in the same
transaction as the events it covers, so a restart resumes from the last
applied window instead of re-scanning from the epoch.
"""
import asyncio
import time
import logging
from typing import Callable, List, NamedTuple, Optional

from fooswap.config.settings import POLL_INTERVAL_SECS
from fooswap.sources.sui_pipeline.client import FetchError
from fooswap.sources.sui_pipeline.normalizer import normalize
from fooswap.storage.ledger_store import LedgerStore, StoreError
from fooswap.utils.types import DomainEvent, RawEvent

log = logging.getLogger(__name__)

APPLIED = "applied"
FETCH_FAILED = "fetch_failed"
STORE_FAILED = "store_failed"
FAILED = "failed"


class CycleResult(NamedTuple):
    status: str
    from_ts: int
    to_ts: int
    fetched: int = 0
    applied: int = 0
    dropped: int = 0
    new_swaps: int = 0
    cursor: Optional[int] = None


def now_ms() -> int:
    return int(time.time() * 1000)


def order_events(events: List[DomainEvent]) -> List[DomainEvent]:
    """Timestamp order across both event kinds; equal timestamps keep arrival order."""
    return sorted(events, key=lambda e: e.ts)


class IngestionPoller:
    """
    Parameters
    ----------
    store     : LedgerStore the events are applied to (also owns the cursor)
    fetcher   : anything with `async fetch_window(from_ts, to_ts) -> list[RawEvent]`
    interval  : seconds between cycles
    clock     : returns "now" in epoch-ms (injectable for tests)
    """

    def __init__(self, store: LedgerStore, fetcher, interval: float = POLL_INTERVAL_SECS,
                 clock: Callable[[], int] = now_ms):
        self.store = store
        self.fetcher = fetcher
        self.interval = interval
        self.clock = clock

    def _normalize_all(self, raw_events: List[RawEvent]) -> List[DomainEvent]:
        events = []
        for raw in raw_events:
            event = normalize(raw)
            if event is not None:
                events.append(event)
        return events

    async def run_cycle(self) -> CycleResult:
        """One fetch/apply pass. Never raises except on cancellation."""
        try:
            from_ts = await asyncio.to_thread(self.store.get_cursor)
        except StoreError:
            log.error("❌ Could not read cursor; skipping cycle", exc_info=True)
            return CycleResult(FAILED, 0, 0)

        to_ts = self.clock()
        if to_ts <= from_ts:
            log.debug(f"Clock {to_ts} not past cursor {from_ts}; nothing to do")
            return CycleResult(APPLIED, from_ts, to_ts, cursor=from_ts)

        log.info(f"🔄 Polling events in [{from_ts}, {to_ts})")
        try:
            raw_events = await self.fetcher.fetch_window(from_ts, to_ts)
        except FetchError as e:
            log.warning(f"⚠️  Failed to query Sui events, will retry window: {e}")
            return CycleResult(FETCH_FAILED, from_ts, to_ts, cursor=from_ts)
        except Exception:
            log.exception("❌ Unexpected error while fetching events")
            return CycleResult(FAILED, from_ts, to_ts, cursor=from_ts)

        try:
            events = order_events(self._normalize_all(raw_events))
        except Exception:
            log.exception(f"❌ Unexpected error while normalizing {len(raw_events)} events; will retry window")
            return CycleResult(FAILED, from_ts, to_ts, len(raw_events), cursor=from_ts)
        dropped = len(raw_events) - len(events)

        try:
            # off the loop thread: API readers may hold the store lock
            new_swaps, cursor = await asyncio.to_thread(self.store.apply_events, events, to_ts)
        except StoreError:
            log.error(
                f"❌ Failed to apply {len(events)} events; cursor stays at {from_ts}",
                exc_info=True,
            )
            return CycleResult(STORE_FAILED, from_ts, to_ts, len(raw_events), 0, dropped, 0, from_ts)
        except Exception:
            log.exception("❌ Unexpected error while applying events")
            return CycleResult(FAILED, from_ts, to_ts, len(raw_events), 0, dropped, 0, from_ts)

        if raw_events:
            log.info(
                f"✅ Applied {len(events)}/{len(raw_events)} events "
                f"({new_swaps} new swaps, {dropped} dropped); cursor → {cursor}"
            )
        else:
            log.debug(f"No new events; cursor → {cursor}")
        return CycleResult(APPLIED, from_ts, to_ts, len(raw_events), len(events), dropped, new_swaps, cursor)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Poll until `stop_event` is set (or the task is cancelled)."""
        stop_event = stop_event or asyncio.Event()
        log.info(f"🚀 Indexer started (interval {self.interval}s)")
        while not stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception:
                log.exception("❌ Indexer cycle crashed; continuing with the next one")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        log.info("🛑 Indexer stopped")
