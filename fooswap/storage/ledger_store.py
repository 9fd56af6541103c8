"""
Persistent pool / swap state for the fooswap indexer.

Every public operation runs as one transaction while holding a single
process-wide lock, so an API reader never observes a swap row without the
reserve update that came with it (and vice versa).
"""
import threading
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fooswap.config.settings import INDEXER_NAME, INDEXER_START_MS, RECENT_SWAPS_LIMIT
from fooswap.storage.models.indexer_state import IndexerState
from fooswap.storage.models.pools import Pool
from fooswap.storage.models.swaps import Swap
from fooswap.utils.types import DomainEvent, PoolCreated, SwapEvent

log = logging.getLogger(__name__)


class StoreError(Exception):
    """A write or read against the ledger store failed; the transaction was rolled back."""


def _insert_for(session: Session):
    """Dialect-specific INSERT supporting ON CONFLICT."""
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


class LedgerStore:
    def __init__(self, session_factory, indexer_name: str = INDEXER_NAME, start_ms: int = INDEXER_START_MS):
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self.indexer_name = indexer_name
        self.start_ms = start_ms

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._lock:
            try:
                with self._session_factory() as session, session.begin():
                    yield session
            except SQLAlchemyError as e:
                raise StoreError(str(e)) from e

    # ── statement helpers (caller owns the transaction) ─────────────────

    def _upsert_pool(self, session, pool_id, token_a, token_b, reserve_a, reserve_b, ts):
        insert = _insert_for(session)
        stmt = insert(Pool.__table__).values(
            pool_id=pool_id,
            token_a=token_a,
            token_b=token_b,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            last_updated=ts,
        )
        table = Pool.__table__
        stmt = stmt.on_conflict_do_update(
            index_elements=["pool_id"],
            set_={
                # a swap carries no token info: never blank out a known pair
                "token_a": func.coalesce(func.nullif(stmt.excluded.token_a, ""), table.c.token_a),
                "token_b": func.coalesce(func.nullif(stmt.excluded.token_b, ""), table.c.token_b),
                "reserve_a": stmt.excluded.reserve_a,
                "reserve_b": stmt.excluded.reserve_b,
                "last_updated": stmt.excluded.last_updated,
            },
        )
        session.execute(stmt)

    def _insert_swap(self, session, pool_id, amount_in, amount_out, ts, tx_digest) -> bool:
        insert = _insert_for(session)
        stmt = (
            insert(Swap.__table__).values(
                pool_id=pool_id,
                amount_in=amount_in,
                amount_out=amount_out,
                timestamp=ts,
                tx_digest=tx_digest,
            )
            .on_conflict_do_nothing(index_elements=["tx_digest"])
        )
        result = session.execute(stmt)
        return result.rowcount == 1

    def _apply(self, session, event: DomainEvent) -> bool:
        if isinstance(event, SwapEvent):
            inserted = self._insert_swap(
                session, event.pool_id, event.amount_in, event.amount_out, event.ts, event.tx_digest
            )
            if not inserted:
                log.debug(f"Swap {event.tx_digest} already stored")
            self._upsert_pool(
                session, event.pool_id, "", "", event.new_reserve_a, event.new_reserve_b, event.ts
            )
            return inserted
        if isinstance(event, PoolCreated):
            self._upsert_pool(
                session, event.pool_id, event.token_a, event.token_b,
                event.reserve_a, event.reserve_b, event.ts,
            )
            return False
        raise TypeError(f"Unsupported event: {event!r}")

    def _read_cursor(self, session) -> int:
        value = session.execute(
            select(IndexerState.cursor_ms).where(IndexerState.name == self.indexer_name)
        ).scalar_one_or_none()
        return self.start_ms if value is None else value

    def _write_cursor(self, session, cursor_ms: int) -> int:
        state = session.get(IndexerState, self.indexer_name)
        if state is None:
            state = IndexerState(name=self.indexer_name, cursor_ms=max(self.start_ms, cursor_ms))
            session.add(state)
        else:
            # never moves backwards
            state.cursor_ms = max(state.cursor_ms, cursor_ms)
        return state.cursor_ms

    # ── writes ─────────────────────────────────────────────────────────

    def upsert_pool(self, pool_id: str, token_a: str, token_b: str,
                    reserve_a: float, reserve_b: float, ts: int) -> None:
        """Create the pool, or overwrite its reserves and timestamp (last call wins)."""
        with self._transaction() as session:
            self._upsert_pool(session, pool_id, token_a, token_b, reserve_a, reserve_b, ts)

    def insert_swap_if_new(self, pool_id: str, amount_in: float, amount_out: float,
                           ts: int, tx_digest: str) -> bool:
        """Insert a swap row. Returns False (and writes nothing) for a known digest."""
        with self._transaction() as session:
            return self._insert_swap(session, pool_id, amount_in, amount_out, ts, tx_digest)

    def apply_swap(self, event: SwapEvent) -> bool:
        """Record the swap and its post-swap reserves atomically."""
        with self._transaction() as session:
            return self._apply(session, event)

    def apply_pool_created(self, event: PoolCreated) -> None:
        with self._transaction() as session:
            self._apply(session, event)

    def apply_events(self, events: Iterable[DomainEvent], cursor_ms: int) -> tuple[int, int]:
        """
        Apply an ordered batch and advance the cursor in a single transaction.

        Any failure rolls the whole batch back (cursor included) and raises
        StoreError, so the same window is retried on the next poll.

        Returns
        -------
        (new_swaps, cursor_ms) : swaps actually inserted, cursor after the batch
        """
        new_swaps = 0
        with self._transaction() as session:
            for event in events:
                if self._apply(session, event):
                    new_swaps += 1
            cursor = self._write_cursor(session, cursor_ms)
        return new_swaps, cursor

    # ── reads ──────────────────────────────────────────────────────────

    def get_cursor(self) -> int:
        with self._transaction() as session:
            return self._read_cursor(session)

    def list_pools(self) -> List[dict]:
        with self._transaction() as session:
            pools = session.scalars(select(Pool).order_by(Pool.pool_id)).all()
            return [p.to_dict() for p in pools]

    def get_pool(self, pool_id: str) -> Optional[dict]:
        with self._transaction() as session:
            pool = session.get(Pool, pool_id)
            return pool.to_dict() if pool else None

    def recent_swaps(self, pool_id: str, limit: int = RECENT_SWAPS_LIMIT) -> List[dict]:
        """Most recent swaps for a pool, newest first."""
        with self._transaction() as session:
            swaps = session.scalars(
                select(Swap)
                .where(Swap.pool_id == pool_id)
                .order_by(Swap.timestamp.desc(), Swap.id.desc())
                .limit(limit)
            ).all()
            return [s.to_dict() for s in swaps]

    def pool_by_token_pair(self, token_a: str, token_b: str) -> Optional[dict]:
        with self._transaction() as session:
            pool = session.scalars(
                select(Pool)
                .where(Pool.token_a == token_a, Pool.token_b == token_b)
                .order_by(Pool.pool_id)
                .limit(1)
            ).first()
            return pool.to_dict() if pool else None

    def count_swaps(self, pool_id: Optional[str] = None) -> int:
        with self._transaction() as session:
            stmt = select(func.count()).select_from(Swap)
            if pool_id is not None:
                stmt = stmt.where(Swap.pool_id == pool_id)
            return session.execute(stmt).scalar_one()
