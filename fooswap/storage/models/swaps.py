# models/swaps.py
from sqlalchemy import Column, Integer, Float, BigInteger, Text, Index
from fooswap.storage.base import Base


class Swap(Base):
    __tablename__ = "swaps"

    # surrogate PK, assigned in arrival order
    id         = Column(Integer, primary_key=True, autoincrement=True)
    pool_id    = Column(Text, nullable=False)
    amount_in  = Column(Float, nullable=False)
    amount_out = Column(Float, nullable=False)
    timestamp  = Column(BigInteger, nullable=False)                # epoch-ms
    # one row per transaction: the dedup key for re-scanned windows
    tx_digest  = Column(Text, nullable=False, unique=True)

    __table_args__ = (
        Index("idx_swaps_pool_ts", "pool_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pool_id": self.pool_id,
            "amount_in": self.amount_in,
            "amount_out": self.amount_out,
            "timestamp": self.timestamp,
            "tx_digest": self.tx_digest,
        }

    def __repr__(self) -> str:
        return f"<Swap {self.tx_digest} pool={self.pool_id} ts={self.timestamp}>"
