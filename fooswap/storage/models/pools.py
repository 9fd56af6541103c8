# models/pools.py
from sqlalchemy import Column, Float, BigInteger, Text, Index
from fooswap.storage.base import Base


class Pool(Base):
    __tablename__ = "pools"

    pool_id      = Column(Text, primary_key=True)               # Sui object id
    token_a      = Column(Text, nullable=False)                 # coin type of side A
    token_b      = Column(Text, nullable=False)                 # coin type of side B
    reserve_a    = Column(Float, nullable=False, default=0.0)
    reserve_b    = Column(Float, nullable=False, default=0.0)
    last_updated = Column(BigInteger, nullable=False, default=0)  # epoch-ms

    __table_args__ = (
        Index("idx_pools_last_updated", "last_updated"),
        Index("idx_pools_token_pair", "token_a", "token_b"),
    )

    def to_dict(self) -> dict:
        return {
            "pool_id": self.pool_id,
            "token_a": self.token_a,
            "token_b": self.token_b,
            "reserve_a": self.reserve_a,
            "reserve_b": self.reserve_b,
            "last_updated": self.last_updated,
        }

    def __repr__(self) -> str:         # for nicer logs
        return f"<Pool {self.pool_id} {self.token_a}/{self.token_b} ({self.reserve_a}, {self.reserve_b})>"
