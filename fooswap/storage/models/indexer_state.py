from sqlalchemy import Column, BigInteger, Text, TIMESTAMP, func
from fooswap.storage.base import Base


class IndexerState(Base):
    """Durable poll cursor, one row per indexer."""
    __tablename__ = "indexer_state"

    name       = Column(Text, primary_key=True)
    cursor_ms  = Column(BigInteger, nullable=False, default=0)   # events applied up to (exclusive)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())
