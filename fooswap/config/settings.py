import os
import pathlib
from dotenv import load_dotenv

# Automatically load .env from project root
load_dotenv(dotenv_path=pathlib.Path(__file__).resolve().parents[2] / ".env")

# ── Storage ──────────────────────────────────────────────────
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///fooswap.db")

# ── Sui RPC ──────────────────────────────────────────────────
SUI_RPC_URL = os.getenv("SUI_RPC_URL", "https://fullnode.devnet.sui.io:443")

# Move package of the fooswap contract (devnet deployment)
DEX_PACKAGE_ID = os.getenv(
    "DEX_PACKAGE_ID",
    "0x1c2be4cfbf91fe8d71aedeb83cbe680475b70359bab87900df99ecd787ca5474",
)
DEX_MODULE = "fooswap"

POOL_CREATED_EVENT_TYPE = f"{DEX_PACKAGE_ID}::{DEX_MODULE}::PoolCreatedEvent"
SWAP_EVENT_TYPE = f"{DEX_PACKAGE_ID}::{DEX_MODULE}::SwapEvent"

# Queried in this order; ties on timestamp keep this order
EVENT_TYPES = (POOL_CREATED_EVENT_TYPE, SWAP_EVENT_TYPE)

QUERY_PAGE_LIMIT = 100           # suix_queryEvents page size, no continuation
FETCH_TIMEOUT_SECS = float(os.getenv("FETCH_TIMEOUT_SECS", "10"))
FETCH_MAX_TRIES = int(os.getenv("FETCH_MAX_TRIES", "3"))

# ── Indexer loop ─────────────────────────────────────────────
POLL_INTERVAL_SECS = float(os.getenv("POLL_INTERVAL_SECS", "5"))
INDEXER_NAME = os.getenv("INDEXER_NAME", "fooswap")
INDEXER_START_MS = int(os.getenv("INDEXER_START_MS", "0"))
ENABLE_INDEXER = os.getenv("ENABLE_INDEXER", "true").lower() == "true"

# ── API / logging ────────────────────────────────────────────
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "3000"))
RECENT_SWAPS_LIMIT = 20
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
