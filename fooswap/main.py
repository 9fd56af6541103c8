# fooswap/main.py
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from fooswap.api import api
from fooswap.config.settings import ENABLE_INDEXER, LOG_LEVEL
from fooswap.sources.sui_pipeline.client import SuiEventClient
from fooswap.sources.sui_pipeline.ingestion.poller import IngestionPoller
from fooswap.storage.db import get_store, init_db
from fooswap.utils.shortname import setup_logging

setup_logging(LOG_LEVEL)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except Exception:
        log.critical("❌ Database initialisation failed", exc_info=True)
        raise

    if not ENABLE_INDEXER:
        log.info("Indexer disabled (ENABLE_INDEXER=false); serving reads only")
        yield
        return

    client = SuiEventClient()
    poller = IngestionPoller(get_store(), client)
    stop = asyncio.Event()
    task = asyncio.create_task(poller.run(stop), name="fooswap-indexer")
    try:
        yield
    finally:
        stop.set()
        task.cancel()   # also aborts an in-flight fetch
        with suppress(asyncio.CancelledError):
            await task
        await client.aclose()


app = FastAPI(title="fooswap-indexer", lifespan=lifespan)


@app.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"


app.include_router(api.router, prefix="/api")
