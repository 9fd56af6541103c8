import asyncio
import signal
import typer
import logging

from fooswap.config.settings import API_HOST, API_PORT, LOG_LEVEL, POLL_INTERVAL_SECS, SUI_RPC_URL
from fooswap.sources.sui_pipeline.client import SuiEventClient
from fooswap.sources.sui_pipeline.ingestion.poller import APPLIED, IngestionPoller
from fooswap.storage.db import get_store, init_db
from fooswap.utils.shortname import setup_logging

log = logging.getLogger(__name__)

app = typer.Typer(help="fooswap Sui event indexer")


async def _poll_forever(rpc_url: str, interval: float) -> None:
    client = SuiEventClient(rpc_url=rpc_url)
    poller = IngestionPoller(get_store(), client, interval=interval)
    stop = asyncio.Event()
    task = asyncio.current_task()
    loop = asyncio.get_running_loop()

    def _shutdown():
        log.info("[cli] Stop requested")
        stop.set()
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown)
    try:
        await poller.run(stop)
    except asyncio.CancelledError:
        log.info("[cli] Indexer cancelled")
    finally:
        await client.aclose()


async def _poll_once(rpc_url: str):
    client = SuiEventClient(rpc_url=rpc_url)
    try:
        return await IngestionPoller(get_store(), client).run_cycle()
    finally:
        await client.aclose()


@app.command("poll")
def poll(
    rpc_url: str = typer.Option(SUI_RPC_URL, help="Sui fullnode JSON-RPC URL"),
    interval: float = typer.Option(POLL_INTERVAL_SECS, help="Seconds between polls"),
):
    """Run the indexer loop until SIGINT / SIGTERM."""
    init_db()
    asyncio.run(_poll_forever(rpc_url, interval))


@app.command("once")
def once(rpc_url: str = typer.Option(SUI_RPC_URL, help="Sui fullnode JSON-RPC URL")):
    """Run a single ingestion cycle and print its outcome."""
    init_db()
    result = asyncio.run(_poll_once(rpc_url))
    typer.echo(
        f"{result.status}: window [{result.from_ts}, {result.to_ts}) "
        f"fetched={result.fetched} applied={result.applied} dropped={result.dropped} "
        f"new_swaps={result.new_swaps} cursor={result.cursor}"
    )
    if result.status != APPLIED:
        raise typer.Exit(code=1)


@app.command("cursor")
def cursor():
    """Print the persisted cursor (epoch-ms)."""
    init_db()
    typer.echo(get_store().get_cursor())


@app.command("serve")
def serve(
    host: str = typer.Option(API_HOST),
    port: int = typer.Option(API_PORT),
):
    """Serve the read API (and the background indexer) with uvicorn."""
    import uvicorn
    uvicorn.run("fooswap.main:app", host=host, port=port)


def main():
    setup_logging(LOG_LEVEL)
    app()


if __name__ == "__main__":
    main()
