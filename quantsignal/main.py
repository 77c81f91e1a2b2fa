"""QuantSignal — application entry point.

Boots the FastAPI status server and provides the CLI entry point.  Market
data and exchange clients are supplied by the embedding application through
``serve()``; the CLI alone runs a paper book behind the status API.
"""

import logging

from fastapi import FastAPI

from quantsignal.api.routers import router

app = FastAPI(title="QuantSignal Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("quantsignal")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


def warn_if_live(mode: str) -> bool:
    """Log a prominent warning when running in live mode.

    Returns ``True`` if *mode* is ``"live"``.
    """
    if mode == "live":
        logger.warning(
            "LIVE TRADING MODE — Real money at risk! Starting in 5 seconds..."
        )
        return True
    return False


async def serve(engine, executor, symbols: list[str], port: int = 8080,
                poll_interval: int = 300) -> None:
    """Start the status API and the trading loop concurrently."""
    import asyncio

    import uvicorn

    from quantsignal.api.routers import configure_routers

    if warn_if_live("paper" if executor.is_paper_mode else "live"):
        await asyncio.sleep(5)

    configure_routers(executor, engine)
    uvi_config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(uvi_config)

    logger.info("Starting QuantSignal for %s; status API on port %d", ", ".join(symbols), port)
    results = await asyncio.gather(
        server.serve(),
        engine.run(symbols, poll_interval=poll_interval),
        return_exceptions=True,
    )
    logger.info("QuantSignal stopped. Results: %s", results)


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments, log the macro context, and serve the status API."""
    import argparse
    import asyncio

    import uvicorn

    from quantsignal.api.routers import configure_routers
    from quantsignal.config import load_config
    from quantsignal.executor import ExecutionEngine
    from quantsignal.feeds.fear_greed import FearGreedClient
    from quantsignal.strategy.economic_calendar import (
        DEFAULT_SCHEDULED_EVENTS,
        get_economic_calendar_risks,
        load_scheduled_events,
    )

    parser = argparse.ArgumentParser(description="QuantSignal signal-and-risk engine")
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument("--port", type=int, help="Status API port (default: HEALTH_PORT)")
    args = parser.parse_args()

    config = load_config(args.env_file)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not config.is_paper:
        parser.error("live mode needs an exchange adapter; embed quantsignal via serve()")

    events = (
        load_scheduled_events(config.macro_events_file)
        if config.macro_events_file
        else DEFAULT_SCHEDULED_EVENTS
    )
    calendar = get_economic_calendar_risks(scheduled_events=events)
    for risk in calendar.risks:
        logger.info("Calendar: %s [%s] %s", risk.event, risk.risk, risk.action)
    if calendar.should_pause:
        logger.warning("Calendar guard: trading should pause now.")

    fear_greed = asyncio.run(FearGreedClient().fetch())
    logger.info("Fear & Greed: %d (%s, %s)", fear_greed.value, fear_greed.label, fear_greed.source)

    executor = ExecutionEngine(config)
    configure_routers(executor)

    port = args.port or config.health_port
    logger.info("Status API available at http://localhost:%d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    _run_cli()
