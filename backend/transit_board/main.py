"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transit_board.api import arrivals, keepalive, notices
from transit_board.config import settings
from transit_board.core.arrival_board import build_bus_board, build_train_board
from transit_board.core.feed_client import FeedClient
from transit_board.core.notice_store import SqlNoticeStore
from transit_board.core.scheduler import create_scheduler
from transit_board.db.session import async_session, engine
from transit_board.models.base import Base
from transit_board.models import tables  # noqa: F401

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    # Create tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    feed_client = FeedClient(timeout=settings.feed_timeout_seconds)
    app.state.notice_store = SqlNoticeStore(async_session)
    app.state.train_board = build_train_board(settings, feed_client)
    app.state.bus_board = build_bus_board(settings, feed_client)

    scheduler = create_scheduler(app.state.notice_store)
    scheduler.start()
    logger.info(
        "Transit board started - trains at %s (stops %s), buses at stops %s",
        settings.train_station_name,
        ",".join(sorted(settings.train_stop_set)) or "-",
        ",".join(sorted(settings.bus_stop_set)) or "-",
    )

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    await feed_client.close()
    await engine.dispose()
    logger.info("Transit board shut down")


app = FastAPI(
    title="Building Transit Board",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(arrivals.router)
app.include_router(notices.router)
app.include_router(keepalive.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
