"""Shared FastAPI dependencies: service lookups and the admin check."""

import logging
import secrets

from fastapi import HTTPException, Request

from transit_board.config import settings
from transit_board.core.arrival_board import ArrivalBoard
from transit_board.core.notice_store import NoticeStore

logger = logging.getLogger(__name__)


def get_notice_store(request: Request) -> NoticeStore:
    return request.app.state.notice_store


def get_train_board(request: Request) -> ArrivalBoard:
    return request.app.state.train_board


def get_bus_board(request: Request) -> ArrivalBoard:
    return request.app.state.bus_board


async def require_admin(request: Request) -> None:
    """Single authorization point for notice writes.

    The shared admin password travels in the JSON body as ``password``. It is
    checked before the body is validated, so a bad password never reaches the
    store. An unset ADMIN_PASSWORD rejects every write.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    password = body.get("password") if isinstance(body, dict) else None

    expected = settings.admin_password
    if not expected or not isinstance(password, str) or not secrets.compare_digest(
        password.encode(), expected.encode()
    ):
        logger.warning("Rejected admin request %s %s", request.method, request.url.path)
        raise HTTPException(status_code=401, detail="Unauthorized")
