"""Store keep-alive endpoint, hit by an external cron as well as the scheduler."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from transit_board.api.deps import get_notice_store
from transit_board.core.arrival_board import utc_now_iso
from transit_board.core.notice_store import NoticeStore
from transit_board.core.scheduler import keep_store_alive

router = APIRouter(prefix="/api", tags=["keep-alive"])


@router.get("/keep-alive")
async def keep_alive(store: NoticeStore = Depends(get_notice_store)):
    alive = await keep_store_alive(store)
    return JSONResponse(
        {"success": alive, "timestamp": utc_now_iso()},
        status_code=200 if alive else 503,
    )
