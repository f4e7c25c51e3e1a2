"""Building notices REST API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from transit_board.api.deps import get_notice_store, require_admin
from transit_board.core.arrival_board import utc_now_iso
from transit_board.core.errors import NoticeNotFoundError, NoticeStoreError
from transit_board.core.notice_store import NoticeStore
from transit_board.schemas.notice import NoticeCreate, NoticeList, NoticeResponse, NoticeUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notices", tags=["notices"])


@router.get("", response_model=NoticeList)
async def list_notices(store: NoticeStore = Depends(get_notice_store)):
    """Active, unexpired notices for the display."""
    try:
        notices = await store.list_active()
    except NoticeStoreError:
        raise HTTPException(status_code=500, detail="Failed to fetch notices")
    return NoticeList(notices=notices, timestamp=utc_now_iso())


@router.get("/all", response_model=NoticeList)
async def list_all_notices(store: NoticeStore = Depends(get_notice_store)):
    """Every notice, including inactive and expired ones, for the admin panel."""
    try:
        notices = await store.list_all()
    except NoticeStoreError:
        raise HTTPException(status_code=500, detail="Failed to fetch notices")
    return NoticeList(notices=notices, timestamp=utc_now_iso())


@router.post("/verify", dependencies=[Depends(require_admin)])
async def verify_password():
    return {"valid": True}


@router.post(
    "",
    response_model=NoticeResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_notice(body: NoticeCreate, store: NoticeStore = Depends(get_notice_store)):
    try:
        notice = await store.create(body)
    except NoticeStoreError:
        raise HTTPException(status_code=500, detail="Failed to create notice")
    logger.info("Created notice %s (%s)", notice.id, notice.priority)
    return NoticeResponse(notice=notice)


@router.patch(
    "/{notice_id}",
    response_model=NoticeResponse,
    dependencies=[Depends(require_admin)],
)
async def update_notice(
    notice_id: str,
    body: NoticeUpdate,
    store: NoticeStore = Depends(get_notice_store),
):
    try:
        notice = await store.update(notice_id, body)
    except NoticeNotFoundError:
        raise HTTPException(status_code=404, detail="Notice not found")
    except NoticeStoreError:
        raise HTTPException(status_code=500, detail="Failed to update notice")
    return NoticeResponse(notice=notice)


@router.delete("/{notice_id}", dependencies=[Depends(require_admin)])
async def delete_notice(notice_id: str, store: NoticeStore = Depends(get_notice_store)):
    try:
        await store.delete(notice_id)
    except NoticeNotFoundError:
        raise HTTPException(status_code=404, detail="Notice not found")
    except NoticeStoreError:
        raise HTTPException(status_code=500, detail="Failed to delete notice")
    logger.info("Deleted notice %s", notice_id)
    return {"success": True}
