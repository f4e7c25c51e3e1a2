"""Train and bus arrival endpoints polled by the display."""

import asyncio

from fastapi import APIRouter, Depends

from transit_board.api.deps import get_bus_board, get_train_board
from transit_board.core.arrival_board import ArrivalBoard, utc_now_iso
from transit_board.schemas.arrival import ArrivalEnvelope, BoardResponse

router = APIRouter(prefix="/api", tags=["arrivals"])


@router.get("/trains", response_model=ArrivalEnvelope, response_model_exclude_none=True)
async def get_trains(board: ArrivalBoard = Depends(get_train_board)):
    """Upcoming trains at the configured station."""
    return await board.poll()


@router.get("/buses", response_model=ArrivalEnvelope, response_model_exclude_none=True)
async def get_buses(board: ArrivalBoard = Depends(get_bus_board)):
    """Upcoming buses at the configured stops."""
    return await board.poll()


@router.get("/board", response_model=BoardResponse, response_model_exclude_none=True)
async def get_board(
    trains: ArrivalBoard = Depends(get_train_board),
    buses: ArrivalBoard = Depends(get_bus_board),
):
    """Both feeds in one poll; the two fetches run concurrently."""
    train_env, bus_env = await asyncio.gather(trains.poll(), buses.poll())
    return BoardResponse(trains=train_env, buses=bus_env, timestamp=utc_now_iso())
