from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ArrivalStatus = Literal["approaching", "en-route", "at-stop", "delayed", "on-time", "cancelled"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Arrival(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    route_label: str
    destination: str
    destination_estimated: bool = False
    expected_arrival: str  # ISO-8601 UTC
    scheduled_arrival: str
    minutes_away: int
    vehicle_or_trip_id: str
    stop_id: str
    status: ArrivalStatus
    delay_minutes: int = 0


class ArrivalEnvelope(CamelModel):
    arrivals: list[Arrival] = []
    error: str | None = None
    is_live: bool
    note: str | None = None
    is_estimate: bool = False
    station: str = ""
    timestamp: str


class BoardResponse(CamelModel):
    trains: ArrivalEnvelope
    buses: ArrivalEnvelope
    timestamp: str
