"""Decoded GTFS-Realtime records. Lifetime is a single poll."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StopTimeUpdate:
    stop_id: str
    stop_sequence: int
    arrival_time: int | None = None  # Unix timestamp
    departure_time: int | None = None  # Unix timestamp
    delay_seconds: int = 0
    skipped: bool = False

    @property
    def predicted_time(self) -> int | None:
        """Arrival time when known, otherwise departure time."""
        if self.arrival_time is not None:
            return self.arrival_time
        return self.departure_time


@dataclass(frozen=True)
class TripUpdate:
    trip_id: str
    route_id: str
    entity_id: str = ""  # Metro-North puts the train number here
    vehicle_id: str = ""
    direction_id: int | None = None
    cancelled: bool = False
    stop_time_updates: tuple[StopTimeUpdate, ...] = ()

    @property
    def terminal_stop(self) -> StopTimeUpdate | None:
        if not self.stop_time_updates:
            return None
        return max(self.stop_time_updates, key=lambda s: s.stop_sequence)

    @property
    def run_number(self) -> str:
        """Train number shown to riders."""
        return self.entity_id or self.trip_id

    @property
    def vehicle_key(self) -> str:
        """Identity of the physical run: vehicle id when the feed names one, else trip id.

        Entity ids are unique per feed, so two updates for one run never share one.
        """
        return self.vehicle_id or self.trip_id


@dataclass(frozen=True)
class FeedSnapshot:
    gtfs_realtime_version: str
    timestamp: int | None
    trips: list[TripUpdate] = field(default_factory=list)


@dataclass(frozen=True)
class StopMatch:
    """A trip paired with the stop time update at one of our stops."""

    trip: TripUpdate
    stop: StopTimeUpdate
    predicted_time: int
