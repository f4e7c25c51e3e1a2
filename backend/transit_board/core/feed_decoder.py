"""Decode GTFS-Realtime protobuf bodies into TripUpdate records."""

import logging

from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from transit_board.core.errors import FeedDecodeError
from transit_board.core.feed_models import FeedSnapshot, StopTimeUpdate, TripUpdate

logger = logging.getLogger(__name__)

_SKIPPED = gtfs_realtime_pb2.TripUpdate.StopTimeUpdate.SKIPPED
_CANCELED = gtfs_realtime_pb2.TripDescriptor.CANCELED


def _event_time(event) -> int | None:
    if event.HasField("time") and event.time > 0:
        return int(event.time)
    return None


def _stop_time_updates(trip_update) -> tuple[StopTimeUpdate, ...]:
    stops = []
    prev_seq = 0
    for stu in trip_update.stop_time_update:
        # Sequence falls back to list position when the feed omits it
        seq = stu.stop_sequence if stu.HasField("stop_sequence") else prev_seq + 1
        prev_seq = seq

        arrival = stu.arrival if stu.HasField("arrival") else None
        departure = stu.departure if stu.HasField("departure") else None

        delay = 0
        if arrival is not None and arrival.HasField("delay"):
            delay = arrival.delay
        elif departure is not None and departure.HasField("delay"):
            delay = departure.delay

        stops.append(StopTimeUpdate(
            stop_id=stu.stop_id,
            stop_sequence=seq,
            arrival_time=_event_time(arrival) if arrival is not None else None,
            departure_time=_event_time(departure) if departure is not None else None,
            delay_seconds=delay,
            skipped=stu.schedule_relationship == _SKIPPED,
        ))
    return tuple(stops)


def _vehicle_id(trip_update) -> str:
    if not trip_update.HasField("vehicle"):
        return ""
    return trip_update.vehicle.id or trip_update.vehicle.label


def decode_feed(data: bytes) -> FeedSnapshot:
    """Parse a FeedMessage and return its trip updates in feed order.

    Raises FeedDecodeError when the buffer is not a valid FeedMessage.
    Entities without a trip_update (vehicle positions, alerts) are ignored.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(data)
    except DecodeError as e:
        logger.error("Failed to decode GTFS-RT feed (%d bytes): %s", len(data), e)
        raise FeedDecodeError(f"Invalid GTFS-RT feed: {e}") from e

    trips = []
    for entity in feed.entity:
        if not entity.HasField("trip_update"):
            continue
        tu = entity.trip_update
        descriptor = tu.trip
        trips.append(TripUpdate(
            trip_id=descriptor.trip_id,
            route_id=descriptor.route_id,
            entity_id=entity.id,
            vehicle_id=_vehicle_id(tu),
            direction_id=descriptor.direction_id if descriptor.HasField("direction_id") else None,
            cancelled=descriptor.schedule_relationship == _CANCELED,
            stop_time_updates=_stop_time_updates(tu),
        ))

    header = feed.header
    snapshot = FeedSnapshot(
        gtfs_realtime_version=header.gtfs_realtime_version,
        timestamp=int(header.timestamp) if header.HasField("timestamp") else None,
        trips=trips,
    )
    logger.debug(
        "Decoded GTFS-RT v%s feed: %d entities, %d trip updates",
        snapshot.gtfs_realtime_version, len(feed.entity), len(trips),
    )
    return snapshot
