"""Turn stop matches into the sorted, deduplicated arrival list."""

import logging
import math
from datetime import datetime, timezone

from transit_board.core.destinations import DestinationResolver
from transit_board.core.feed_models import StopMatch
from transit_board.schemas.arrival import Arrival, ArrivalStatus

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARRIVALS = 8
DEFAULT_DELAY_THRESHOLD_MIN = 2
DEFAULT_APPROACHING_MIN = 2
DEFAULT_DEDUPE_WINDOW_MIN = 2


def _whole_minutes(seconds: int) -> int:
    """Nearest minute, halves rounded up, never negative."""
    return max(0, math.floor(seconds / 60 + 0.5))


def format_iso_utc(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ArrivalFormatter:
    """Minutes-away, status buckets, sort, dedupe and truncate."""

    def __init__(
        self,
        nominal_status: ArrivalStatus = "en-route",
        max_arrivals: int = DEFAULT_MAX_ARRIVALS,
        delay_threshold_min: int = DEFAULT_DELAY_THRESHOLD_MIN,
        approaching_min: int = DEFAULT_APPROACHING_MIN,
        dedupe_window_min: int = DEFAULT_DEDUPE_WINDOW_MIN,
        id_prefix: str = "",
        show_run_number: bool = False,
    ) -> None:
        self.nominal_status = nominal_status
        self.max_arrivals = max_arrivals
        self.delay_threshold_min = delay_threshold_min
        self.approaching_min = approaching_min
        self.dedupe_window_min = dedupe_window_min
        self.id_prefix = id_prefix
        self.show_run_number = show_run_number

    def status_for(self, match: StopMatch, minutes_away: int, delay_minutes: int) -> ArrivalStatus:
        if match.trip.cancelled or match.stop.skipped:
            return "cancelled"
        if delay_minutes >= self.delay_threshold_min:
            return "delayed"
        if minutes_away == 0:
            return "at-stop"
        if minutes_away <= self.approaching_min:
            return "approaching"
        return self.nominal_status

    def build(self, match: StopMatch, resolver: DestinationResolver, now: int) -> Arrival:
        minutes_away = _whole_minutes(match.predicted_time - now)
        delay_minutes = _whole_minutes(match.stop.delay_seconds)
        dest = resolver.resolve(match)
        run = match.trip.run_number
        return Arrival(
            id=f"{self.id_prefix}{run}-{match.stop.stop_id}-{match.predicted_time}",
            route_label=dest.line,
            destination=dest.destination,
            destination_estimated=dest.estimated,
            expected_arrival=format_iso_utc(match.predicted_time),
            scheduled_arrival=format_iso_utc(match.predicted_time - match.stop.delay_seconds),
            minutes_away=minutes_away,
            vehicle_or_trip_id=run if self.show_run_number else match.trip.vehicle_key,
            stop_id=match.stop.stop_id,
            status=self.status_for(match, minutes_away, delay_minutes),
            delay_minutes=delay_minutes,
        )

    def format(self, matches: list[StopMatch], resolver: DestinationResolver, now: int) -> list[Arrival]:
        built = sorted(
            ((m, self.build(m, resolver, now)) for m in matches),
            key=lambda pair: (pair[1].minutes_away, pair[1].expected_arrival),
        )

        # Overlapping updates for one run at one stop collapse onto the earliest
        kept: list[Arrival] = []
        seen: dict[tuple[str, str, str], list[int]] = {}
        for match, arrival in built:
            key = (match.trip.vehicle_key, arrival.route_label, arrival.stop_id)
            earlier = seen.setdefault(key, [])
            if any(arrival.minutes_away - m <= self.dedupe_window_min for m in earlier):
                continue
            earlier.append(arrival.minutes_away)
            kept.append(arrival)

        if len(kept) < len(built):
            logger.debug("Dropped %d duplicate arrivals", len(built) - len(kept))
        return kept[: self.max_arrivals]
