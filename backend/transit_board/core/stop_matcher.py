"""Correlate decoded trips with the station's own stop ids."""

import logging
from collections.abc import Iterable, Sequence

from transit_board.core.feed_models import StopMatch, StopTimeUpdate, TripUpdate

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_SECONDS = 120 * 60


def _neighbour_time(stops: Sequence[StopTimeUpdate], index: int) -> int | None:
    """Time of the closest timed stop around ``index``, earlier stop first on a tie."""
    for offset in range(1, len(stops)):
        for pos in (index - offset, index + offset):
            if 0 <= pos < len(stops):
                predicted = stops[pos].predicted_time
                if predicted is not None:
                    return predicted
    return None


def match_stops(
    trips: Iterable[TripUpdate],
    target_stop_ids: frozenset[str],
    now: int,
    horizon_seconds: int = DEFAULT_HORIZON_SECONDS,
) -> list[StopMatch]:
    """Return one match per (trip, target stop id) inside [now, now + horizon].

    A station with several platform ids yields one candidate per id for the
    same trip, since those are different directions. Stops that already
    departed or lie beyond the horizon are dropped. A skipped stop, or any
    stop of a cancelled trip, usually carries no time of its own; it is timed
    from the nearest timed stop of the same trip so riders still see the
    cancellation. Other stops without an absolute time are dropped.
    """
    matches = []
    dropped = 0
    for trip in trips:
        seen: set[str] = set()
        stops = trip.stop_time_updates
        for index, stop in enumerate(stops):
            if stop.stop_id not in target_stop_ids or stop.stop_id in seen:
                continue
            seen.add(stop.stop_id)

            predicted = stop.predicted_time
            if predicted is None and (stop.skipped or trip.cancelled):
                predicted = _neighbour_time(stops, index)
            if predicted is None or predicted < now or predicted > now + horizon_seconds:
                dropped += 1
                continue
            matches.append(StopMatch(trip=trip, stop=stop, predicted_time=predicted))

    logger.debug("Matched %d stop updates (%d outside window)", len(matches), dropped)
    return matches
