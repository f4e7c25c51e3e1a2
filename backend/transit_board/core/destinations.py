"""Destination and line labels for matched trips.

The terminal stop of a trip, resolved through the station directory, is the
authoritative destination. When the feed does not carry a known stop past
ours, a per-feed numeric rule guesses the terminus and the label is flagged
as an estimate. Those rules come from observed run numbering and route
termini; they are not published by the agencies.
"""

import logging
import re
from dataclasses import dataclass

from transit_board.core.feed_models import StopMatch, TripUpdate
from transit_board.core.stations import StationDirectory

logger = logging.getLogger(__name__)

UNKNOWN_DESTINATION = "Unknown"

GRAND_CENTRAL = "Grand Central Terminal"
POUGHKEEPSIE = "Poughkeepsie"
CROTON_HARMON = "Croton-Harmon"

# Metro-North GTFS route_id -> line name
METRO_NORTH_LINES: dict[str, str] = {
    "1": "Hudson Line",
    "2": "Harlem Line",
    "3": "New Haven Line",
}

_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class Destination:
    destination: str
    line: str
    estimated: bool


def _number_in(value: str) -> int | None:
    """Last run of digits in ``value``, e.g. '1234' or 'MNR_2025_1234' -> 1234."""
    runs = _DIGITS.findall(value or "")
    return int(runs[-1]) if runs else None


class TrainDestinationRules:
    """Metro-North: line from route_id, terminus guessed from the train number."""

    def __init__(self, route_lines: dict[str, str] | None = None, default_line: str = "Metro-North") -> None:
        self.route_lines = METRO_NORTH_LINES if route_lines is None else route_lines
        self.default_line = default_line

    def line_for(self, trip: TripUpdate) -> str:
        return self.route_lines.get(trip.route_id, self.default_line)

    def estimate(self, trip: TripUpdate) -> str:
        num = _number_in(trip.run_number)
        if num is None:
            return UNKNOWN_DESTINATION
        # Peak runs
        if 400 <= num < 500:
            return GRAND_CENTRAL
        if 600 <= num < 700:
            return POUGHKEEPSIE
        if num % 2 == 0:
            return GRAND_CENTRAL
        if 800 <= num < 900:
            return CROTON_HARMON
        return POUGHKEEPSIE


class BusDestinationRules:
    """Bus routes: one terminus pair per route, picked by direction or trip parity."""

    def __init__(self, route_termini: dict[str, list[str]] | None = None) -> None:
        self.route_termini = route_termini or {}

    def line_for(self, trip: TripUpdate) -> str:
        return trip.route_id

    def estimate(self, trip: TripUpdate) -> str:
        termini = self.route_termini.get(trip.route_id)
        if not termini:
            return UNKNOWN_DESTINATION
        if len(termini) == 1:
            return termini[0]

        if trip.direction_id is not None:
            index = trip.direction_id
        else:
            num = _number_in(trip.trip_id)
            if num is None:
                return UNKNOWN_DESTINATION
            index = num % 2
        return termini[index % len(termini)]


class DestinationResolver:
    """Combines the station directory with a feed's fallback rules."""

    def __init__(self, directory: StationDirectory, rules) -> None:
        self.directory = directory
        self.rules = rules

    def resolve(self, match: StopMatch) -> Destination:
        trip = match.trip
        line = self.rules.line_for(trip)

        terminal = trip.terminal_stop
        if terminal is not None and terminal.stop_sequence > match.stop.stop_sequence:
            name = self.directory.name_for(terminal.stop_id)
            if name:
                return Destination(destination=name, line=line, estimated=False)
            logger.debug("Terminal stop %s of trip %s not in directory", terminal.stop_id, trip.trip_id)

        return Destination(destination=self.rules.estimate(trip), line=line, estimated=True)
