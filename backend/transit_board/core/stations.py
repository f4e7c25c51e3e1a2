"""Static stop_id -> station name lookup, optionally loaded from GTFS stops.txt."""

import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Metro-North stops the board names without a stops.txt on disk
METRO_NORTH_STATIONS: dict[str, str] = {
    "1": "Grand Central Terminal",
    "4": "Harlem-125th Street",
    "56": "Mount Vernon West",
}


class StationDirectory:
    """Resolves stop ids to display names. Read-only once built."""

    def __init__(self, names: dict[str, str] | None = None) -> None:
        self._names: dict[str, str] = dict(names or {})

    def __len__(self) -> int:
        return len(self._names)

    def name_for(self, stop_id: str) -> str | None:
        return self._names.get(stop_id)

    @classmethod
    def from_stops_file(cls, path: str | Path, base: dict[str, str] | None = None) -> "StationDirectory":
        """Load a GTFS stops.txt; its rows override entries in ``base``."""
        names = dict(base or {})
        path = Path(path)
        with path.open(newline="", encoding="utf-8-sig") as handle:
            for row in csv.DictReader(handle):
                stop_id = (row.get("stop_id") or "").strip()
                stop_name = (row.get("stop_name") or "").strip()
                if stop_id and stop_name:
                    names[stop_id] = stop_name
        logger.info("Loaded %d stop names from %s", len(names), path)
        return cls(names)


def load_directory(stops_file: str, base: dict[str, str] | None = None) -> StationDirectory:
    """Build a directory from ``stops_file`` when set, else from ``base`` alone."""
    if not stops_file:
        return StationDirectory(base)
    try:
        return StationDirectory.from_stops_file(stops_file, base)
    except OSError:
        logger.exception("Could not read stops file %s; using built-in names", stops_file)
        return StationDirectory(base)
