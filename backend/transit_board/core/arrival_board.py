"""Fetch → decode → match → format pipeline for one GTFS-RT feed."""

import datetime
import logging
import time

from transit_board.core.arrival_formatter import ArrivalFormatter
from transit_board.core.destinations import (
    BusDestinationRules,
    DestinationResolver,
    TrainDestinationRules,
)
from transit_board.core.errors import FeedConfigError, FeedDecodeError, FeedFetchError
from transit_board.core.feed_client import FeedClient
from transit_board.core.feed_decoder import decode_feed
from transit_board.core.stations import METRO_NORTH_STATIONS, load_directory
from transit_board.core.stop_matcher import match_stops
from transit_board.schemas.arrival import ArrivalEnvelope

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class ArrivalBoard:
    """Produces the arrival envelope for one station on one feed.

    Each call to poll() is independent; nothing is carried between polls.
    """

    def __init__(
        self,
        label: str,
        client: FeedClient,
        feed_url: str,
        stop_ids: frozenset[str],
        station_name: str,
        resolver: DestinationResolver,
        formatter: ArrivalFormatter,
        api_key: str = "",
        api_key_header: str = "x-api-key",
        api_key_required: bool = True,
        horizon_minutes: int = 120,
        operator_contact: str = "the building operator",
        title: str = "",
    ) -> None:
        self.label = label  # plural noun: "trains", "buses"
        self.title = title or label.capitalize()
        self.client = client
        self.feed_url = feed_url
        self.stop_ids = stop_ids
        self.station_name = station_name
        self.resolver = resolver
        self.formatter = formatter
        self.api_key = api_key
        self.api_key_header = api_key_header
        self.api_key_required = api_key_required
        self.horizon_seconds = horizon_minutes * 60
        self.operator_contact = operator_contact

    def _check_config(self) -> None:
        if not self.feed_url:
            raise FeedConfigError(f"No feed URL configured for {self.label}")
        if self.api_key_required and not self.api_key:
            raise FeedConfigError(f"No API key configured for {self.label}")
        if not self.stop_ids:
            raise FeedConfigError(f"No target stop ids configured for {self.label}")

    def _headers(self) -> dict[str, str] | None:
        if not self.api_key:
            return None
        return {self.api_key_header: self.api_key}

    def _failure(self, message: str) -> ArrivalEnvelope:
        return ArrivalEnvelope(
            arrivals=[],
            error=f"{message} Contact {self.operator_contact}.",
            is_live=False,
            station=self.station_name,
            timestamp=utc_now_iso(),
        )

    async def poll(self, now: int | None = None) -> ArrivalEnvelope:
        noun = self.title
        try:
            self._check_config()
        except FeedConfigError as e:
            logger.warning("%s", e)
            return self._failure(f"{noun} feed is not configured.")

        try:
            body = await self.client.fetch(self.feed_url, headers=self._headers())
            snapshot = decode_feed(body)
        except (FeedFetchError, FeedDecodeError) as e:
            logger.error("%s feed unavailable: %s", noun, e)
            return self._failure(f"{noun} data unavailable.")
        except Exception:
            logger.exception("Unexpected failure polling %s feed", self.label)
            return self._failure(f"{noun} data unavailable.")

        if now is None:
            now = int(time.time())
        matches = match_stops(snapshot.trips, self.stop_ids, now, self.horizon_seconds)
        arrivals = self.formatter.format(matches, self.resolver, now)
        logger.info(
            "%s: %d trips in feed, %d matches, %d arrivals",
            noun, len(snapshot.trips), len(matches), len(arrivals),
        )

        return ArrivalEnvelope(
            arrivals=arrivals,
            is_live=True,
            note=None if arrivals else f"No {self.label} currently approaching.",
            is_estimate=any(a.destination_estimated for a in arrivals),
            station=self.station_name,
            timestamp=utc_now_iso(),
        )


def build_train_board(settings, client: FeedClient) -> ArrivalBoard:
    directory = load_directory(settings.train_stops_file, METRO_NORTH_STATIONS)
    return ArrivalBoard(
        label="trains",
        client=client,
        feed_url=settings.train_feed_url,
        stop_ids=settings.train_stop_set,
        station_name=settings.train_station_name,
        resolver=DestinationResolver(directory, TrainDestinationRules()),
        formatter=ArrivalFormatter(
            nominal_status="on-time",
            max_arrivals=settings.max_arrivals,
            delay_threshold_min=settings.delay_threshold_minutes,
            approaching_min=settings.approaching_threshold_minutes,
            dedupe_window_min=settings.dedupe_window_minutes,
            id_prefix="mnr-",
            show_run_number=True,
        ),
        api_key=settings.mta_api_key,
        horizon_minutes=settings.arrival_horizon_minutes,
        operator_contact=settings.operator_contact,
        title="Train",
    )


def build_bus_board(settings, client: FeedClient) -> ArrivalBoard:
    directory = load_directory(settings.bus_stops_file)
    return ArrivalBoard(
        label="buses",
        client=client,
        feed_url=settings.bus_feed_url,
        stop_ids=settings.bus_stop_set,
        station_name=settings.bus_station_name,
        resolver=DestinationResolver(directory, BusDestinationRules(settings.bus_route_termini)),
        formatter=ArrivalFormatter(
            nominal_status="en-route",
            max_arrivals=settings.max_arrivals,
            delay_threshold_min=settings.delay_threshold_minutes,
            approaching_min=settings.approaching_threshold_minutes,
            dedupe_window_min=settings.dedupe_window_minutes,
            id_prefix="bus-",
        ),
        api_key=settings.bus_api_key,
        api_key_header=settings.bus_api_key_header,
        api_key_required=False,
        horizon_minutes=settings.arrival_horizon_minutes,
        operator_contact=settings.operator_contact,
        title="Bus",
    )
