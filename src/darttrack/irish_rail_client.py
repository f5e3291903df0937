"""Irish Rail realtime API fetcher and parser."""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

from .models import RunningTrain, Station, StationTrain, StopRecord
from .movement_parser import (
    default_train_date,
    field_value,
    lowercase_keys,
    parse_movements_xml,
    xml_records,
)

logger = logging.getLogger(__name__)

IRISH_RAIL_BASE_URL = "http://api.irishrail.ie/realtime/realtime.asmx"
DEFAULT_TIMEOUT = 10  # Seconds
STATION_CACHE_TTL = 3600  # The station catalog rarely changes

# Train/station type filter used by the API for DART services
DART_TYPE = "D"

MIN_BOARD_MINUTES = 5
MAX_BOARD_MINUTES = 90


class IrishRailError(Exception):
    """Raised when the Irish Rail API cannot be reached or answers with an error."""


def _parse_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class IrishRailClient:
    """Fetches and parses Irish Rail realtime data."""

    def __init__(
        self,
        base_url: str = IRISH_RAIL_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        cache_ttl: float = STATION_CACHE_TTL,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, without a trailing slash.
            timeout: Per-request timeout in seconds.
            session: Optional requests session to reuse (a new one is created otherwise).
            cache_ttl: How long the station catalog is cached, in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self._cache: Dict[str, Tuple[List[Station], float]] = {}  # station_type -> (stations, timestamp)
        self._cache_ttl = cache_ttl

    def get_train_movements(self, train_code: str, train_date: Optional[str] = None) -> List[StopRecord]:
        """
        Get every location along a train's journey.

        Args:
            train_code: Train identifier (e.g., "E109").
            train_date: Date in feed form (e.g., "21 Dec 2024"). Defaults to today.

        Returns:
            StopRecords in journey order; empty if the train has no data for that date.
        """
        date = train_date or default_train_date()
        xml_text = self._fetch(
            "getTrainMovementsXML",
            {"TrainId": train_code, "TrainDate": date},
        )
        stops = parse_movements_xml(xml_text)

        if not stops:
            logger.info(f"No movement data found for train {train_code} on {date}")
        else:
            logger.debug(f"Fetched {len(stops)} movement records for train {train_code}")
        return stops

    def get_current_trains(
        self, train_type: str = DART_TYPE, code_filter: Optional[str] = None
    ) -> List[RunningTrain]:
        """
        Get trains currently running.

        Args:
            train_type: "D" for DART, "S" for suburban, "M" for mainline, "A" for all.
            code_filter: Optional case-insensitive substring of the train code.

        Returns:
            List of RunningTrain objects in feed order.
        """
        xml_text = self._fetch("getCurrentTrainsXML_WithTrainType", {"TrainType": train_type})
        trains = [self._parse_running_train(r) for r in xml_records(xml_text, "objTrainPositions")]

        if code_filter:
            wanted = code_filter.upper()
            trains = [t for t in trains if wanted in t.train_code.upper()]

        logger.debug(f"Found {len(trains)} running trains")
        return trains

    def get_all_stations(self, station_type: str = DART_TYPE) -> List[Station]:
        """
        Get the station catalog (cached).

        Args:
            station_type: "D" for DART, "S" for suburban, "M" for mainline, "A" for all.

        Returns:
            List of Station objects.
        """
        now = time.time()
        if station_type in self._cache:
            stations, timestamp = self._cache[station_type]
            if now - timestamp < self._cache_ttl:
                logger.debug(f"Using cached station catalog for type {station_type}")
                return stations

        xml_text = self._fetch("getAllStationsXML_WithStationType", {"StationType": station_type})
        stations = [self._parse_station(r) for r in xml_records(xml_text, "objStation")]
        self._cache[station_type] = (stations, now)

        logger.info(f"Loaded {len(stations)} stations")
        return stations

    def get_station_board(self, station_code: str, num_mins: int = MIN_BOARD_MINUTES) -> List[StationTrain]:
        """
        Get trains due to serve a station within the next few minutes.

        Args:
            station_code: Station code (e.g., "CNLLY").
            num_mins: Look-ahead window, clamped to 5-90 minutes.

        Returns:
            List of StationTrain objects; empty if nothing is due.
        """
        mins = max(MIN_BOARD_MINUTES, min(MAX_BOARD_MINUTES, int(num_mins or MIN_BOARD_MINUTES)))
        xml_text = self._fetch(
            "getStationDataByCodeXML_WithNumMins",
            {"StationCode": station_code, "NumMins": mins},
        )
        return [self._parse_station_train(r) for r in xml_records(xml_text, "objStationData")]

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        self._cache.clear()

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    def _fetch(self, endpoint: str, params: Mapping[str, Any]) -> str:
        """
        Fetch an API endpoint.

        Args:
            endpoint: Endpoint name (e.g., "getTrainMovementsXML").
            params: Query parameters.

        Returns:
            Response body as text.

        Raises:
            IrishRailError: On network failure or a non-2xx response.
        """
        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"Fetching {url} {dict(params)}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise IrishRailError(f"Irish Rail API request to {endpoint} failed: {e}") from e
        return response.text

    @staticmethod
    def _parse_running_train(record: Mapping[str, Any]) -> RunningTrain:
        fields = lowercase_keys(record)
        return RunningTrain(
            train_code=field_value(fields, "TrainCode"),
            status=field_value(fields, "TrainStatus"),
            latitude=_parse_float(field_value(fields, "TrainLatitude")),
            longitude=_parse_float(field_value(fields, "TrainLongitude")),
            train_date=field_value(fields, "TrainDate"),
            public_message=field_value(fields, "PublicMessage"),
            direction=field_value(fields, "Direction"),
        )

    @staticmethod
    def _parse_station(record: Mapping[str, Any]) -> Station:
        fields = lowercase_keys(record)
        return Station(
            code=field_value(fields, "StationCode"),
            name=field_value(fields, "StationDesc"),
            station_id=field_value(fields, "StationId"),
            latitude=_parse_float(field_value(fields, "StationLatitude")) or 0.0,
            longitude=_parse_float(field_value(fields, "StationLongitude")) or 0.0,
        )

    @staticmethod
    def _parse_station_train(record: Mapping[str, Any]) -> StationTrain:
        # The board feed is inconsistent about tag casing (ServerTime vs Servertime)
        fields = lowercase_keys(record)
        return StationTrain(
            train_code=field_value(fields, "TrainCode"),
            station_name=field_value(fields, "StationFullName"),
            station_code=field_value(fields, "StationCode"),
            origin=field_value(fields, "Origin"),
            destination=field_value(fields, "Destination"),
            status=field_value(fields, "Status"),
            due_in=_parse_int(field_value(fields, "DueIn")),
            late=_parse_int(field_value(fields, "Late")),
            expected_arrival=field_value(fields, "ExpArrival"),
            expected_departure=field_value(fields, "ExpDepart"),
            scheduled_arrival=field_value(fields, "SchArrival"),
            scheduled_departure=field_value(fields, "SchDepart"),
            direction=field_value(fields, "Direction"),
            train_type=field_value(fields, "TrainType"),
            location_type=field_value(fields, "LocationType"),
            last_location=field_value(fields, "LastLocation"),
            train_date=field_value(fields, "TrainDate"),
            server_time=field_value(fields, "ServerTime"),
            query_time=field_value(fields, "QueryTime"),
        )
