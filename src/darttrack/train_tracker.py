"""Main DART train tracker class."""

import logging
from datetime import datetime
from typing import List, Optional

from .irish_rail_client import IrishRailClient
from .models import RunningTrain, Station, StopRole, TrainStatus
from .position_estimator import estimate, infer_direction, station_stops
from .station_reference import StationReference, find_closest_station

logger = logging.getLogger(__name__)


class TrainTracker:
    """
    Tracks the live position of a single train along a line.

    Each call to track() is one independent poll: fetch the train's movements,
    estimate its position against the station reference and classify its
    direction. Callers drive the polling loop and should only apply the result
    of the most recent poll.
    """

    def __init__(
        self,
        client: Optional[IrishRailClient] = None,
        reference: Optional[StationReference] = None,
        direction_reference: Optional[StationReference] = None,
    ):
        """
        Initialize the tracker.

        Args:
            client: Feed client. A default IrishRailClient is created if omitted.
            reference: Line topology to report positions against. If omitted,
                      each poll builds one from the train's own stops.
            direction_reference: Line whose termini classify direction when no
                      reference is given. Defaults to the DART line.
        """
        self.client = client or IrishRailClient()
        self.reference = reference
        if direction_reference is None:
            direction_reference = StationReference.dart()
        self.direction_reference = direction_reference

    def track(
        self,
        train_code: str,
        train_date: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[TrainStatus]:
        """
        Poll a train once.

        Args:
            train_code: Train identifier (e.g., "E109").
            train_date: Optional date in feed form; defaults to today.
            now: Current time used for interpolation; defaults to datetime.now().

        Returns:
            TrainStatus, or None when the feed has no data for the train yet.

        Raises:
            IrishRailError: If the feed cannot be fetched.
        """
        movements = self.client.get_train_movements(train_code, train_date)
        if not movements:
            logger.info(f"No movement data for train {train_code}, try again later")
            return None

        stops = station_stops(movements)
        if self.reference is not None:
            reference = self.reference
            direction_reference = self.reference
        else:
            # Journey order is not line order, so direction comes from the fixed line
            reference = StationReference.from_movements(stops)
            direction_reference = self.direction_reference

        position = estimate(stops, reference, now=now)
        destination = movements[0].train_destination
        direction = infer_direction(
            destination, direction_reference, self._current_index(stops, direction_reference)
        )

        logger.debug(
            f"Train {train_code}: position {position.position:.2f}, "
            f"at {position.current_station_name}, at station: {position.is_at_station}, "
            f"{direction.value} to {destination}"
        )

        return TrainStatus(
            train_code=train_code,
            position=position,
            direction=direction,
            destination=destination,
            stops=stops,
            last_updated=now or datetime.now(),
        )

    @staticmethod
    def _current_index(stops, reference: StationReference) -> Optional[int]:
        for stop in stops:
            if stop.stop_role == StopRole.CURRENT:
                return reference.index_of_code(stop.location_code)
        return None

    def running_trains(self, code_filter: Optional[str] = None) -> List[RunningTrain]:
        """
        List DART trains currently running.

        Args:
            code_filter: Optional case-insensitive substring of the train code.
        """
        return self.client.get_current_trains(code_filter=code_filter)

    def closest_station(self, latitude: float, longitude: float) -> Optional[Station]:
        """Find the DART station closest to a coordinate."""
        return find_closest_station(self.client.get_all_stations(), latitude, longitude)

    def cleanup(self) -> None:
        """Release resources and clear caches."""
        if self.client:
            self.client.clear_cache()
            self.client.close()
        logger.info("Cleaned up tracker resources")
