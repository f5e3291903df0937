"""Estimates a train's position along a line from its movement records."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .models import (
    NOT_AVAILABLE,
    Direction,
    StopRecord,
    StopRole,
    TrainPosition,
)
from .station_reference import StationReference

logger = logging.getLogger(__name__)


def parse_time(value: Optional[str], now: datetime) -> Optional[datetime]:
    """
    Parse a feed wall-clock time ("HH:MM" or "HH:MM:SS") as a time on now's date.

    Args:
        value: Time string from the feed.
        now: Reference instant supplying the date (and timezone, if any).

    Returns:
        datetime on now's date, or None if the value is missing or malformed.
    """
    if not value or value.strip() == NOT_AVAILABLE:
        return None

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None

    try:
        hours, minutes = int(parts[0]), int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
        return now.replace(hour=hours, minute=minutes, second=seconds, microsecond=0)
    except ValueError:
        return None


def _find_stop(stops: List[StopRecord], role: StopRole) -> Optional[StopRecord]:
    for stop in stops:
        if stop.stop_role == role:
            return stop
    return None


def station_stops(stops: Iterable[StopRecord]) -> List[StopRecord]:
    """Drop timing points; only origin, stop and destination entries are stations."""
    return [stop for stop in stops if stop.location_role.is_station]


def estimate(
    stops: Iterable[StopRecord],
    reference: StationReference,
    now: Optional[datetime] = None,
) -> TrainPosition:
    """
    Compute where a train is along the reference line.

    Args:
        stops: Movement records for one train, in journey order.
        reference: Station ordering that defines the position coordinate space.
        now: Current time. Defaults to datetime.now().

    Returns:
        TrainPosition. Never raises for missing or inconsistent data; the
        result degrades instead (see TrainPosition.is_resolved).
    """
    stops = station_stops(stops)
    current_stop = _find_stop(stops, StopRole.CURRENT)
    next_stop = _find_stop(stops, StopRole.NEXT)

    if current_stop is None:
        logger.warning("Could not find current stop")
        return TrainPosition.unresolved()

    current_index = reference.index_of_code(current_stop.location_code)
    if current_index is None:
        logger.warning(
            f"Current station {current_stop.location_name} ({current_stop.location_code}) "
            f"not found in station reference"
        )
        return TrainPosition.unresolved(current_stop.location_name)

    current_name = reference.name_at(current_index)

    if next_stop is None:
        logger.info(f"Train may be at its destination ({current_name})")
        return TrainPosition(
            current_station_name=current_name,
            next_station_name=None,
            is_at_station=True,
            position=current_index,
        )

    next_index = reference.index_of_code(next_stop.location_code)
    if next_index is None:
        logger.warning(
            f"Next station {next_stop.location_name} ({next_stop.location_code}) "
            f"not found in station reference"
        )
        return TrainPosition(
            current_station_name=current_name,
            next_station_name=None,
            is_at_station=True,
            position=current_index,
        )

    next_name = reference.name_at(next_index)

    if not current_stop.has_departed:
        return TrainPosition(
            current_station_name=current_name,
            next_station_name=next_name,
            is_at_station=True,
            position=current_index,
        )

    now = now or datetime.now()
    actual_departure = parse_time(current_stop.actual_departure, now)
    expected_arrival = parse_time(next_stop.expected_arrival, now)

    if actual_departure is None or expected_arrival is None:
        logger.warning(
            f"Could not parse times (departure={current_stop.actual_departure!r}, "
            f"arrival={next_stop.expected_arrival!r})"
        )
        return TrainPosition(
            current_station_name=current_name,
            next_station_name=next_name,
            is_at_station=False,
            position=current_index,
        )

    total_duration = (expected_arrival - actual_departure).total_seconds()
    elapsed = (now - actual_departure).total_seconds()

    # Negative durations (e.g. across midnight) are left at zero progress
    progress = 0.0
    if total_duration > 0:
        progress = max(0.0, min(1.0, elapsed / total_duration))

    logger.debug(
        f"{current_name} -> {next_name}: departed {actual_departure:%H:%M:%S}, "
        f"due {expected_arrival:%H:%M:%S}, now {now:%H:%M:%S}, progress {progress:.1%}"
    )

    return TrainPosition(
        current_station_name=current_name,
        next_station_name=next_name,
        is_at_station=False,
        position=current_index + progress,
        progress=progress,
    )


def _matches_terminus(destination: str, terminus: str) -> bool:
    # "Bray" matches "Bray Daly", "Howth" matches "Howth"
    terminus = terminus.lower()
    return (
        destination == terminus
        or terminus.startswith(destination + " ")
        or destination.startswith(terminus + " ")
    )


def infer_direction(
    destination: Optional[str],
    reference: StationReference,
    current_index: Optional[int] = None,
) -> Direction:
    """
    Classify a train's direction from its destination.

    Destinations are checked against the reference's termini first. A
    destination that is an ordinary station on the line is placed by its
    index relative to ``current_index`` (lower index is further north).

    Args:
        destination: Train destination as given by the feed (name or code).
        reference: Station reference for the line.
        current_index: Train's current station index, if known.

    Returns:
        Direction.NORTHBOUND, Direction.SOUTHBOUND or Direction.UNDETERMINED.
    """
    if not destination or not destination.strip():
        return Direction.UNDETERMINED

    wanted = destination.strip().lower()

    for terminus in reference.northbound_termini:
        if _matches_terminus(wanted, terminus) or reference.code_for(terminus) == destination.strip():
            return Direction.NORTHBOUND
    for terminus in reference.southbound_termini:
        if _matches_terminus(wanted, terminus) or reference.code_for(terminus) == destination.strip():
            return Direction.SOUTHBOUND

    destination_index = reference.index_of_name(destination)
    if destination_index is None:
        destination_index = reference.index_of_code(destination.strip())

    if destination_index is not None and current_index is not None and current_index >= 0:
        if destination_index < current_index:
            return Direction.NORTHBOUND
        if destination_index > current_index:
            return Direction.SOUTHBOUND

    logger.debug(f"Could not determine direction for destination '{destination}'")
    return Direction.UNDETERMINED
