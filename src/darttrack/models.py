"""Data models for DART train tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

# Sentinel the feed uses for a time that has not happened (or is not known)
NOT_AVAILABLE = "N/A"

# Position reported when the current stop cannot be placed on the line
UNRESOLVED_POSITION = -1


class LocationRole(Enum):
    """Role of a location along a train's journey (feed ``LocationType``)."""
    ORIGIN = "O"
    STOP = "S"
    TIMING_POINT = "T"  # Non-stopping waypoint, not a station
    DESTINATION = "D"
    UNKNOWN = "?"

    @classmethod
    def from_code(cls, code: str) -> "LocationRole":
        for role in cls:
            if role.value == (code or "").strip().upper():
                return role
        return cls.UNKNOWN

    @property
    def is_station(self) -> bool:
        return self in (LocationRole.ORIGIN, LocationRole.STOP, LocationRole.DESTINATION)


class StopRole(Enum):
    """Whether a location is where the train is, where it is headed, or neither."""
    CURRENT = "C"
    NEXT = "N"
    NONE = ""

    @classmethod
    def from_code(cls, code: str) -> "StopRole":
        code = (code or "").strip().upper()
        if code == "C":
            return cls.CURRENT
        if code == "N":
            return cls.NEXT
        return cls.NONE


class Direction(Enum):
    NORTHBOUND = "Northbound"
    SOUTHBOUND = "Southbound"
    UNDETERMINED = "Undetermined"


@dataclass
class StopRecord:
    """One location along a train's journey for a given date."""
    location_code: str
    location_name: str
    location_order: Optional[int]
    location_role: LocationRole
    stop_role: StopRole = StopRole.NONE
    scheduled_arrival: str = NOT_AVAILABLE
    scheduled_departure: str = NOT_AVAILABLE
    expected_arrival: str = NOT_AVAILABLE
    expected_departure: str = NOT_AVAILABLE
    actual_arrival: str = NOT_AVAILABLE
    actual_departure: str = NOT_AVAILABLE
    auto_arrival: str = NOT_AVAILABLE
    auto_depart: str = NOT_AVAILABLE
    train_code: str = ""
    train_date: str = ""
    train_origin: str = ""
    train_destination: str = ""

    @property
    def has_departed(self) -> bool:
        return bool(self.actual_departure) and self.actual_departure != NOT_AVAILABLE


@dataclass(frozen=True)
class TrainPosition:
    """Where a train sits on the line, in station-reference index units."""
    current_station_name: Optional[str]
    next_station_name: Optional[str]
    is_at_station: bool
    position: float  # Station index + fraction toward the next station
    progress: float = 0.0  # Raw 0-1 fraction between current and next station

    @property
    def is_resolved(self) -> bool:
        return self.position != UNRESOLVED_POSITION

    @classmethod
    def unresolved(cls, current_station_name: Optional[str] = None) -> "TrainPosition":
        return cls(
            current_station_name=current_station_name,
            next_station_name=None,
            is_at_station=True,
            position=UNRESOLVED_POSITION,
        )


@dataclass
class Station:
    """Represents a station from the Irish Rail station catalog."""
    code: str
    name: str
    station_id: str
    latitude: float
    longitude: float


@dataclass
class RunningTrain:
    """A train currently running on the network."""
    train_code: str
    status: str
    latitude: Optional[float]
    longitude: Optional[float]
    train_date: str
    public_message: str
    direction: str


@dataclass
class StationTrain:
    """One row of a station arrivals board."""
    train_code: str
    station_name: str
    station_code: str
    origin: str
    destination: str
    status: str
    due_in: Optional[int]  # Minutes
    late: Optional[int]  # Minutes
    expected_arrival: str
    expected_departure: str
    scheduled_arrival: str
    scheduled_departure: str
    direction: str
    train_type: str
    location_type: str
    last_location: str = ""
    train_date: str = ""
    server_time: str = ""
    query_time: str = ""


@dataclass
class TrainStatus:
    """Result of one tracking poll for a train."""
    train_code: str
    position: TrainPosition
    direction: Direction
    destination: str
    stops: List[StopRecord] = field(default_factory=list)  # Station stops only, feed order
    last_updated: datetime = field(default_factory=datetime.now)
