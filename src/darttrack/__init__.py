"""DartTrack - Live DART train position tracking."""

__version__ = "0.1.0"

from .models import (
    Direction,
    LocationRole,
    RunningTrain,
    Station,
    StationTrain,
    StopRecord,
    StopRole,
    TrainPosition,
    TrainStatus,
)
from .movement_parser import parse_movements, parse_movements_xml
from .position_estimator import estimate, infer_direction
from .station_reference import StationReference, find_closest_station
from .irish_rail_client import IrishRailClient, IrishRailError
from .train_tracker import TrainTracker

__all__ = [
    "TrainTracker",
    "IrishRailClient",
    "IrishRailError",
    "StationReference",
    "estimate",
    "infer_direction",
    "parse_movements",
    "parse_movements_xml",
    "find_closest_station",
    "StopRecord",
    "TrainPosition",
    "TrainStatus",
    "Station",
    "RunningTrain",
    "StationTrain",
    "LocationRole",
    "StopRole",
    "Direction",
]
