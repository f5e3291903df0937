"""Ordered station reference defining the coordinate space for train positions."""

import logging
import math
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .models import Station, StopRecord

logger = logging.getLogger(__name__)

# DART line, north to south
DART_STATION_CODES: Dict[str, str] = {
    "Malahide": "MLHDE",
    "Portmarnock": "PMRNK",
    "Clongriffin": "CLGRF",
    "Howth Junction & Donaghmede": "HWTHJ",
    "Kilbarrack": "KBRCK",
    "Raheny": "RAHNY",
    "Harmonstown": "HTOWN",
    "Killester": "KLSTR",
    "Clontarf Road": "CTARF",
    "Connolly": "CNLLY",
    "Tara Street": "TARA",
    "Pearse": "PERSE",
    "Grand Canal Dock": "GCDK",
    "Lansdowne Road": "LDWNE",
    "Sandymount": "SMONT",
    "Sydney Parade": "SIDNY",
    "Booterstown": "BTSTN",
    "Blackrock": "BROCK",
    "Seapoint": "SEAPT",
    "Salthill & Monkstown": "SHILL",
    "Dun Laoghaire": "DLERY",
    "Sandycove & Glasthule": "SCOVE",
    "Glenageary": "GLGRY",
    "Dalkey": "DLKEY",
    "Killiney": "KILNY",
    "Shankill": "SKILL",
    "Woodbrook": "WBROK",
    "Bray Daly": "BRAY",
    "Greystones": "GSTNS",
}

# Howth branch trains terminate off the main sequence
DART_NORTHBOUND_TERMINI = ("Malahide", "Howth")
DART_SOUTHBOUND_TERMINI = ("Greystones", "Bray Daly")

# Accepted column spellings for station reference CSV files
CSV_COLUMN_ALIASES = {
    "station_name": "name",
    "stationdesc": "name",
    "station_desc": "name",
    "station_code": "code",
    "stationcode": "code",
}

KM_PER_DEGREE_LAT = 111.0


class StationReference:
    """
    Immutable, ordered name -> code mapping for one line.

    The index of a station in this sequence is the unit in which train
    positions are reported. Stations are ordered north to south, so the first
    station is the default northbound terminus and the last the southbound one.
    """

    def __init__(
        self,
        pairs: Iterable[Tuple[str, str]],
        northbound_termini: Optional[Sequence[str]] = None,
        southbound_termini: Optional[Sequence[str]] = None,
    ):
        """
        Args:
            pairs: Ordered (station name, station code) pairs.
            northbound_termini: Destination names meaning "northbound". Defaults
                to the first station.
            southbound_termini: Destination names meaning "southbound". Defaults
                to the last station.

        Raises:
            ValueError: If a name or code appears twice.
        """
        names: List[str] = []
        codes: List[str] = []
        for name, code in pairs:
            if name in names:
                raise ValueError(f"Duplicate station name '{name}'")
            if code in codes:
                raise ValueError(f"Duplicate station code '{code}'")
            names.append(name)
            codes.append(code)

        self._names: Tuple[str, ...] = tuple(names)
        self._codes: Tuple[str, ...] = tuple(codes)
        self._index_by_code: Dict[str, int] = {code: i for i, code in enumerate(codes)}

        if northbound_termini is None:
            northbound_termini = self._names[:1]
        if southbound_termini is None:
            southbound_termini = self._names[-1:]
        self.northbound_termini: Tuple[str, ...] = tuple(northbound_termini)
        self.southbound_termini: Tuple[str, ...] = tuple(southbound_termini)

    @classmethod
    def dart(cls) -> "StationReference":
        """The DART line from Malahide to Greystones."""
        return cls(
            DART_STATION_CODES.items(),
            northbound_termini=DART_NORTHBOUND_TERMINI,
            southbound_termini=DART_SOUTHBOUND_TERMINI,
        )

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]], **kwargs) -> "StationReference":
        return cls(pairs, **kwargs)

    @classmethod
    def from_movements(cls, stops: Iterable[StopRecord], **kwargs) -> "StationReference":
        """
        Build a reference from a train's own journey.

        Timing points are skipped. If the feed repeats a code, the first
        occurrence wins. Journey order says nothing about north and south,
        so no termini are set unless passed in.
        """
        pairs: List[Tuple[str, str]] = []
        seen_codes = set()
        seen_names = set()
        for stop in stops:
            if not stop.location_role.is_station:
                continue
            if stop.location_code in seen_codes or stop.location_name in seen_names:
                continue
            seen_codes.add(stop.location_code)
            seen_names.add(stop.location_name)
            pairs.append((stop.location_name, stop.location_code))

        kwargs.setdefault("northbound_termini", ())
        kwargs.setdefault("southbound_termini", ())
        logger.debug(f"Built station reference with {len(pairs)} stations from movements")
        return cls(pairs, **kwargs)

    @classmethod
    def from_csv(cls, path: Union[str, Path], **kwargs) -> "StationReference":
        """
        Load a reference from a CSV file with ``name`` and ``code`` columns.

        Rows are taken in file order. Alternative column spellings such as
        ``station_name``/``StationCode`` are accepted.

        Raises:
            ValueError: If the name or code column is missing.
        """
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        df = df.rename(columns=lambda col: col.strip().lower())
        df = df.rename(columns={
            old: new for old, new in CSV_COLUMN_ALIASES.items()
            if old in df.columns and new not in df.columns
        })

        for col in ("name", "code"):
            if col not in df.columns:
                raise ValueError(f"Station reference file {path} is missing a '{col}' column")

        df["name"] = df["name"].str.strip()
        df["code"] = df["code"].str.strip()
        df = df[(df["name"] != "") & (df["code"] != "")]

        logger.info(f"Loaded {len(df)} stations from {path}")
        return cls(zip(df["name"], df["code"]), **kwargs)

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def codes(self) -> Tuple[str, ...]:
        return self._codes

    def index_of_code(self, code: str) -> Optional[int]:
        """Index of the station with this code, or None if unknown."""
        return self._index_by_code.get(code)

    def index_of_name(self, name: str) -> Optional[int]:
        """Index of the station with this name (case-insensitive), or None."""
        wanted = name.strip().lower()
        for i, station_name in enumerate(self._names):
            if station_name.lower() == wanted:
                return i
        return None

    def name_at(self, index: int) -> str:
        return self._names[index]

    def code_for(self, name: str) -> Optional[str]:
        index = self.index_of_name(name)
        return None if index is None else self._codes[index]

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, code: object) -> bool:
        return code in self._index_by_code

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(zip(self._names, self._codes))

    def __repr__(self) -> str:
        return f"StationReference({len(self)} stations)"


def _distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    # Equirectangular approximation, fine at city scale
    d_lat = (lat2 - lat1) * KM_PER_DEGREE_LAT
    d_lon = (lon2 - lon1) * KM_PER_DEGREE_LAT * math.cos(math.radians(lat1))
    return math.sqrt(d_lat * d_lat + d_lon * d_lon)


def find_closest_station(
    stations: Iterable[Station], latitude: float, longitude: float
) -> Optional[Station]:
    """
    Find the catalog station nearest to a coordinate.

    Args:
        stations: Station catalog (e.g. from IrishRailClient.get_all_stations()).
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.

    Returns:
        Closest Station, or None if the catalog is empty.
    """
    closest: Optional[Station] = None
    min_distance = math.inf

    for station in stations:
        distance = _distance_km(latitude, longitude, station.latitude, station.longitude)
        if distance < min_distance:
            min_distance = distance
            closest = station

    return closest
