"""Normalizes Irish Rail train movement records into StopRecord objects."""

import logging
import xml.etree.ElementTree as ET
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import NOT_AVAILABLE, LocationRole, StopRecord, StopRole

logger = logging.getLogger(__name__)

MOVEMENT_RECORD_TAG = "objTrainMovements"

# The feed only accepts English month names, whatever the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

RawRecords = Union[None, Mapping[str, Any], Iterable[Mapping[str, Any]]]


def default_train_date(today: Optional[date] = None) -> str:
    """
    Format a date the way the movements feed expects it.

    Args:
        today: Date to format. Defaults to the current local date.

    Returns:
        en-GB short form with no leading zero on the day, e.g. "5 Oct 2026".
    """
    today = today or date.today()
    return f"{today.day} {MONTH_ABBREVIATIONS[today.month - 1]} {today.year}"


def _local_name(tag: str) -> str:
    # "{http://api.irishrail.ie/realtime/}LocationCode" -> "LocationCode"
    return tag.rsplit("}", 1)[-1]


def xml_records(xml_text: str, record_tag: str) -> List[Dict[str, str]]:
    """
    Decode a feed XML document into one flat dict per record element.

    Entity escaping (&amp; etc.) is decoded by the XML parser. Blank or
    malformed documents are logged and yield an empty list.

    Args:
        xml_text: Raw XML returned by the feed.
        record_tag: Local name of the record element (e.g. "objTrainMovements").

    Returns:
        List of {child tag: text} dicts in document order.
    """
    if not xml_text or not xml_text.strip():
        return []

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.error(f"Failed to parse feed XML: {e}")
        return []

    records: List[Dict[str, str]] = []
    for element in root.iter():
        if _local_name(element.tag).lower() != record_tag.lower():
            continue
        records.append({
            _local_name(child.tag): (child.text or "").strip()
            for child in element
        })

    logger.debug(f"Decoded {len(records)} <{record_tag}> records")
    return records


def as_record_list(records: RawRecords) -> List[Mapping[str, Any]]:
    """The feed returns a bare object instead of a list when there is one record."""
    if records is None:
        return []
    if isinstance(records, Mapping):
        return [records]
    return list(records)


def lowercase_keys(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in record.items()}


def field_value(record: Mapping[str, Any], *names: str, default: str = "") -> str:
    """Look up the first present field among ``names`` (record keys already lowercased)."""
    for name in names:
        value = record.get(name.lower())
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return default


def _time_value(record: Mapping[str, Any], *names: str) -> str:
    return field_value(record, *names, default=NOT_AVAILABLE)


def _parse_order(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_movement(record: Mapping[str, Any]) -> StopRecord:
    """Convert one raw movement mapping into a StopRecord."""
    fields = lowercase_keys(record)

    return StopRecord(
        location_code=field_value(fields, "LocationCode"),
        location_name=field_value(fields, "LocationFullName", "LocationName"),
        location_order=_parse_order(field_value(fields, "LocationOrder")),
        location_role=LocationRole.from_code(field_value(fields, "LocationType")),
        stop_role=StopRole.from_code(field_value(fields, "StopType")),
        scheduled_arrival=_time_value(fields, "ScheduledArrival"),
        scheduled_departure=_time_value(fields, "ScheduledDeparture"),
        expected_arrival=_time_value(fields, "ExpectedArrival"),
        expected_departure=_time_value(fields, "ExpectedDeparture"),
        actual_arrival=_time_value(fields, "Arrival"),
        actual_departure=_time_value(fields, "Departure"),
        auto_arrival=_time_value(fields, "AutoArrival"),
        auto_depart=_time_value(fields, "AutoDepart"),
        train_code=field_value(fields, "TrainCode"),
        train_date=field_value(fields, "TrainDate"),
        train_origin=field_value(fields, "TrainOrigin"),
        train_destination=field_value(fields, "TrainDestination"),
    )


def parse_movements(records: RawRecords) -> List[StopRecord]:
    """
    Normalize raw movement records for one train into StopRecords.

    Args:
        records: None, a single record mapping, or a list of them. Field
                 names may use any casing (e.g. "LocationCode" or "Locationcode").

    Returns:
        StopRecords in feed order (journey order). Empty when there is no data.
    """
    stops = [parse_movement(record) for record in as_record_list(records)]
    if not stops:
        logger.debug("No movement records to parse")
    return stops


def parse_movements_xml(xml_text: str) -> List[StopRecord]:
    """Parse a getTrainMovementsXML document into StopRecords."""
    return parse_movements(xml_records(xml_text, MOVEMENT_RECORD_TAG))
