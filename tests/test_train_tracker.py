"""Tests for TrainTracker."""

import unittest
from unittest.mock import MagicMock, patch
from datetime import datetime
import sys
from pathlib import Path

# Add src to path so we can import darttrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from darttrack.irish_rail_client import IrishRailClient, IrishRailError
from darttrack.models import Direction, LocationRole, Station, StopRecord, StopRole
from darttrack.station_reference import StationReference
from darttrack.train_tracker import TrainTracker

NOW = datetime(2026, 10, 19, 10, 2, 0)


def journey(destination="Bray"):
    def stop(code, name, order, role=LocationRole.STOP, stop_role=StopRole.NONE, **times):
        return StopRecord(
            location_code=code,
            location_name=name,
            location_order=order,
            location_role=role,
            stop_role=stop_role,
            train_code="E109",
            train_origin="Howth",
            train_destination=destination,
            **times,
        )

    return [
        stop("CTARF", "Clontarf Road", 1, role=LocationRole.ORIGIN),
        stop("CNLLY", "Connolly", 2, stop_role=StopRole.CURRENT, actual_departure="10:00:00"),
        stop("DCSJN", "Docklands Junction", 3, role=LocationRole.TIMING_POINT),
        stop("TARA", "Tara Street", 4, stop_role=StopRole.NEXT, expected_arrival="10:04:00"),
        stop("BRAY", "Bray Daly", 5, role=LocationRole.DESTINATION),
    ]


def northbound_journey(destination="Malahide"):
    def stop(code, name, order, role=LocationRole.STOP, stop_role=StopRole.NONE, **times):
        return StopRecord(
            location_code=code,
            location_name=name,
            location_order=order,
            location_role=role,
            stop_role=stop_role,
            train_code="E210",
            train_origin="Bray",
            train_destination=destination,
            **times,
        )

    return [
        stop("BRAY", "Bray Daly", 1, role=LocationRole.ORIGIN),
        stop("TARA", "Tara Street", 2, stop_role=StopRole.CURRENT, actual_departure="10:00:00"),
        stop("CNLLY", "Connolly", 3, stop_role=StopRole.NEXT, expected_arrival="10:04:00"),
        stop("MLHDE", "Malahide", 4, role=LocationRole.DESTINATION),
    ]


class TestTrainTracker(unittest.TestCase):
    """Test one-poll train tracking."""

    def setUp(self):
        self.client = MagicMock(spec=IrishRailClient)
        self.tracker = TrainTracker(client=self.client, reference=StationReference.dart())

    def test_track_interpolates_on_reference(self):
        self.client.get_train_movements.return_value = journey()

        status = self.tracker.track("E109", now=NOW)

        self.client.get_train_movements.assert_called_once_with("E109", None)
        self.assertEqual(status.train_code, "E109")
        self.assertAlmostEqual(status.position.position, 9.5)
        self.assertFalse(status.position.is_at_station)
        self.assertEqual(status.direction, Direction.SOUTHBOUND)
        self.assertEqual(status.destination, "Bray")
        self.assertEqual(status.last_updated, NOW)
        self.assertNotIn("DCSJN", [s.location_code for s in status.stops])
        self.assertEqual(len(status.stops), 4)

    def test_track_without_reference_uses_train_stops(self):
        self.client.get_train_movements.return_value = journey()
        tracker = TrainTracker(client=self.client)

        status = tracker.track("E109", now=NOW)

        # Clontarf Road 0, Connolly 1, Tara Street 2, Bray Daly 3
        self.assertAlmostEqual(status.position.position, 1.5)
        self.assertEqual(status.position.next_station_name, "Tara Street")
        self.assertEqual(status.direction, Direction.SOUTHBOUND)

    def test_track_without_reference_northbound(self):
        self.client.get_train_movements.return_value = northbound_journey()
        tracker = TrainTracker(client=self.client)

        status = tracker.track("E210", now=NOW)

        # Bray Daly 0, Tara Street 1, Connolly 2, Malahide 3
        self.assertAlmostEqual(status.position.position, 1.5)
        self.assertEqual(status.position.next_station_name, "Connolly")
        self.assertEqual(status.direction, Direction.NORTHBOUND)

    def test_track_without_reference_intermediate_destination(self):
        self.client.get_train_movements.return_value = northbound_journey(destination="Raheny")
        status = TrainTracker(client=self.client).track("E210", now=NOW)
        self.assertEqual(status.direction, Direction.NORTHBOUND)

    def test_track_without_reference_unknown_destination(self):
        self.client.get_train_movements.return_value = northbound_journey(destination="Maynooth")
        status = TrainTracker(client=self.client).track("E210", now=NOW)
        self.assertEqual(status.direction, Direction.UNDETERMINED)

    def test_direction_reference_can_be_configured(self):
        self.client.get_train_movements.return_value = northbound_journey()
        line = StationReference.from_pairs(
            [("Malahide", "MLHDE"), ("Connolly", "CNLLY"), ("Tara Street", "TARA")],
            northbound_termini=(),
            southbound_termini=("Malahide",),
        )
        tracker = TrainTracker(client=self.client, direction_reference=line)

        status = tracker.track("E210", now=NOW)

        self.assertEqual(status.direction, Direction.SOUTHBOUND)

    def test_empty_reference_is_kept(self):
        self.client.get_train_movements.return_value = journey()
        tracker = TrainTracker(client=self.client, reference=StationReference([]))

        status = tracker.track("E109", now=NOW)

        self.assertFalse(status.position.is_resolved)
        self.assertEqual(status.position.current_station_name, "Connolly")
        self.assertEqual(status.direction, Direction.UNDETERMINED)

    def test_northbound_destination(self):
        self.client.get_train_movements.return_value = journey(destination="Malahide")
        status = self.tracker.track("E109", now=NOW)
        self.assertEqual(status.direction, Direction.NORTHBOUND)

    def test_unresolved_position_has_undetermined_direction_for_unknown_destination(self):
        stops = journey(destination="Maynooth")
        for stop in stops:
            stop.stop_role = StopRole.NONE
        self.client.get_train_movements.return_value = stops

        status = self.tracker.track("E109", now=NOW)

        self.assertFalse(status.position.is_resolved)
        self.assertEqual(status.direction, Direction.UNDETERMINED)

    def test_no_data_returns_none(self):
        self.client.get_train_movements.return_value = []
        self.assertIsNone(self.tracker.track("E999", "1 Jan 2026"))

    def test_fetch_errors_propagate(self):
        self.client.get_train_movements.side_effect = IrishRailError("down")
        with self.assertRaises(IrishRailError):
            self.tracker.track("E109")

    def test_running_trains(self):
        self.client.get_current_trains.return_value = []
        self.assertEqual(self.tracker.running_trains("E1"), [])
        self.client.get_current_trains.assert_called_once_with(code_filter="E1")

    def test_closest_station(self):
        self.client.get_all_stations.return_value = [
            Station(code="CNLLY", name="Connolly", station_id="1", latitude=53.3531, longitude=-6.2464),
            Station(code="BRAY", name="Bray Daly", station_id="2", latitude=53.2043, longitude=-6.1005),
        ]
        station = self.tracker.closest_station(53.2, -6.11)
        self.assertEqual(station.code, "BRAY")

    def test_cleanup_clears_cache_and_closes_client(self):
        self.tracker.cleanup()
        self.client.clear_cache.assert_called_once_with()
        self.client.close.assert_called_once_with()

    @patch("darttrack.train_tracker.IrishRailClient")
    def test_default_client(self, mock_client_cls):
        tracker = TrainTracker()
        self.assertIs(tracker.client, mock_client_cls.return_value)
        self.assertIsNone(tracker.reference)
        self.assertEqual(tracker.direction_reference.codes, StationReference.dart().codes)


if __name__ == "__main__":
    unittest.main()
