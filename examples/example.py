"""Example usage of TrainTracker."""

import logging
import sys
import time
from pathlib import Path

# Add src to path so we can import darttrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from darttrack.irish_rail_client import IrishRailError
from darttrack.station_reference import StationReference
from darttrack.train_tracker import TrainTracker

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 10  # Seconds


def draw_line(reference: StationReference, position: float, width: int = 58) -> str:
    """Render the train as a marker on a one-line strip of the DART line."""
    if len(reference) < 2:
        return ""
    slot = round(position / (len(reference) - 1) * (width - 1))
    return "N |" + "".join("#" if i == slot else "-" for i in range(width)) + "| S"


def print_train_status(tracker: TrainTracker, train_code: str) -> None:
    """
    Fetch and display the position of one train.

    Args:
        tracker: TrainTracker to poll with.
        train_code: Train identifier (e.g., "E109").
    """
    status = tracker.track(train_code)
    if status is None:
        print(f"No movement data yet for train {train_code}; trying again shortly.")
        return

    position = status.position
    print(f"\n{'='*70}")
    print(f"Train {status.train_code} to {status.destination} ({status.direction.value})")
    print(f"Updated: {status.last_updated.strftime('%H:%M:%S')}")

    if not position.is_resolved:
        where = position.current_station_name or "unknown"
        print(f"Position unavailable (current stop: {where})")
        return

    if position.is_at_station:
        print(f"At {position.current_station_name}")
    else:
        print(
            f"Between {position.current_station_name} and {position.next_station_name} "
            f"({position.progress:.0%})"
        )
    if position.next_station_name:
        print(f"Next stop: {position.next_station_name}")

    print(draw_line(tracker.reference, position.position))


def list_running_trains(tracker: TrainTracker) -> None:
    trains = tracker.running_trains()
    if not trains:
        print("No DART trains currently running.")
        return

    print(f"Found {len(trains)} running DART train(s):\n")
    for train in trains:
        print(f"  {train.train_code:6s} {train.direction:11s} {train.status}")


def main():
    tracker = TrainTracker(reference=StationReference.dart())

    if len(sys.argv) < 2:
        print("Usage: python examples/example.py <TrainCode>\n")
        list_running_trains(tracker)
        return

    train_code = sys.argv[1].upper()
    try:
        while True:
            try:
                print_train_status(tracker, train_code)
            except IrishRailError as e:
                print(f"Error: {e}")
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    finally:
        tracker.cleanup()


if __name__ == "__main__":
    main()
