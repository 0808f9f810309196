from pathlib import Path

import pytest

from globe_flight.config import FlightConfig
from globe_flight.exceptions import InvalidConfigError
from globe_flight.helpers import FlightMode

import fly_schedule

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "flight_config.yaml"


def test_defaults():
    config = FlightConfig()
    assert config.speed == 0.002
    assert config.trail_capacity == 50
    assert config.globe_radius * config.surface_offset == pytest.approx(5.05)


def test_from_dict_coerces_and_ignores_unknown_keys():
    config = FlightConfig.from_dict({"speed": "0.01", "trail_capacity": 20.0, "colour": "red"})
    assert config.speed == 0.01
    assert config.trail_capacity == 20
    assert FlightConfig.from_dict(None) == FlightConfig()


@pytest.mark.parametrize("values", [
    {"speed": 0},
    {"globe_radius": -1},
    {"trail_capacity": 0},
    {"surface_offset": 0.9},
    {"speed": "fast"},
])
def test_invalid_values_rejected(values):
    with pytest.raises(InvalidConfigError):
        FlightConfig.from_dict(values)


def test_repo_config_builds_a_flying_controller():
    config = fly_schedule.read_config(str(CONFIG_PATH))
    controller = fly_schedule.build_controller(config)

    assert controller.id_tag == "PLANE-1"
    assert [wp.name for wp in controller.sequencer.schedule] == ["airport_a", "airport_b"] * 3
    # Same airport object every time it is visited
    assert controller.sequencer.schedule[0] is controller.sequencer.schedule[2]

    ticks = fly_schedule.run_headless(controller, max_ticks=10_000)
    assert ticks == 5 * 500
    assert controller.flight_mode == FlightMode.HALTED


def test_unknown_waypoint_in_schedule():
    config = {"waypoints": {"a": [0, 0]}, "schedule": ["a", "b"]}
    with pytest.raises(InvalidConfigError):
        fly_schedule.build_controller(config)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        fly_schedule.read_config(str(tmp_path / "nope.yaml"))
