from globe_flight.helpers import CartesianPoint, Waypoint
from globe_flight.wp_manager import WaypointSequencer


def make_waypoints(n):
    return [Waypoint(CartesianPoint(0.0, 0.0, 5.0), name=f"wp{i}") for i in range(n)]


def test_initial_leg_and_advance():
    a, b, c = make_waypoints(3)
    seq = WaypointSequencer([a, b, c])
    assert seq.current_leg() is None

    assert seq.ensure_initial_leg()
    assert seq.current_leg() == (a, b)
    # Already set up
    assert seq.ensure_initial_leg()
    assert seq.current_leg() == (a, b)

    assert seq.advance()
    assert seq.cursor == 1
    assert seq.current_leg() == (b, c)
    assert seq.remaining_legs() == 0

    assert not seq.advance()
    assert seq.cursor == 1
    assert seq.current_leg() == (b, c)


def test_short_schedules_are_a_no_op():
    seq = WaypointSequencer()
    assert not seq.ensure_initial_leg()
    assert not seq.advance()

    seq.set_schedule(make_waypoints(1))
    assert not seq.ensure_initial_leg()
    assert not seq.advance()
    assert seq.current_leg() is None
    assert seq.cursor == 0


def test_set_schedule_resets_cursor():
    first = make_waypoints(4)
    seq = WaypointSequencer(first)
    seq.ensure_initial_leg()
    seq.advance()
    seq.advance()

    second = make_waypoints(2)
    seq.set_schedule(second)
    assert seq.cursor == 0
    assert seq.current_leg() is None
    seq.ensure_initial_leg()
    assert seq.current_leg() == (second[0], second[1])


def test_appended_waypoint_extends_the_flight():
    a, b, c = make_waypoints(3)
    seq = WaypointSequencer([a, b])
    seq.ensure_initial_leg()
    seq.add_waypoint(c)
    assert seq.advance()
    assert seq.current_leg() == (b, c)
