from dataclasses import replace

from busgo.agents.booking import SeatPolicy, run_booking_agent
from busgo.entities import ExtractedInfo, Route
from busgo.providers.inventory import InventoryStore

WINDOW_SEATS = [s for s in range(1, 41) if s % 4 in (0, 1)]
AISLE_SEATS = [s for s in range(1, 41) if s % 4 in (2, 3)]


def _fill(store, route_id, date, seats):
    for s in seats:
        store.create_reservation("X", "0", route_id, date, s)


class TestScenarios:
    def test_boston_window_gets_seat_one(self, boston_info):
        store = InventoryStore(routes=[Route("route1", "New York", "Boston", "08:00", "12:00", 45)])

        outcome = run_booking_agent(store, boston_info)

        assert outcome.booked
        assert outcome.reservation.seat_number == 1
        assert len(store.list_reservations()) == 1
        for part in ("New York", "Boston", "45", outcome.reservation.id, "Jane Doe", "08:00", "2024-05-01"):
            assert part in outcome.message

    def test_unknown_destination(self, store, boston_info):
        outcome = run_booking_agent(store, replace(boston_info, destination="Nowhereville"))

        assert outcome.message == "No routes found for Nowhereville"
        assert not outcome.booked
        assert store.list_reservations() == []

    def test_sold_out(self, store, boston_info):
        _fill(store, "route1", "2024-05-01", range(1, 41))

        outcome = run_booking_agent(store, boston_info)

        assert outcome.message == "No seats available"
        assert not outcome.booked
        assert len(store.list_reservations()) == 40

    def test_missing_destination_matches_every_route(self, store):
        # "" is a substring of every destination, so the first route is used
        outcome = run_booking_agent(store, ExtractedInfo(name="Jane", travel_date="2024-05-01"))

        assert outcome.booked
        assert outcome.route.id == "route1"
        assert "No routes found" not in outcome.message
        assert outcome.reservation.phone == "Unknown"


class TestSeatPreference:
    def test_window_seat_class(self, store, boston_info):
        _fill(store, "route1", "2024-05-01", [1, 4])
        outcome = run_booking_agent(store, boston_info)
        assert outcome.reservation.seat_number == 5
        assert outcome.reservation.seat_number % 4 in (0, 1)

    def test_aisle_seat_class(self, store, boston_info):
        outcome = run_booking_agent(store, replace(boston_info, seat_preference="Aisle please"))
        assert outcome.reservation.seat_number == 2
        assert outcome.reservation.seat_number % 4 in (2, 3)

    def test_window_falls_back_to_lowest_seat(self, store, boston_info):
        _fill(store, "route1", "2024-05-01", WINDOW_SEATS)
        outcome = run_booking_agent(store, boston_info)
        assert outcome.reservation.seat_number == 2

    def test_aisle_falls_back_to_lowest_seat(self, store, boston_info):
        _fill(store, "route1", "2024-05-01", AISLE_SEATS)
        outcome = run_booking_agent(store, replace(boston_info, seat_preference="aisle"))
        assert outcome.reservation.seat_number == 1

    def test_no_preference_takes_lowest_available(self, store, boston_info):
        _fill(store, "route1", "2024-05-01", [1, 2, 3])
        before = store.available_seats("route1", "2024-05-01")

        outcome = run_booking_agent(store, replace(boston_info, seat_preference="seat 12"))

        assert outcome.reservation.seat_number == min(before)
        assert outcome.reservation.seat_number in before

    def test_custom_policy(self):
        policy = SeatPolicy(seats_per_row=3, window_columns=(0, 1), aisle_columns=(2,))
        assert policy.pick([1, 2, 3, 4], "aisle") == 2
        assert policy.pick([2, 5], "window") == 2  # no window seat -> lowest


class TestDefaults:
    def test_missing_name_and_phone_use_placeholder(self, store):
        info = ExtractedInfo(destination="boston", travel_date="tomorrow")

        outcome = run_booking_agent(store, info)

        assert outcome.reservation.name == "Unknown"
        assert outcome.reservation.phone == "Unknown"
        assert outcome.route.id == "route1"

    def test_first_route_in_store_order_wins(self, store, boston_info):
        outcome = run_booking_agent(store, replace(boston_info, destination="Washington"))
        assert outcome.route.id == "route2"
