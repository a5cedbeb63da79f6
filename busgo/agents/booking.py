from dataclasses import dataclass
from typing import Optional

from busgo import config
from busgo.entities import ExtractedInfo, Reservation, Route
from busgo.providers.base import RouteInventory

PLACEHOLDER = "Unknown"


@dataclass(frozen=True)
class SeatPolicy:
    """
    Seats run left to right, row by row, starting at 1. With four across,
    seat % 4 gives the column class: {0, 1} window, {2, 3} aisle.
    """
    seats_per_row: int = config.SEATS_PER_ROW
    window_columns: tuple[int, ...] = config.WINDOW_COLUMNS
    aisle_columns: tuple[int, ...] = config.AISLE_COLUMNS

    def pick(self, available: list[int], preference: Optional[str]) -> int:
        pref = (preference or "").lower()
        if "window" in pref:
            columns = self.window_columns
        elif "aisle" in pref:
            columns = self.aisle_columns
        else:
            return available[0]

        matching = [s for s in available if s % self.seats_per_row in columns]
        return matching[0] if matching else available[0]


@dataclass(frozen=True)
class BookingOutcome:
    message: str
    route: Optional[Route] = None
    reservation: Optional[Reservation] = None

    @property
    def booked(self) -> bool:
        return self.reservation is not None


def render_confirmation(route: Route, reservation: Reservation) -> str:
    return (
        "Booking Confirmed!\n"
        f"- Passenger: {reservation.name}\n"
        f"- From: {route.origin}\n"
        f"- To: {route.destination}\n"
        f"- Date: {reservation.travel_date}\n"
        f"- Departure: {route.departure_time}\n"
        f"- Seat: {reservation.seat_number}\n"
        f"- Price: ${route.price:.2f}\n"
        f"- Reservation ID: {reservation.id}"
    )


def run_booking_agent(
    store: RouteInventory,
    info: ExtractedInfo,
    policy: Optional[SeatPolicy] = None,
) -> BookingOutcome:
    policy = policy or SeatPolicy()

    destination = info.destination or ""
    routes = store.find_routes_by_destination(destination)
    if not routes:
        return BookingOutcome(f"No routes found for {destination}")

    route = routes[0]
    travel_date = info.travel_date or ""
    seats = store.available_seats(route.id, travel_date)
    if not seats:
        return BookingOutcome("No seats available", route=route)

    seat = policy.pick(seats, info.seat_preference)
    reservation = store.create_reservation(
        info.name or PLACEHOLDER,
        info.phone or PLACEHOLDER,
        route.id,
        travel_date,
        seat,
    )
    return BookingOutcome(render_confirmation(route, reservation), route, reservation)
