import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from busgo import config
from busgo.entities import Route, Reservation
from busgo.providers.base import RouteInventory

logger = logging.getLogger(__name__)

ROUTES_FILE = "bus_routes.json"
RESERVATIONS_FILE = "reservations.json"


def default_routes() -> list[Route]:
    return [
        Route("route1", "New York", "Boston", "08:00", "12:00", 45.00),
        Route("route2", "Boston", "Washington DC", "10:00", "15:30", 55.00),
        Route("route3", "New York", "Washington DC", "09:00", "13:30", 50.00),
    ]


class InventoryStore(RouteInventory):
    """
    Routes plus an append-only reservation list.

    With a data_dir, both lists are backed by flat JSON files:
    - bus_routes.json is read once (written with defaults when missing)
    - reservations.json is rewritten in full after every new reservation
    An existing file that cannot be parsed is renamed to <name>.corrupt
    before a fresh one is written.
    Without one, everything stays in memory.

    Booking is check-then-act: available_seats() and create_reservation()
    are separate calls and nothing locks between them.
    """

    def __init__(
        self,
        routes: Optional[Iterable[Route]] = None,
        data_dir: Optional[str] = None,
        seat_count: int = config.SEAT_COUNT,
    ):
        self.data_dir = data_dir
        self.seat_count = seat_count
        self._routes: list[Route] = list(routes) if routes is not None else default_routes()
        self._reservations: list[Reservation] = []

        if self.data_dir:
            self._ensure_data_dir()
            seed = list(self._routes)
            self._routes = self._load(
                ROUTES_FILE,
                lambda: seed,
                lambda items: [Route.from_dict(x) for x in items],
                lambda routes: [r.to_dict() for r in routes],
            )
            self._reservations = self._load(
                RESERVATIONS_FILE,
                list,
                lambda items: [Reservation.from_dict(x) for x in items],
                lambda reservations: [r.to_dict() for r in reservations],
            )

    @property
    def persistent(self) -> bool:
        return bool(self.data_dir)

    # ---------------------------
    # Queries
    # ---------------------------
    def list_routes(self) -> list[Route]:
        return list(self._routes)

    def list_reservations(self) -> list[Reservation]:
        return list(self._reservations)

    def get_route(self, route_id: str) -> Optional[Route]:
        for r in self._routes:
            if r.id == route_id:
                return r
        return None

    def find_routes_by_destination(self, destination: str) -> list[Route]:
        needle = (destination or "").lower()
        return [r for r in self._routes if needle in r.destination.lower()]

    def available_seats(self, route_id: str, travel_date: str) -> list[int]:
        # unknown route -> no seats, not an error
        if self.get_route(route_id) is None:
            return []
        booked = {
            r.seat_number
            for r in self._reservations
            if r.route_id == route_id and r.travel_date == travel_date
        }
        return [s for s in range(1, self.seat_count + 1) if s not in booked]

    # ---------------------------
    # Mutation
    # ---------------------------
    def create_reservation(
        self, name: str, phone: str, route_id: str, travel_date: str, seat_number: int
    ) -> Reservation:
        reservation = Reservation(
            id=str(uuid.uuid4()),
            name=name,
            phone=phone,
            route_id=route_id,
            travel_date=travel_date,
            seat_number=int(seat_number),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._reservations.append(reservation)
        logger.info(
            "Reservation %s: route=%s date=%s seat=%s",
            reservation.id, route_id, travel_date, seat_number,
        )
        self.save_reservations()
        return reservation

    def save_reservations(self) -> None:
        if not self.data_dir:
            return
        try:
            self._write(RESERVATIONS_FILE, [r.to_dict() for r in self._reservations])
        except OSError:
            # the booking still stands in memory
            logger.exception("Failed to persist %s", RESERVATIONS_FILE)

    # ---------------------------
    # JSON files
    # ---------------------------
    def _ensure_data_dir(self) -> None:
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError:
            logger.exception("Failed to create data directory %s", self.data_dir)

    def _path(self, filename: str) -> str:
        return os.path.join(self.data_dir, filename)

    def _write(self, filename: str, payload: Any) -> None:
        path = self._path(filename)
        tmp = f"{path}.tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        os.replace(tmp, path)

    def _load(
        self,
        filename: str,
        initializer: Callable[[], list],
        decode: Callable[[list], list],
        encode: Callable[[list], list],
    ) -> list:
        path = self._path(filename)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return decode(json.load(fh))
        except FileNotFoundError:
            logger.info("%s not found, initializing", path)
        except (OSError, ValueError, KeyError, TypeError) as e:
            # keep the unreadable file; never overwrite existing bookings
            logger.warning("Could not read %s (%s), moving it aside", path, e)
            try:
                os.replace(path, f"{path}.corrupt")
            except OSError:
                logger.exception("Failed to move %s aside, leaving it untouched", path)
                return initializer()

        data = initializer()
        try:
            self._write(filename, encode(data))
        except OSError:
            logger.exception("Failed to write %s", path)
        return data
