from abc import ABC, abstractmethod
from typing import Optional

from busgo.entities import Route, Reservation


class RouteInventory(ABC):
    @abstractmethod
    def find_routes_by_destination(self, destination: str) -> list[Route]:
        ...

    @abstractmethod
    def get_route(self, route_id: str) -> Optional[Route]:
        ...

    @abstractmethod
    def available_seats(self, route_id: str, travel_date: str) -> list[int]:
        ...

    @abstractmethod
    def create_reservation(
        self, name: str, phone: str, route_id: str, travel_date: str, seat_number: int
    ) -> Reservation:
        ...
