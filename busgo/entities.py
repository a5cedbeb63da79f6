from dataclasses import dataclass, asdict, fields
from typing import Any, Optional


@dataclass(frozen=True)
class Route:
    id: str
    origin: str
    destination: str
    departure_time: str   # "HH:MM"
    arrival_time: str
    price: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Route":
        price = float(data["price"])
        if price < 0:
            raise ValueError(f"Route {data.get('id')} has a negative price")
        return cls(
            id=str(data["id"]),
            origin=str(data["origin"]),
            destination=str(data["destination"]),
            departure_time=str(data["departure_time"]),
            arrival_time=str(data["arrival_time"]),
            price=price,
        )


@dataclass(frozen=True)
class Reservation:
    id: str
    name: str
    phone: str
    route_id: str
    travel_date: str      # free-form, compared by exact string equality
    seat_number: int
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reservation":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            phone=str(data["phone"]),
            route_id=str(data["route_id"]),
            travel_date=str(data["travel_date"]),
            seat_number=int(data["seat_number"]),
            created_at=str(data["created_at"]),
        )


@dataclass(frozen=True)
class ExtractedInfo:
    """
    Booking fields pulled out of a conversation. Every field is optional;
    the model output it comes from is untrusted.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    destination: Optional[str] = None
    travel_date: Optional[str] = None
    seat_preference: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ExtractedInfo":
        if not isinstance(payload, dict):
            return cls()

        values = {}
        for f in fields(cls):
            v = payload.get(f.name)
            # models sometimes answer 1234567890 or 12 instead of strings
            if isinstance(v, float) and v.is_integer():
                v = int(v)
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                v = str(v)
            if not isinstance(v, str):
                continue
            v = v.strip()
            if not v or v.lower() in {"null", "none", "n/a", "unknown"}:
                continue
            values[f.name] = v
        return cls(**values)

    def missing(self) -> list[str]:
        return [f.name for f in fields(self) if not getattr(self, f.name)]
