from dataclasses import dataclass, field, asdict, replace
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from busgo.graph import intent

GREETING = "Hi there! I'm your BusGo assistant. To get started with your booking, may I know your name?"


class Step(str, Enum):
    NAME = "name"
    DESTINATION = "destination"
    DATE = "date"
    SEAT = "seat"
    PHONE = "phone"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class BookingDetails:
    name: str = ""
    origin: str = ""
    destination: str = ""
    date: str = ""
    seat_preference: str = ""
    phone: str = ""


@dataclass(frozen=True)
class ChatState:
    step: Step = Step.NAME
    details: BookingDetails = field(default_factory=BookingDetails)

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step.value, "details": asdict(self.details)}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ChatState":
        data = data or {}
        try:
            step = Step(data.get("step") or Step.NAME.value)
        except ValueError:
            step = Step.NAME
        raw = data.get("details") or {}
        known = {k: str(v) for k, v in raw.items() if k in BookingDetails.__dataclass_fields__ and v is not None}
        return cls(step=step, details=BookingDetails(**known))


@dataclass(frozen=True)
class ChatTurn:
    reply: str
    state: ChatState
    completed: bool = False


def _stay(state: ChatState, reply: str) -> ChatTurn:
    return ChatTurn(reply=reply, state=state)


def _advance(state: ChatState, step: Step, reply: str, **details) -> ChatTurn:
    return ChatTurn(reply=reply, state=ChatState(step=step, details=replace(state.details, **details)))


# ---------------------------
# Step handlers
# ---------------------------
def _on_name(state: ChatState, message: str, today: date) -> ChatTurn:
    name = intent.extract_name(message)
    if not name:
        return _stay(state, "I didn't quite catch your name. Could you please tell me your name?")
    return _advance(
        state, Step.DESTINATION,
        f"Nice to meet you, {name}! Where would you like to travel from and to?",
        name=name,
    )


def _on_destination(state: ChatState, message: str, today: date) -> ChatTurn:
    t = message.lower()
    if "from" not in t or "to" not in t:
        return _stay(
            state,
            "Could you please tell me your departure city and destination? "
            "For example: 'I want to travel from New York to Boston'",
        )
    route = intent.extract_route(message)
    if not route:
        return _stay(state, "I didn't quite catch that. Could you specify your departure and destination cities?")
    origin, destination = route
    return _advance(
        state, Step.DATE,
        f"Great! I've got you traveling from {origin} to {destination}. When would you like to travel?",
        origin=origin, destination=destination,
    )


def _on_date(state: ChatState, message: str, today: date) -> ChatTurn:
    travel_date = intent.extract_travel_date(message, today=today)
    if not travel_date:
        return _stay(
            state,
            "I need to know when you'd like to travel. You can say 'today', 'tomorrow', "
            "or a specific date like 05/01.",
        )
    return _advance(
        state, Step.SEAT,
        f"Got it! You're traveling on {travel_date}. "
        "Do you have any seat preferences? (Window, Aisle, or No preference)",
        date=travel_date,
    )


def _on_seat(state: ChatState, message: str, today: date) -> ChatTurn:
    pref = intent.extract_seat_preference(message)
    if not pref:
        return _stay(state, "Do you prefer a window seat, an aisle seat, or do you have no preference?")

    if pref == "No Preference":
        ack = "Got it! I've noted that you don't have a specific seat preference."
    else:
        ack = f"Perfect! I've noted your preference for {'a window' if pref == 'Window' else 'an aisle'} seat."
    return _advance(
        state, Step.PHONE,
        f"{ack} Could you please provide your phone number for booking confirmation?",
        seat_preference=pref,
    )


def _on_phone(state: ChatState, message: str, today: date) -> ChatTurn:
    phone = intent.extract_phone(message)
    if not phone:
        return _stay(
            state,
            "I need your phone number to complete the booking. Please provide a valid 10-digit phone number.",
        )

    d = state.details
    seat = "any" if d.seat_preference in ("", "No Preference") else d.seat_preference.lower()
    article = "an" if seat[0] in "aeiou" else "a"
    options = "\n".join(
        f"{n}. Departure: {dep} - Arrival: {arr} - ${price}"
        for n, dep, arr, price in intent.DEPARTURE_OPTIONS
    )
    reply = (
        f"Thank you, {d.name}! I've found several options for {d.origin} to {d.destination} "
        f"on {d.date} with {article} {seat} seat:\n\n"
        f"{options}\n\nWhich option would you prefer?"
    )
    return _advance(state, Step.CONFIRMATION, reply, phone=phone)


def _on_confirmation(state: ChatState, message: str, today: date) -> ChatTurn:
    option = intent.extract_option(message)
    if not option:
        return _stay(
            state,
            "Please select one of the available options (1, 2, or 3), "
            "or let me know if you'd like to see more options.",
        )

    _, departure, _, _ = option
    d = state.details
    reply = (
        "Perfect! Your booking is confirmed. Here's your trip summary:\n\n"
        f"Name: {d.name}\n"
        f"From: {d.origin}\n"
        f"To: {d.destination}\n"
        f"Date: {d.date}\n"
        f"Departure: {departure}\n"
        f"Seat Preference: {d.seat_preference}\n"
        f"Phone: {d.phone}\n\n"
        "Your e-ticket has been sent to your phone. Thank you for booking with BusGo!"
    )
    # start over for the next booking
    return ChatTurn(reply=reply, state=ChatState(), completed=True)


HANDLERS: dict[Step, Callable[[ChatState, str, date], ChatTurn]] = {
    Step.NAME: _on_name,
    Step.DESTINATION: _on_destination,
    Step.DATE: _on_date,
    Step.SEAT: _on_seat,
    Step.PHONE: _on_phone,
    Step.CONFIRMATION: _on_confirmation,
}


def handle_turn(state: Optional[ChatState], message: str, today: Optional[date] = None) -> ChatTurn:
    """
    One typed-chat turn: try to fill the field owned by the current step.
    Unrecognized input keeps the step and re-prompts.
    """
    state = state or ChatState()
    return HANDLERS[state.step](state, (message or "").strip(), today or date.today())
