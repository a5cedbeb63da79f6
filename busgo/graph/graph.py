from functools import partial
from typing import Optional

from langgraph.graph import StateGraph, END

from busgo import config
from busgo.agents.booking import SeatPolicy, run_booking_agent
from busgo.graph.state import VoiceState
from busgo.llm.dialogue_manager import converse, extract_booking_info
from busgo.providers.base import RouteInventory

GREETING = (
    "Welcome to our Bus Reservation system! I'm here to help you book a ticket. "
    "May I know your name and where you'd like to travel to?"
)
ALREADY_BOOKED = "Your booking is already complete. Start a new conversation to book another ticket."


# ---------------------------
# Utilities
# ---------------------------
def add_trace(state: VoiceState, node: str, detail: dict):
    state.setdefault("trace", [])
    state["trace"].append({"node": node, "detail": detail})


def _ctx_history_append(ctx: dict, role: str, content: str):
    hist = list(ctx.get("history") or [])
    hist.append({"role": role, "content": content})
    ctx["history"] = hist[-config.HISTORY_LIMIT:]


def _persist_context(state: VoiceState, ctx: dict) -> VoiceState:
    """
    Always write back history/flags so the next turn sees them.
    """
    state["updated_context"] = dict(ctx or {})
    return state


def initial_context() -> dict:
    return {"history": [{"role": "assistant", "content": GREETING}], "booking_complete": False}


# ---------------------------
# Assistant Node
# ---------------------------
def node_assistant(state: VoiceState, llm=None) -> VoiceState:
    user_text = (state.get("user_input") or "").strip()
    ctx = dict(state.get("convo_context") or initial_context())

    if ctx.get("booking_complete"):
        state["reply"] = ALREADY_BOOKED
        state["booking_ready"] = False
        state["booking_complete"] = True
        add_trace(state, "already_booked", {})
        return _persist_context(state, ctx)

    history = list(ctx.get("history") or [])
    out = converse(history, user_text, llm=llm)

    _ctx_history_append(ctx, "user", user_text)
    _ctx_history_append(ctx, "assistant", out["reply"])
    ctx["last_reply"] = out["reply"]

    state["reply"] = out["reply"]
    state["booking_ready"] = out["booking_ready"]
    state["booking_complete"] = False
    add_trace(state, "assistant", {"booking_ready": out["booking_ready"]})
    return _persist_context(state, ctx)


def node_route(state: VoiceState) -> str:
    return "book" if state.get("booking_ready") else "end"


# ---------------------------
# Booking Node
# ---------------------------
def node_book(state: VoiceState, store: RouteInventory, llm=None, policy: Optional[SeatPolicy] = None) -> VoiceState:
    ctx = dict(state.get("updated_context") or state.get("convo_context") or {})

    info = extract_booking_info(ctx.get("history") or [], llm=llm)
    add_trace(state, "extracted", {"missing": info.missing()})

    outcome = run_booking_agent(store, info, policy=policy)
    state["confirmation"] = outcome.message
    state["booking_complete"] = outcome.booked

    if outcome.booked:
        state["reservation_id"] = outcome.reservation.id
        add_trace(state, "booked", {
            "reservation_id": outcome.reservation.id,
            "route_id": outcome.route.id,
            "seat": outcome.reservation.seat_number,
        })
    else:
        add_trace(state, "not_booked", {"message": outcome.message})

    _ctx_history_append(ctx, "assistant", outcome.message)
    ctx["last_reply"] = outcome.message
    ctx["booking_complete"] = outcome.booked
    return _persist_context(state, ctx)


# ---------------------------
# Build graph
# ---------------------------
def build_graph(store: RouteInventory, llm=None, extraction_llm=None, policy: Optional[SeatPolicy] = None):
    """
    assistant --(sentinel seen)--> book --> END
              \\--(otherwise)------------> END

    llm / extraction_llm default to the shared ChatOpenAI model.
    """
    g = StateGraph(VoiceState)

    g.add_node("assistant", partial(node_assistant, llm=llm))
    g.add_node("book", partial(node_book, store=store, llm=extraction_llm or llm, policy=policy))

    g.set_entry_point("assistant")

    g.add_conditional_edges("assistant", node_route, {
        "book": "book",
        "end": END,
    })

    g.add_edge("book", END)

    return g.compile()
