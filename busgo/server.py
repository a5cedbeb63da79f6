from flask import Flask, request, jsonify, render_template
import logging
import uuid

from busgo import config, init_db
from busgo.db import SessionLocal
from busgo.models import Conversation, Message
from busgo.graph.chat_flow import ChatState, handle_turn, GREETING as CHAT_GREETING
from busgo.graph.graph import build_graph, initial_context, GREETING as VOICE_GREETING
from busgo.providers.inventory import InventoryStore
from busgo.utils.log import configure_logging

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = Flask(__name__, template_folder="templates", static_folder="static")

# one store per process: reservations must be visible to every conversation
store = InventoryStore(data_dir=config.DATA_DIR if config.PERSIST else None)
voice_graph = build_graph(store)

MODES = {"chat", "voice"}


def _json_body() -> dict:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _message_from_body(body: dict) -> str:
    msg = body.get("message")
    return msg.strip() if isinstance(msg, str) else ""


def _conversation_id_from_body(body: dict) -> str:
    cid = body.get("conversation_id")
    cid = cid.strip() if isinstance(cid, str) else ""
    return cid or uuid.uuid4().hex


def _wrong_mode(conv: Conversation, mode: str):
    return jsonify({"error": f"conversation {conv.id} is a {conv.mode} conversation, not {mode}"}), 400


def _get_or_create_conversation(db, conversation_id: str, mode: str) -> Conversation:
    conv = db.get(Conversation, conversation_id)
    if not conv:
        conv = Conversation(id=conversation_id, mode=mode, context={})
        db.add(conv)
        db.commit()
        db.refresh(conv)
        logger.info("Conversation %s started (%s)", conversation_id, mode)
    return conv


def _store_message(db, conversation_id: str, role: str, content: str, meta: dict | None = None):
    db.add(Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        meta=meta or {},
    ))
    db.commit()


@app.get("/")
def index():
    """
    Minimal page with a typed chat box that talks to /chat.
    """
    return render_template("index.html")


@app.post("/conversations")
def start_conversation():
    body = _json_body()
    mode = str(body.get("mode") or "chat").strip().lower()
    if mode not in MODES:
        return jsonify({"error": f"mode must be one of: {', '.join(sorted(MODES))}"}), 400

    conversation_id = uuid.uuid4().hex
    if mode == "chat":
        greeting = CHAT_GREETING
        context = {"chat": ChatState().to_dict()}
    else:
        greeting = VOICE_GREETING
        context = {"voice": initial_context()}

    db = SessionLocal()
    try:
        db.add(Conversation(id=conversation_id, mode=mode, context=context))
        db.commit()
        logger.info("Conversation %s started (%s)", conversation_id, mode)
        _store_message(db, conversation_id, "assistant", greeting)
    finally:
        db.close()

    return jsonify({"conversation_id": conversation_id, "mode": mode, "reply": greeting}), 201


@app.post("/chat")
def chat():
    body = _json_body()
    user_input = _message_from_body(body)
    if not user_input:
        return jsonify({"error": "message is required"}), 400

    conversation_id = _conversation_id_from_body(body)

    db = SessionLocal()
    try:
        conv = _get_or_create_conversation(db, conversation_id, "chat")
        if conv.mode != "chat":
            return _wrong_mode(conv, "chat")
        _store_message(db, conversation_id, "user", user_input)

        ctx = dict(conv.context or {})
        turn = handle_turn(ChatState.from_dict(ctx.get("chat")), user_input)

        ctx["chat"] = turn.state.to_dict()
        conv.context = ctx
        db.add(conv)
        db.commit()

        _store_message(db, conversation_id, "assistant", turn.reply, {
            "step": turn.state.step.value,
            "completed": turn.completed,
        })

        return jsonify({
            "conversation_id": conversation_id,
            "reply": turn.reply,
            "step": turn.state.step.value,
            "details": ctx["chat"]["details"],
            "completed": turn.completed,
        })

    finally:
        db.close()


@app.post("/voice")
def voice():
    """
    Text side of the voice flow: the browser transcribes speech, posts the
    transcript here and reads `reply` (then `confirmation`, if any) aloud.
    """
    body = _json_body()
    user_input = _message_from_body(body)
    if not user_input:
        return jsonify({"error": "message is required"}), 400

    conversation_id = _conversation_id_from_body(body)

    db = SessionLocal()
    try:
        conv = _get_or_create_conversation(db, conversation_id, "voice")
        if conv.mode != "voice":
            return _wrong_mode(conv, "voice")
        _store_message(db, conversation_id, "user", user_input)

        ctx = dict(conv.context or {})

        state = {
            "conversation_id": conversation_id,
            "user_input": user_input,
            "convo_context": ctx.get("voice") or initial_context(),
        }
        out = voice_graph.invoke(state)

        updated_ctx = out.get("updated_context")
        if isinstance(updated_ctx, dict):
            ctx["voice"] = updated_ctx
            conv.context = ctx
            if out.get("reservation_id"):
                conv.reservation_id = out["reservation_id"]
            db.add(conv)
            db.commit()

        assistant_reply = out.get("reply", "") or ""
        confirmation = out.get("confirmation")
        _store_message(db, conversation_id, "assistant", assistant_reply, {
            "trace": out.get("trace", []),
            "booking_ready": bool(out.get("booking_ready")),
        })
        if confirmation:
            _store_message(db, conversation_id, "assistant", confirmation, {"confirmation": True})

        return jsonify({
            "conversation_id": conversation_id,
            "reply": assistant_reply,
            "booking_ready": bool(out.get("booking_ready")),
            "confirmation": confirmation,
            "booking_complete": bool(out.get("booking_complete")),
            "reservation_id": conv.reservation_id,
            "trace": out.get("trace", []),
        })

    finally:
        db.close()


@app.get("/routes")
def list_routes():
    destination = (request.args.get("destination") or "").strip()
    routes = store.find_routes_by_destination(destination) if destination else store.list_routes()
    return jsonify({"routes": [r.to_dict() for r in routes]})


@app.get("/routes/<route_id>/seats")
def route_seats(route_id: str):
    travel_date = (request.args.get("date") or "").strip()
    if not travel_date:
        return jsonify({"error": "date is required"}), 400

    route = store.get_route(route_id)
    if route is None:
        return jsonify({"error": f"unknown route: {route_id}"}), 404

    return jsonify({
        "route": route.to_dict(),
        "date": travel_date,
        "available_seats": store.available_seats(route_id, travel_date),
    })


if __name__ == "__main__":
    # Create tables (simple dev mode)
    init_db()
    app.run(host="0.0.0.0", port=5000, debug=True)
