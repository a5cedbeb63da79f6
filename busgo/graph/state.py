from typing import TypedDict, Optional, Any

class VoiceState(TypedDict, total=False):
    conversation_id: str
    user_input: str

    # memory loaded from DB (Conversation.context["voice"])
    convo_context: dict[str, Any]

    # set by the assistant node when the model emits the sentinel
    booking_ready: bool

    # outputs
    reply: str
    confirmation: Optional[str]
    reservation_id: Optional[str]
    booking_complete: bool
    trace: list[dict]

    # memory to write back to DB
    updated_context: dict[str, Any]
