from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, JSON, func, ForeignKey
from sqlalchemy.orm import relationship

class Base(DeclarativeBase):
    pass

class Conversation(Base):
    __tablename__ = "conversations"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    mode: Mapped[str] = mapped_column(String(16), default="chat")  # "chat" | "voice"
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # dialogue memory between turns:
    #   chat  -> {"chat": ChatState.to_dict()}
    #   voice -> {"voice": {"history": [...], "booking_complete": bool, "last_reply": str}}
    context: Mapped[dict] = mapped_column(JSON, default=dict)

    # set once the voice flow has booked a seat (Reservation.id in the inventory)
    reservation_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    messages = relationship("Message", back_populates="conversation")

class Message(Base):
    __tablename__ = "messages"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(ForeignKey("conversations.id"), index=True)
    role: Mapped[str] = mapped_column(String(16))  # "user" | "assistant"
    content: Mapped[str] = mapped_column(Text)
    meta: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())

    conversation = relationship("Conversation", back_populates="messages")
