# busgo/llm/dialogue_manager.py
import json
import logging
import re
from typing import Any, Dict, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from busgo import config
from busgo.entities import ExtractedInfo

logger = logging.getLogger(__name__)

MODEL = config.OPENAI_MODEL
SENTINEL = config.BOOKING_SENTINEL

APOLOGY = "Sorry, I had trouble understanding that. Could you try again?"
READY_FALLBACK = "Thanks! I have everything I need to book your ticket."


SYSTEM_PROMPT = f"""
You are a helpful bus ticket reservation assistant. Your goal is to help customers book bus tickets.

You need to collect:
1. Customer's name
2. Phone number
3. Destination
4. Travel date
5. Seat preference (window / aisle / any number)

Rules:
- Be friendly and conversational. Replies are read aloud, so keep them short.
- Ask for one or two missing items at a time.
- When ALL five items are collected, say '{SENTINEL}'.
"""


EXTRACTION_PROMPT = """
You are an expert information extractor. Given the following conversation between a user and an assistant,
extract the booking details into a JSON object with these fields:
- name (customer's full name)
- phone (phone number)
- destination (travel destination)
- travel_date (date of travel)
- seat_preference (window, aisle, or specific number)

Return only the JSON object. If any field is missing or unclear, use null for that field.
Do not include any extra text outside the JSON.

Conversation:
{conversation}
"""


def _safe_json_parse(txt: str) -> Dict[str, Any]:
    txt = (txt or "").strip()
    # ```json ... ``` fences
    txt = re.sub(r"^```(?:json)?\s*|\s*```$", "", txt, flags=re.IGNORECASE).strip()
    try:
        data = json.loads(txt)
    except ValueError:
        m = re.search(r"\{.*\}", txt, re.DOTALL)
        if not m:
            return {}
        try:
            data = json.loads(m.group(0))
        except ValueError:
            return {}
    return data if isinstance(data, dict) else {}


def _content_text(resp: Any) -> str:
    content = getattr(resp, "content", resp)
    if isinstance(content, list):
        # content blocks: [{"type": "text", "text": ...}, ...]
        parts = [c.get("text", "") if isinstance(c, dict) else str(c) for c in content]
        return "".join(parts)
    if not isinstance(content, str):
        raise TypeError(f"Unexpected model response: {type(content).__name__}")
    return content


def _to_messages(history: List[Dict[str, str]]) -> List[BaseMessage]:
    out: List[BaseMessage] = []
    for turn in history or []:
        text = turn.get("content") or ""
        if turn.get("role") == "assistant":
            out.append(AIMessage(content=text))
        else:
            out.append(HumanMessage(content=text))
    return out


_llm = None


def get_llm():
    # lazy: ChatOpenAI needs OPENAI_API_KEY at construction
    global _llm
    if _llm is None:
        _llm = ChatOpenAI(model=MODEL, temperature=0)
    return _llm


def strip_sentinel(text: str) -> str:
    return (text or "").replace(SENTINEL, "").strip()


def converse(history: List[Dict[str, str]], user_input: str, llm=None) -> Dict[str, Any]:
    """
    One voice-flow turn.
    - history: prior turns as {"role": "user"|"assistant", "content": str}
    Returns {"reply", "booking_ready"}. Never raises: failures become APOLOGY.
    """
    llm = llm or get_llm()
    messages = [SystemMessage(content=SYSTEM_PROMPT), *_to_messages(history), HumanMessage(content=user_input)]

    try:
        text = _content_text(llm.invoke(messages))
    except Exception as e:
        logger.error("Conversation model call failed: %s", e, exc_info=True)
        return {"reply": APOLOGY, "booking_ready": False}

    ready = SENTINEL in text
    reply = strip_sentinel(text)
    if ready and not reply:
        reply = READY_FALLBACK
    logger.info("Model reply (booking_ready=%s): %r", ready, reply)
    return {"reply": reply, "booking_ready": ready}


def extract_booking_info(history: List[Dict[str, str]], llm=None) -> ExtractedInfo:
    llm = llm or get_llm()
    conversation = "\n".join(f"{t.get('role')}: {t.get('content')}" for t in history or [])
    logger.info("Extracting booking info from %d turns", len(history or []))

    try:
        raw = _content_text(llm.invoke([HumanMessage(content=EXTRACTION_PROMPT.format(conversation=conversation))]))
    except Exception as e:
        logger.error("Extraction model call failed: %s", e, exc_info=True)
        return ExtractedInfo()

    logger.info("Extraction raw response: %r", raw)
    data = _safe_json_parse(raw)
    if not data:
        logger.warning("Extraction response was not a JSON object")
    info = ExtractedInfo.from_payload(data)
    if info.missing():
        logger.info("Extraction missing fields: %s", ", ".join(info.missing()))
    return info
