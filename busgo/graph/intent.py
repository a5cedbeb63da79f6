import re
from datetime import date, datetime, time
from typing import Optional

from dateutil import parser as dtparser
from dateutil.relativedelta import relativedelta


CITY_ALIASES = {
    "nyc": "New York",
    "ny": "New York",
    "dc": "Washington DC",
    "washington": "Washington DC",
    "washington dc": "Washington DC",
}

MONTHS = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)

# (option number, departure, arrival, price)
DEPARTURE_OPTIONS = [
    (1, "8:00 AM", "10:30 AM", 45),
    (2, "11:30 AM", "2:00 PM", 38),
    (3, "3:00 PM", "5:30 PM", 42),
]

_OPTION_PATTERNS = {
    1: re.compile(r"option\s*1|first\s*option|8:00|\b8\s*am", re.I),
    2: re.compile(r"option\s*2|second\s*option|11:30|\b11\s*(?::\s*30\s*)?am", re.I),
    3: re.compile(r"option\s*3|third\s*option|3:00|\b3\s*pm", re.I),
}

_NAME_INTRO = re.compile(
    r"\b(?:name\s+is|i\s+am|i'm|im|call\s+me|this\s+is)\s+([A-Za-z][A-Za-z'-]*(?:\s+[A-Za-z][A-Za-z'-]*)?)",
    re.I,
)
_BARE_NAME = re.compile(r"([A-Za-z]+(?:\s+[A-Za-z]+)?)")
_FROM_TO = re.compile(
    r"from\s+([a-zA-Z ]+?)\s+to\s+([a-zA-Z ]+?)(?:\s+on\b|\s+at\b|\s+for\b|\s+in\b|[.,!?]|$)",
    re.I,
)
_ISO_DATE = re.compile(r"(?<![\d/-])(\d{4})-(\d{1,2})-(\d{1,2})(?![\d/-])")
_NUMERIC_DATE = re.compile(r"(?<![\d/-])(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?(?![\d/-])")
_MONTH_NAME = re.compile(rf"\b(?:{MONTHS})\b", re.I)
_PHONE = re.compile(
    r"\(\d{3}\)\s*\d{3}[-.\s]?\d{4}|\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b|\b\d{10}\b"
)


def norm_city(x: str) -> str:
    if not x:
        return x
    k = " ".join(x.split()).lower()
    return CITY_ALIASES.get(k, " ".join(w.capitalize() for w in k.split()))


def format_travel_date(d: date) -> str:
    # "Wednesday, May 1"
    return f"{d:%A}, {d:%B} {d.day}"


def _calendar_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return format_travel_date(date(year, month, day))
    except ValueError:
        return None


def extract_name(text: str) -> Optional[str]:
    m = _NAME_INTRO.search(text or "")
    if not m:
        m = _BARE_NAME.search(text or "")
    if not m:
        return None
    return " ".join(m.group(1).split())


def extract_route(text: str) -> Optional[tuple[str, str]]:
    m = _FROM_TO.search(text or "")
    if not m:
        return None
    origin, destination = m.group(1).strip(), m.group(2).strip()
    if not origin or not destination:
        return None
    return norm_city(origin), norm_city(destination)


def extract_travel_date(text: str, today: Optional[date] = None) -> Optional[str]:
    """
    Accepts "today", "tomorrow", MM/DD or MM/DD/YYYY (also with dashes), YYYY-MM-DD, and
    dates spelled with a month name ("May 3rd"). Returns a display string.
    """
    today = today or date.today()
    t = (text or "").lower()

    if "tomorrow" in t:
        return format_travel_date(today + relativedelta(days=1))
    if "today" in t:
        return format_travel_date(today)

    m = _ISO_DATE.search(t)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _calendar_date(year, month, day)

    m = _NUMERIC_DATE.search(t)
    if m:
        month, day = int(m.group(1)), int(m.group(2))
        year = int(m.group(3)) if m.group(3) else today.year
        if year < 100:
            year += 2000
        return _calendar_date(year, month, day)

    if _MONTH_NAME.search(t):
        try:
            d = dtparser.parse(text, fuzzy=True, default=datetime.combine(today, time()))
            return format_travel_date(d.date())
        except (ValueError, OverflowError):
            return None

    return None


def extract_seat_preference(text: str) -> Optional[str]:
    t = (text or "").lower()
    if "window" in t:
        return "Window"
    if "aisle" in t:
        return "Aisle"
    if "no preference" in t or re.search(r"\bany\b", t) or "doesn't matter" in t or "does not matter" in t:
        return "No Preference"
    return None


def extract_phone(text: str) -> Optional[str]:
    m = _PHONE.search(text or "")
    if not m:
        return None
    return re.sub(r"\D", "", m.group(0))


def extract_option(text: str) -> Optional[tuple[int, str, str, int]]:
    for opt in DEPARTURE_OPTIONS:
        if _OPTION_PATTERNS[opt[0]].search(text or ""):
            return opt
    return None
