import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///busgo.db")

# inventory (bus_routes.json / reservations.json)
DATA_DIR = os.getenv("BUSGO_DATA_DIR", os.path.join(os.getcwd(), "data"))
PERSIST = _env_flag("BUSGO_PERSIST", True)

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
LOG_LEVEL = os.getenv("BUSGO_LOG_LEVEL", "INFO")

# seats are numbered 1..SEAT_COUNT, four across, left to right
SEAT_COUNT = int(os.getenv("BUSGO_SEAT_COUNT", "40"))
SEATS_PER_ROW = 4
WINDOW_COLUMNS = (0, 1)
AISLE_COLUMNS = (2, 3)

HISTORY_LIMIT = int(os.getenv("BUSGO_HISTORY_LIMIT", "40"))
BOOKING_SENTINEL = "BOOKING_READY"
