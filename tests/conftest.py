import os
import tempfile

# must be set before busgo.config is imported
_TMP = tempfile.mkdtemp(prefix="busgo-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'busgo-test.db')}"
os.environ["BUSGO_PERSIST"] = "0"
os.environ["BUSGO_DATA_DIR"] = os.path.join(_TMP, "data")

import pytest

from busgo.entities import ExtractedInfo
from busgo.providers.inventory import InventoryStore


class BrokenLLM:
    """Chat model stand-in whose every call fails."""

    def __init__(self):
        self.calls = 0

    def invoke(self, messages):
        self.calls += 1
        raise RuntimeError("model unavailable")


@pytest.fixture
def store():
    return InventoryStore()


@pytest.fixture
def broken_llm():
    return BrokenLLM()


@pytest.fixture
def boston_info():
    return ExtractedInfo(
        name="Jane Doe",
        phone="5551234567",
        destination="Boston",
        travel_date="2024-05-01",
        seat_preference="window",
    )
