"""Pytest configuration for profile prompt bot tests."""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Ensure project root is on PYTHONPATH
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from workflows.io.config_store import reload_settings  # noqa: E402


_ENV_VARS = (
    "PROMPT_BOT_CULTURE",
    "PROMPT_BOT_STATE_PATH",
    "PROMPT_BOT_MIN_LEAD_HOURS",
    "PROMPT_BOT_FALLBACK_DIAGNOSTICS",
    "LOG_LEVEL",
    "ENV",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test against default settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reload_settings()
    yield


def number_result(value: Any, text: str = "") -> SimpleNamespace:
    return SimpleNamespace(text=text or str(value), type_name="number", resolution={"value": str(value)})


def datetime_result(*values: Dict[str, str], text: str = "") -> SimpleNamespace:
    return SimpleNamespace(text=text, type_name="datetimeV2.datetime", resolution={"values": list(values)})


class StubRecognizer:
    """Recognizer returning canned candidates, or raising a canned error."""

    def __init__(
        self,
        numbers: Optional[List[SimpleNamespace]] = None,
        datetimes: Optional[List[SimpleNamespace]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.numbers = numbers or []
        self.datetimes = datetimes or []
        self.error = error
        self.calls: List[tuple] = []

    def recognize_number(self, text, culture):
        self.calls.append(("number", text, culture))
        if self.error:
            raise self.error
        return list(self.numbers)

    def recognize_datetime(self, text, culture, reference=None):
        self.calls.append(("datetime", text, culture, reference))
        if self.error:
            raise self.error
        return list(self.datetimes)


@pytest.fixture
def stub_recognizer():
    return StubRecognizer()
