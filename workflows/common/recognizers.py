"""
MODULE: workflows/common/recognizers.py
PURPOSE: Natural-language recognizers used by the field validators.

The validators only depend on the ``Recognizer`` protocol. The default
implementation delegates to Microsoft Recognizers-Text, which resolves both
digit and word forms ("12", "twelve", "a dozen") and relative dates
("tomorrow at 9am", "next Sunday").

Each recognizer returns a list of ``ModelResult`` candidates in the order
they appear in the text. ``result.resolution`` is a dict:
- numbers:    {"value": "20"}
- date-times: {"values": [{"type": "datetime", "value": "2026-10-20 09:00:00"}, ...]}
              range types carry "start"/"end" instead of "value"
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from recognizers_date_time import recognize_datetime
from recognizers_number import recognize_number
from recognizers_text import Culture, ModelResult


class Recognizer(Protocol):
    def recognize_number(self, text: str, culture: str) -> List[ModelResult]:
        ...

    def recognize_datetime(
        self, text: str, culture: str, reference: Optional[datetime] = None
    ) -> List[ModelResult]:
        ...


class TextRecognizer:
    """Recognizer backed by the Recognizers-Text suite."""

    def recognize_number(self, text: str, culture: str = Culture.English) -> List[ModelResult]:
        return recognize_number(text, culture)

    def recognize_datetime(
        self,
        text: str,
        culture: str = Culture.English,
        reference: Optional[datetime] = None,
    ) -> List[ModelResult]:
        return recognize_datetime(text, culture, reference=reference)


__all__ = ["Recognizer", "TextRecognizer", "ModelResult", "Culture"]
