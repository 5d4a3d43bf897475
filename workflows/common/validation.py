"""
Field validators for the profile prompt dialogue.

Each validator turns freeform user text into a typed value:
- validate_name: non-blank text
- validate_age:  a number between 18 and 120, digits or words
- validate_date: a date-time at least an hour in the future

Validators never raise. A recognizer failure is logged as a fallback and
reported as a ValidationFailure carrying a "could not interpret" message.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from workflows.common import prompts
from workflows.common.fallback import create_fallback_context, wrap_fallback
from workflows.common.recognizers import Recognizer
from workflows.common.types import ValidationFailure, ValidationResult, ValidationSuccess
from workflows.io.config_store import get_culture, get_min_lead_hours

logger = logging.getLogger(__name__)

MIN_AGE = 18
MAX_AGE = 120

# Resolution strings the date-time recognizer emits for points in time.
_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DATE_FORMAT = "%Y-%m-%d"
_TIME_FORMAT = "%H:%M:%S"


def validate_name(text: Optional[str]) -> ValidationResult:
    """Accept any non-blank text as a name, trimmed."""
    if text is None or not text.strip():
        return ValidationFailure(prompts.NAME_REQUIRED)
    return ValidationSuccess(text.strip())


def validate_age(
    text: Optional[str],
    recognizer: Recognizer,
    *,
    culture: Optional[str] = None,
) -> ValidationResult:
    """
    Recognize an age between MIN_AGE and MAX_AGE inclusive.

    Works for "12", "twelve", "a dozen" and so on. The recognizer returns
    candidates in text order; the first one whose value converts to an
    integer inside the range wins.

    Examples:
        >>> validate_age("I am 42", recognizer)
        ValidationSuccess(value=42)

        >>> validate_age("17", recognizer)
        ValidationFailure(message='Please enter an age between 18 and 120.')
    """
    culture = culture or get_culture()
    try:
        results = recognizer.recognize_number(text, culture)
        for result in results:
            value = (result.resolution or {}).get("value")
            if value is None:
                continue
            age = int(value)
            if MIN_AGE <= age <= MAX_AGE:
                logger.debug("[VALIDATION] Age %d accepted from %r", age, result.text)
                return ValidationSuccess(age)
            logger.debug("[VALIDATION] Age %d outside %d-%d", age, MIN_AGE, MAX_AGE)
    except Exception as exc:
        ctx = create_fallback_context(
            "validation.age", "recognizer_failed", question="age", error=exc
        )
        return ValidationFailure(
            wrap_fallback(prompts.AGE_UNINTERPRETABLE.format(min_age=MIN_AGE, max_age=MAX_AGE), ctx)
        )

    return ValidationFailure(prompts.AGE_OUT_OF_RANGE.format(min_age=MIN_AGE, max_age=MAX_AGE))


def validate_date(
    text: Optional[str],
    recognizer: Recognizer,
    *,
    culture: Optional[str] = None,
    now: Optional[datetime] = None,
    min_lead_hours: Optional[float] = None,
) -> ValidationResult:
    """
    Recognize a date-time at least ``min_lead_hours`` in the future.

    Works for "11/14/2026", "9pm", "tomorrow", "Sunday at 5pm" and so on.
    Each recognizer candidate carries one or more resolutions; a resolution
    holds "value" for a point in time or "start"/"end" for a range, in which
    case the start is used. The first resolution strictly later than the
    floor is accepted and returned as a short date (M/D/YYYY).

    Args:
        text: Raw user input
        recognizer: Date-time recognizer
        culture: Recognizer culture, defaults to the configured one
        now: Reference time, defaults to the local clock
        min_lead_hours: Floor offset, defaults to the configured one

    Returns:
        ValidationSuccess with the short date string, or ValidationFailure.
    """
    culture = culture or get_culture()
    now = now or datetime.now()
    lead_hours = get_min_lead_hours() if min_lead_hours is None else min_lead_hours
    lead_time = _lead_time_label(lead_hours)
    earliest = now + timedelta(hours=lead_hours)

    try:
        results = recognizer.recognize_datetime(text, culture, reference=now)
        for result in results:
            for resolution in _resolutions(result.resolution):
                raw = resolution.get("value") or resolution.get("start")
                if not raw:
                    continue
                candidate = _parse_resolution(raw, now)
                if candidate is None:
                    logger.debug("[VALIDATION] Skipping unparseable resolution %r", raw)
                    continue
                if candidate > earliest:
                    logger.debug("[VALIDATION] Date %s accepted (floor %s)", candidate, earliest)
                    return ValidationSuccess(format_short_date(candidate))
                logger.debug("[VALIDATION] Date %s is not after floor %s", candidate, earliest)
    except Exception as exc:
        ctx = create_fallback_context(
            "validation.date", "recognizer_failed", question="date", error=exc
        )
        return ValidationFailure(
            wrap_fallback(prompts.DATE_UNINTERPRETABLE.format(lead_time=lead_time), ctx)
        )

    return ValidationFailure(prompts.DATE_TOO_SOON.format(lead_time=lead_time))


def format_short_date(value: datetime) -> str:
    """Format as a short calendar date, e.g. 10/20/2026."""
    return f"{value.month}/{value.day}/{value.year}"


def _resolutions(resolution: Optional[Dict]) -> Iterable[Dict[str, str]]:
    if not resolution:
        return []
    return resolution.get("values") or []


def _parse_resolution(raw: str, now: datetime) -> Optional[datetime]:
    """Parse a recognizer resolution string, or None if it is not a point in time."""
    for fmt in (_DATETIME_FORMAT, _DATE_FORMAT):
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    try:
        clock = datetime.strptime(raw, _TIME_FORMAT).time()
    except ValueError:
        return None
    return datetime.combine(now.date(), clock)


def _lead_time_label(hours: float) -> str:
    if hours == 1:
        return "an hour"
    if float(hours).is_integer():
        return f"{int(hours)} hours"
    return f"{hours:g} hours"


__all__ = [
    "MIN_AGE",
    "MAX_AGE",
    "validate_name",
    "validate_age",
    "validate_date",
    "format_short_date",
]
