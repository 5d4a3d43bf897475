"""Question router for the profile prompt dialogue.

The dialogue cycles NONE -> NAME -> AGE -> DATE -> NONE. Each question has
one step definition: how to validate the answer, how to record it on the
profile, and what to say back. A failed validation leaves the flow where it
is so the same question is asked again on the next turn.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from workflows.common import prompts
from workflows.common.recognizers import Recognizer
from workflows.common.types import ConversationFlow, Question, UserProfile, ValidationResult
from workflows.common.validation import validate_age, validate_date, validate_name
from workflows.runtime.turn_context import TurnContext

logger = logging.getLogger(__name__)


# Type aliases for step callbacks
ValidateFn = Callable[[Optional[str], Recognizer], ValidationResult]
RecordFn = Callable[[UserProfile, Any], Tuple[UserProfile, List[str]]]


TRANSITIONS: Dict[Question, Question] = {
    Question.NONE: Question.NAME,
    Question.NAME: Question.AGE,
    Question.AGE: Question.DATE,
    Question.DATE: Question.NONE,
}


def next_question(current: Question) -> Question:
    """Return the question that follows ``current`` in the cycle."""
    return TRANSITIONS[current]


@dataclass(frozen=True)
class StepDefinition:
    """How one question is validated and recorded."""

    validate: ValidateFn
    record: RecordFn


def _record_name(profile: UserProfile, name: str) -> Tuple[UserProfile, List[str]]:
    profile.name = name
    return profile, [prompts.GREET_NAME.format(name=name), prompts.ASK_AGE]


def _record_age(profile: UserProfile, age: int) -> Tuple[UserProfile, List[str]]:
    profile.age = age
    return profile, [prompts.CONFIRM_AGE.format(age=age), prompts.ASK_DATE]


def _record_date(profile: UserProfile, date: str) -> Tuple[UserProfile, List[str]]:
    profile.date = date
    messages = [
        prompts.CONFIRM_BOOKING.format(date=profile.date),
        prompts.THANK_USER.format(name=profile.name),
        prompts.RESTART_HINT,
    ]
    # Booking complete, start over with an empty profile
    return UserProfile(), messages


STEPS: Dict[Question, StepDefinition] = {
    Question.NAME: StepDefinition(
        validate=lambda text, _recognizer: validate_name(text),
        record=_record_name,
    ),
    Question.AGE: StepDefinition(validate=validate_age, record=_record_age),
    Question.DATE: StepDefinition(validate=validate_date, record=_record_date),
}


async def fill_out_user_profile(
    flow: ConversationFlow,
    profile: UserProfile,
    turn_context: TurnContext,
    recognizer: Recognizer,
) -> UserProfile:
    """Run one dialogue step for the inbound message.

    Mutates ``flow`` in place. Returns the profile to persist, which is a
    fresh instance once the last question has been answered.
    """
    text = turn_context.activity.text
    user_input = text.strip() if text is not None else None
    current = flow.last_question_asked

    if current is Question.NONE:
        await turn_context.send_activity(prompts.ASK_NAME)
        flow.last_question_asked = next_question(current)
        logger.info("[BOT] Started profile prompts, asking %s", flow.last_question_asked.value)
        return profile

    step = STEPS[current]
    result = step.validate(user_input, recognizer)

    if not result.is_valid:
        logger.info("[BOT] Answer to %s rejected, asking again", current.value)
        await turn_context.send_activity(result.message or prompts.DID_NOT_UNDERSTAND)
        return profile

    profile, messages = step.record(profile, result.value)
    await turn_context.send_activities(messages)
    flow.last_question_asked = next_question(current)
    logger.info("[BOT] Answer to %s accepted, next %s", current.value, flow.last_question_asked.value)
    return profile


__all__ = [
    "TRANSITIONS",
    "STEPS",
    "StepDefinition",
    "next_question",
    "fill_out_user_profile",
]
