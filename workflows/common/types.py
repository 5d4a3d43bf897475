"""
MODULE: workflows/common/types.py
PURPOSE: Core data types for the profile prompt dialogue.

Contains:
- Question: Which question the bot asked last
- ConversationFlow: Per-conversation dialogue position
- UserProfile: Per-user answers collected so far
- ValidationSuccess / ValidationFailure: Validator outcomes
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, Field


class Question(str, Enum):
    """Dialogue position. The order of members is the order of the cycle."""

    NONE = "none"
    NAME = "name"
    AGE = "age"
    DATE = "date"


class ConversationFlow(BaseModel):
    """Tracks which question was asked last in a conversation."""

    last_question_asked: Question = Question.NONE


class UserProfile(BaseModel):
    """Answers collected from a user, filled strictly name -> age -> date."""

    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=18, le=120)
    date: Optional[str] = None


T = TypeVar("T")


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    """Input was accepted.

    Attributes:
        value: Parsed value (name text, integer age, short date string)
    """

    value: T

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class ValidationFailure:
    """Input was rejected.

    Attributes:
        message: User-facing explanation, or None to use the generic fallback
    """

    message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return False


ValidationResult = Union[ValidationSuccess[Any], ValidationFailure]


__all__ = [
    "Question",
    "ConversationFlow",
    "UserProfile",
    "ValidationSuccess",
    "ValidationFailure",
    "ValidationResult",
]
