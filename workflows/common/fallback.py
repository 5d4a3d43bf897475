"""
Fallback handling utilities for visible error reporting.

When a recognizer blows up or a turn fails, the user still gets a message
and the failure is logged with enough context to trace it back to the
conversation and the question being asked.

Usage:
    from workflows.common.fallback import create_fallback_context, wrap_fallback

    try:
        results = recognizer.recognize_number(text, culture)
    except Exception as exc:
        ctx = create_fallback_context(
            source="validation.age",
            trigger="recognizer_failed",
            question="age",
            error=exc,
        )
        message = wrap_fallback("I'm sorry, I could not interpret that as an age.", ctx)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from workflows.io.config_store import get_settings

logger = logging.getLogger(__name__)


@dataclass
class FallbackContext:
    """Context information for a fallback event."""

    source: str  # e.g., "validation.age", "api.messages"
    trigger: str  # e.g., "recognizer_failed", "turn_failed"
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )

    conversation_id: Optional[str] = None
    question: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        return {
            "source": self.source,
            "trigger": self.trigger,
            "timestamp": self.timestamp,
            "conversation_id": self.conversation_id,
            "question": self.question,
            "error": self.error,
        }


def create_fallback_context(
    source: str,
    trigger: str,
    *,
    conversation_id: Optional[str] = None,
    question: Optional[str] = None,
    error: Optional[BaseException] = None,
) -> FallbackContext:
    """
    Create a fallback context for tracking and debugging.

    Args:
        source: The code location (e.g., "validation.date")
        trigger: What caused the fallback (e.g., "recognizer_failed")
        conversation_id: Associated conversation if available
        question: Question being answered when the fallback happened
        error: The exception that caused the fallback

    Returns:
        FallbackContext with all relevant information
    """
    return FallbackContext(
        source=source,
        trigger=trigger,
        conversation_id=conversation_id,
        question=question,
        error=f"{type(error).__name__}: {error}" if error else None,
    )


def wrap_fallback(
    user_message: str,
    context: FallbackContext,
    *,
    include_dev_info: bool = False,
) -> str:
    """
    Log the fallback and return the user-facing message.

    With PROMPT_BOT_FALLBACK_DIAGNOSTICS enabled (or include_dev_info=True)
    the message is suffixed with the fallback source and trigger.
    """
    _log_fallback(context)

    if include_dev_info or get_settings().fallback_diagnostics:
        dev_info = f"\n\n[DEV] Fallback: {context.source} | {context.trigger}"
        if context.error:
            dev_info += f" | Error: {context.error}"
        return user_message + dev_info

    return user_message


def _log_fallback(context: FallbackContext) -> None:
    logger.warning(
        "[FALLBACK] source=%s trigger=%s question=%s conversation=%s error=%s",
        context.source,
        context.trigger,
        context.question,
        context.conversation_id,
        context.error,
    )


__all__ = [
    "FallbackContext",
    "create_fallback_context",
    "wrap_fallback",
]
