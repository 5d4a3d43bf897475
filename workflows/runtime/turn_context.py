"""
MODULE: workflows/runtime/turn_context.py
PURPOSE: Inbound activity envelope and the per-turn context handed to the bot.

The context buffers outbound messages; the HTTP layer returns them once the
turn completes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ActivityTypes:
    MESSAGE = "message"


class ChannelAccount(BaseModel):
    id: str
    name: Optional[str] = None


class ConversationAccount(BaseModel):
    id: str


class Activity(BaseModel):
    """One inbound turn: who sent what, in which conversation."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = ActivityTypes.MESSAGE
    text: Optional[str] = None
    channel_id: str = Field(default="api", alias="channelId")
    conversation: ConversationAccount
    from_property: ChannelAccount = Field(alias="from")


class TurnContext:
    """Carries the inbound activity, per-turn state caches and outbound replies."""

    def __init__(self, activity: Activity) -> None:
        self.activity = activity
        self.turn_state: Dict[str, Any] = {}
        self.replies: List[str] = []

    async def send_activity(self, text: str) -> None:
        logger.debug(
            "[BOT] -> %s: %s", self.activity.conversation.id, text
        )
        self.replies.append(text)

    async def send_activities(self, texts: List[str]) -> None:
        for text in texts:
            await self.send_activity(text)


__all__ = [
    "ActivityTypes",
    "ChannelAccount",
    "ConversationAccount",
    "Activity",
    "TurnContext",
]
