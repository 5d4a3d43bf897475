"""
MODULE: workflows/runtime/bot.py
PURPOSE: Turn handler that walks a user through the profile prompts.

Each message turn loads the conversation flow and the user profile, runs
one dialogue step, then writes both back. Other activity types are
acknowledged without a reply.
"""

from __future__ import annotations

import logging
from typing import Optional

from workflows.common.recognizers import Recognizer, TextRecognizer
from workflows.common.types import ConversationFlow, UserProfile
from workflows.io.state import ConversationState, UserState
from workflows.runtime.router import fill_out_user_profile
from workflows.runtime.turn_context import ActivityTypes, TurnContext

logger = logging.getLogger(__name__)

CONVERSATION_FLOW_PROPERTY = "ConversationFlow"
USER_PROFILE_PROPERTY = "UserProfile"


class ProfilePromptBot:
    """Collects name, age and travel date, one validated answer per turn."""

    def __init__(
        self,
        conversation_state: ConversationState,
        user_state: UserState,
        recognizer: Optional[Recognizer] = None,
    ) -> None:
        if conversation_state is None:
            raise TypeError("ProfilePromptBot requires a ConversationState")
        if user_state is None:
            raise TypeError("ProfilePromptBot requires a UserState")

        self.conversation_state = conversation_state
        self.user_state = user_state
        self.recognizer = recognizer or TextRecognizer()

        self.flow_accessor = conversation_state.create_property(
            CONVERSATION_FLOW_PROPERTY, ConversationFlow
        )
        self.profile_accessor = user_state.create_property(USER_PROFILE_PROPERTY, UserProfile)

    async def on_turn(self, turn_context: TurnContext) -> None:
        if turn_context.activity.type == ActivityTypes.MESSAGE:
            await self.on_message_activity(turn_context)
        else:
            logger.debug("[BOT] Ignoring %s activity", turn_context.activity.type)

    async def on_message_activity(self, turn_context: TurnContext) -> None:
        logger.info("Running dialog with Message Activity.")

        flow = await self.flow_accessor.get(turn_context, ConversationFlow)
        profile = await self.profile_accessor.get(turn_context, UserProfile)

        profile = await fill_out_user_profile(flow, profile, turn_context, self.recognizer)

        # Update state and save changes.
        await self.flow_accessor.set(turn_context, flow)
        await self.conversation_state.save_changes(turn_context)

        await self.profile_accessor.set(turn_context, profile)
        await self.user_state.save_changes(turn_context)


__all__ = ["ProfilePromptBot", "CONVERSATION_FLOW_PROPERTY", "USER_PROFILE_PROPERTY"]
