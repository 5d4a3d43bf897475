"""
MODULE: api/routes/messages.py
PURPOSE: Message endpoints for the profile prompt bot.

ROUTES:
    POST /api/messages                              - Run one turn, return the replies
    GET  /api/conversations/{conversation_id}/state - Inspect persisted flow and profile

The bot itself lives on ``app.state.bot`` (see app.create_app).
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from workflows.common import prompts
from workflows.common.fallback import create_fallback_context, wrap_fallback
from workflows.common.types import ConversationFlow, UserProfile
from workflows.runtime.bot import ProfilePromptBot
from workflows.runtime.turn_context import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
    TurnContext,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class TurnResponse(BaseModel):
    conversation_id: str
    replies: List[str]


class StateResponse(BaseModel):
    conversation_id: str
    user_id: str
    flow: ConversationFlow
    profile: UserProfile


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _get_bot(request: Request) -> ProfilePromptBot:
    return request.app.state.bot


async def on_turn_error(bot: ProfilePromptBot, turn_context: TurnContext, error: Exception) -> None:
    """Tell the user something broke and drop the conversation state.

    Clearing the state keeps a broken record from failing every later turn;
    the next message starts the prompts over.
    """
    logger.exception(
        "[BOT] Unhandled error in conversation %s: %s",
        turn_context.activity.conversation.id,
        error,
    )
    ctx = create_fallback_context(
        source="api.routes.messages.on_turn_error",
        trigger="turn_failed",
        conversation_id=turn_context.activity.conversation.id,
        error=error,
    )
    await turn_context.send_activity(wrap_fallback(prompts.TURN_ERROR, ctx))
    await turn_context.send_activity(prompts.TURN_ERROR_HINT)

    try:
        await bot.conversation_state.delete(turn_context)
    except Exception as exc:
        logger.error("[BOT] Could not clear conversation state after error: %s", exc)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/api/messages", response_model=TurnResponse)
async def post_message(activity: Activity, request: Request) -> TurnResponse:
    """Process one inbound activity and return what the bot said.

    Non-message activities (e.g. conversationUpdate) are accepted and
    produce no replies.
    """
    bot = _get_bot(request)
    turn_context = TurnContext(activity)

    try:
        await bot.on_turn(turn_context)
    except Exception as exc:
        await on_turn_error(bot, turn_context, exc)

    return TurnResponse(
        conversation_id=activity.conversation.id,
        replies=turn_context.replies,
    )


@router.get("/api/conversations/{conversation_id}/state", response_model=StateResponse)
async def get_conversation_state(
    conversation_id: str,
    request: Request,
    user_id: str = Query(..., min_length=1, description="User whose profile to return"),
    channel_id: Optional[str] = Query(default="api", description="Channel the conversation lives on"),
) -> StateResponse:
    """Return the persisted dialogue position and profile without changing them."""
    bot = _get_bot(request)
    probe = Activity(
        type=ActivityTypes.MESSAGE,
        channel_id=channel_id or "api",
        conversation=ConversationAccount(id=conversation_id),
        from_property=ChannelAccount(id=user_id),
    )
    turn_context = TurnContext(probe)

    flow = await bot.flow_accessor.get(turn_context, ConversationFlow)
    profile = await bot.profile_accessor.get(turn_context, UserProfile)

    return StateResponse(
        conversation_id=conversation_id,
        user_id=user_id,
        flow=flow,
        profile=profile,
    )
