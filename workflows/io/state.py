"""
MODULE: workflows/io/state.py
PURPOSE: Per-conversation and per-user state scopes over a Storage.

A turn loads each scope once, hands out typed properties through
accessors, and writes the record back only if it changed:

    flow_accessor = conversation_state.create_property("ConversationFlow", ConversationFlow)
    flow = await flow_accessor.get(turn_context, ConversationFlow)
    ...
    await flow_accessor.set(turn_context, flow)
    await conversation_state.save_changes(turn_context)

Storage records are plain JSON dicts keyed by property name. Pydantic
models are rebuilt on first access and dumped again on save.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from workflows.io.storage import Storage

if TYPE_CHECKING:
    from workflows.runtime.turn_context import TurnContext

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class CachedBotState:
    """State loaded for the current turn plus a fingerprint of what was read."""

    state: Dict[str, Any] = field(default_factory=dict)
    fingerprint: str = ""

    def is_changed(self) -> bool:
        return _fingerprint(self.state) != self.fingerprint


def _serialize(state: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        for key, value in state.items()
    }


def _fingerprint(state: Dict[str, Any]) -> str:
    return json.dumps(_serialize(state), sort_keys=True, default=str)


class BotState:
    """Base class for a named state scope backed by a Storage."""

    def __init__(self, storage: Storage, context_service_key: str) -> None:
        self._storage = storage
        self._context_service_key = context_service_key

    def get_storage_key(self, turn_context: "TurnContext") -> str:
        raise NotImplementedError

    def create_property(self, name: str, model: Type[M]) -> "StatePropertyAccessor[M]":
        if not name:
            raise ValueError("Property name cannot be empty")
        return StatePropertyAccessor(self, name, model)

    def get_cached_state(self, turn_context: "TurnContext") -> Optional[CachedBotState]:
        return turn_context.turn_state.get(self._context_service_key)

    async def load(self, turn_context: "TurnContext", force: bool = False) -> None:
        cached = self.get_cached_state(turn_context)
        if cached is not None and not force:
            return

        key = self.get_storage_key(turn_context)
        items = await self._storage.read([key])
        state = dict(items.get(key) or {})
        turn_context.turn_state[self._context_service_key] = CachedBotState(
            state=state, fingerprint=_fingerprint(state)
        )
        logger.debug("[STATE] Loaded %s (%d properties)", key, len(state))

    async def save_changes(self, turn_context: "TurnContext", force: bool = False) -> None:
        cached = self.get_cached_state(turn_context)
        if cached is None:
            return
        if not force and not cached.is_changed():
            return

        key = self.get_storage_key(turn_context)
        await self._storage.write({key: _serialize(cached.state)})
        cached.fingerprint = _fingerprint(cached.state)
        logger.debug("[STATE] Saved %s", key)

    async def delete(self, turn_context: "TurnContext") -> None:
        turn_context.turn_state.pop(self._context_service_key, None)
        await self._storage.delete([self.get_storage_key(turn_context)])

    async def get_property_value(self, turn_context: "TurnContext", name: str) -> Any:
        cached = self._require_cached(turn_context)
        return cached.state.get(name)

    async def set_property_value(self, turn_context: "TurnContext", name: str, value: Any) -> None:
        cached = self._require_cached(turn_context)
        cached.state[name] = value

    def _require_cached(self, turn_context: "TurnContext") -> CachedBotState:
        cached = self.get_cached_state(turn_context)
        if cached is None:
            raise RuntimeError(f"{type(self).__name__} was not loaded for this turn")
        return cached


class ConversationState(BotState):
    """State shared by everyone in a conversation."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage, "ConversationState")

    def get_storage_key(self, turn_context: "TurnContext") -> str:
        activity = turn_context.activity
        if not activity.channel_id:
            raise ValueError("Activity is missing channel_id")
        if not activity.conversation.id:
            raise ValueError("Activity is missing conversation.id")
        return f"{activity.channel_id}/conversations/{activity.conversation.id}"


class UserState(BotState):
    """State that follows one user across conversations on a channel."""

    def __init__(self, storage: Storage) -> None:
        super().__init__(storage, "UserState")

    def get_storage_key(self, turn_context: "TurnContext") -> str:
        activity = turn_context.activity
        if not activity.channel_id:
            raise ValueError("Activity is missing channel_id")
        if not activity.from_property.id:
            raise ValueError("Activity is missing from.id")
        return f"{activity.channel_id}/users/{activity.from_property.id}"


class StatePropertyAccessor(Generic[M]):
    """Typed handle on one named property inside a BotState record."""

    def __init__(self, state: BotState, name: str, model: Type[M]) -> None:
        self._state = state
        self._name = name
        self._model = model

    @property
    def name(self) -> str:
        return self._name

    async def get(
        self,
        turn_context: "TurnContext",
        default_factory: Optional[Callable[[], M]] = None,
    ) -> Optional[M]:
        await self._state.load(turn_context)
        value = await self._state.get_property_value(turn_context, self._name)

        if value is None:
            if default_factory is None:
                return None
            value = default_factory()
            await self._state.set_property_value(turn_context, self._name, value)
            return value

        if not isinstance(value, self._model):
            value = self._model.model_validate(value)
            await self._state.set_property_value(turn_context, self._name, value)
        return value

    async def set(self, turn_context: "TurnContext", value: M) -> None:
        await self._state.load(turn_context)
        await self._state.set_property_value(turn_context, self._name, value)


__all__ = [
    "BotState",
    "ConversationState",
    "UserState",
    "StatePropertyAccessor",
    "CachedBotState",
]
