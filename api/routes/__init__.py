"""
MODULE: api/routes/__init__.py
PURPOSE: FastAPI route handlers.

CONTAINS:
    - messages.py    Bot turns and conversation state (/api/messages, /api/conversations/*)
"""

from .messages import router as messages_router

__all__ = [
    "messages_router",
]
