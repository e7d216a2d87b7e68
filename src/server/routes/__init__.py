"""Route registration helpers."""

from .chat import register_chat_routes
from .sessions import register_session_routes
from .settings import register_settings_routes
from .tts import register_tts_routes

__all__ = [
    "register_chat_routes",
    "register_session_routes",
    "register_settings_routes",
    "register_tts_routes",
]
