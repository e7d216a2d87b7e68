"""Murf text-to-speech client toolkit."""

from .client import MurfClient
from .models import SpeechRequest, VoiceSettings

__all__ = [
    "MurfClient",
    "SpeechRequest",
    "VoiceSettings",
]
