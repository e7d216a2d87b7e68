"""Data models for the Murf client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("MP3", "WAV", "FLAC", "ALAW", "ULAW")
SUPPORTED_SAMPLE_RATES = (8000, 24000, 44100, 48000)


@dataclass
class VoiceSettings:
    """Voice selection and output encoding with simple validation helpers."""

    voice_id: str = "Charles"
    model_version: str = "GEN2"
    audio_format: str = "MP3"
    sample_rate: int = 44100

    def validate(self) -> bool:
        """Return True if all settings fall inside supported values."""
        checks = [
            (bool(self.voice_id), "voice_id"),
            (self.audio_format.upper() in SUPPORTED_FORMATS, "audio_format"),
            (self.sample_rate in SUPPORTED_SAMPLE_RATES, "sample_rate"),
        ]

        for check, param in checks:
            if not check:
                logger.warning("音声設定 %s がサポート範囲外です", param)
                return False
        return True


@dataclass
class SpeechRequest:
    """Complete set of parameters used for API calls."""

    text: str
    voice: VoiceSettings = field(default_factory=VoiceSettings)

    def to_api_format(self) -> Dict[str, Any]:
        """Convert to the payload structure expected by Murf."""
        return {
            "text": self.text,
            "voiceId": self.voice.voice_id,
            "modelVersion": self.voice.model_version,
            "format": self.voice.audio_format.upper(),
            "sampleRate": self.voice.sample_rate,
            "encodeAsBase64": True,
        }
