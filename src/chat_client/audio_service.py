"""Lazy audio resolution for chat messages.

Audio is generated on the first playback request, never when a message is
created. Lookup order: local cache, then the audio the store already holds
for the message, then a new TTS request. Concurrent requests for the same
message share one in-flight task so only one TTS call is made.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Dict, Optional

from src.chat_history.models import Message

from .api_client import ChatApiClient
from .audio_cache import AudioCache
from .view import ChatView

logger = logging.getLogger(__name__)


class AudioService:
    """Resolves (and caches) base64 audio per message id."""

    def __init__(
        self, api: ChatApiClient, cache: AudioCache, view: Optional[ChatView] = None
    ) -> None:
        self.api = api
        self.cache = cache
        self.view = view
        self._in_flight: Dict[int, asyncio.Task] = {}

    def is_generating(self, message_id: int) -> bool:
        return message_id in self._in_flight

    async def get_audio(self, message: Message) -> str:
        """Return base64 audio for ``message``, generating it at most once.

        Raises:
            ApiRequestError: TTS failed (nothing is cached in that case)
        """
        task = self._in_flight.get(message.id)
        if task is None:
            task = asyncio.ensure_future(self._resolve(message))
            self._in_flight[message.id] = task
            task.add_done_callback(lambda _: self._in_flight.pop(message.id, None))
        return await asyncio.shield(task)

    async def _resolve(self, message: Message) -> str:
        cached = await asyncio.to_thread(self.cache.get, message.id)
        if cached:
            return cached

        if message.audio_base64:
            await asyncio.to_thread(self.cache.set, message.id, message.audio_base64)
            return message.audio_base64

        logger.info("Generating speech for message %s", message.id)
        audio = await asyncio.to_thread(self.api.synthesize, message.content, message.id)
        await asyncio.to_thread(self.cache.set, message.id, audio)
        if self.view is not None:
            self.view.set_audio(message.id, audio)
        return audio

    async def save_audio(self, message: Message, directory: Path, extension: str = "mp3") -> Path:
        """Resolve audio and write it to ``directory/<id>.<extension>`` for playback."""
        audio = await self.get_audio(message)
        output_path = Path(directory) / f"message_{message.id}.{extension}"
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(base64.b64decode(audio))
        logger.info("Audio written to %s", output_path)
        return output_path
