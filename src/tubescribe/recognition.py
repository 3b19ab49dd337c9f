"""
Speech-recognition client adapter and call pacing.

Wraps one call to the OpenAI audio transcription endpoint per chunk.
Errors from the service are not caught here; the pipeline treats any
failed chunk as fatal to the whole attempt.
"""

import time
from typing import Callable, Optional

from tubescribe.shared import ConfigurationError, TranscribeConfig

# File extensions for the upload name; the service sniffs the container
# from the filename.
MEDIA_TYPE_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/mp4": "m4a",
    "audio/mpeg": "mp3",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
}


def create_asr_client(config: TranscribeConfig):
    """Create an OpenAI client from explicit configuration."""
    from openai import OpenAI
    api_key = config.resolve_api_key()
    if not api_key:
        raise ConfigurationError(
            "No OpenAI API key found (set OPENAI_API_KEY or pass --api-key)")
    if config.openai_base_url:
        return OpenAI(api_key=api_key, base_url=config.openai_base_url)
    return OpenAI(api_key=api_key)


class SpeechRecognizer:
    """Sends single audio chunks to the recognition service."""

    def __init__(self, client, model: str = "whisper-1"):
        self.client = client
        self.model = model

    def recognize(self, audio: bytes, media_type: str = "audio/webm",
                  language: Optional[str] = None, index: int = 0) -> str:
        """Transcribe one chunk and return its trimmed text.

        ``language`` forces the recognition language; None lets the service
        auto-detect it.
        """
        ext = MEDIA_TYPE_EXTENSIONS.get(media_type, "webm")
        kwargs = {
            "model": self.model,
            "file": (f"chunk-{index}.{ext}", audio, media_type),
            "response_format": "text",
            "temperature": 0,
        }
        if language:
            kwargs["language"] = language
        response = self.client.audio.transcriptions.create(**kwargs)
        # response_format="text" gives a plain string; other formats give an
        # object with .text
        text = getattr(response, "text", response)
        return str(text or "").strip()


class Pacer:
    """Fixed delay between consecutive calls to a rate-limited service."""

    def __init__(self, interval: float, sleep: Callable[[float], None] = time.sleep):
        self.interval = interval
        self._sleep = sleep

    def pause(self) -> None:
        if self.interval > 0:
            self._sleep(self.interval)
