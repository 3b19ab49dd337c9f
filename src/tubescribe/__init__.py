"""Tubescribe: captions-first video transcription with a chunked ASR fallback."""

__version__ = "0.1.0"
