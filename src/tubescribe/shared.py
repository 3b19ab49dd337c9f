"""
Shared types and utilities for the transcription pipeline.

Contains TranscribeConfig, TranscriptionOutcome, the error hierarchy, and
utility functions used by download.py, pipeline.py, and the CLI/server.
"""

import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import Optional

import builtins


def tprint(*args, **kwargs):
    """Print with [HH:MM:SS] timestamp prefix.

    Skips the timestamp for carriage-return progress lines (end != newline)
    so that in-place progress updates remain clean.
    """
    if kwargs.get("end", "\n") != "\n":
        builtins.print(*args, flush=True, **kwargs)
        return
    stamp = time.strftime("[%H:%M:%S]")
    builtins.print(stamp, *args, flush=True, **kwargs)


print = tprint

SOURCE_CAPTIONS = "captions"
SOURCE_ASR = "asr"
AUTO_LANGUAGE = "auto"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ConfigurationError(ValueError):
    """Invalid pipeline configuration (a defect, caught before planning)."""


class InvalidRequestError(ValueError):
    """The caller did not supply a usable request (e.g. missing URL)."""


class TranscriptionError(RuntimeError):
    """A transcription attempt failed; no partial transcript is returned."""


class DownloadError(TranscriptionError):
    """Fetching media info or audio bytes failed."""


class RecognitionError(TranscriptionError):
    """A chunk's speech-recognition call failed."""


class DurationLimitError(TranscriptionError):
    """The media is too long or its duration cannot be read."""


# ---------------------------------------------------------------------------
# Configuration and results
# ---------------------------------------------------------------------------

@dataclass
class TranscribeConfig:
    """Configuration for the transcription pipeline."""
    openai_api_key: Optional[str] = None  # Falls back to OPENAI_API_KEY
    openai_base_url: Optional[str] = None
    asr_model: str = "whisper-1"
    media_type: str = "audio/webm"  # Used when the downloaded container is unknown
    # Chunking
    chunk_seconds: int = 600
    overlap_seconds: int = 2
    min_bytes_per_second: int = 16000
    pacing_seconds: float = 0.8  # Delay between recognition calls
    stitch_window_words: int = 12
    # Request policy
    max_duration_seconds: int = 3 * 60 * 60
    language: Optional[str] = None
    auto_language_detection: bool = True
    use_captions: bool = True
    caption_language: str = "en"  # Caption hint when no language is given
    audio_format: str = "bestaudio"
    verbose: bool = False

    def __post_init__(self):
        if self.chunk_seconds <= 0:
            raise ConfigurationError(f"chunk_seconds must be positive, got {self.chunk_seconds}")
        if self.overlap_seconds < 0:
            raise ConfigurationError(f"overlap_seconds must not be negative, got {self.overlap_seconds}")
        if self.overlap_seconds >= self.chunk_seconds:
            raise ConfigurationError(
                f"overlap_seconds ({self.overlap_seconds}) must be smaller than "
                f"chunk_seconds ({self.chunk_seconds})")
        if self.min_bytes_per_second <= 0:
            raise ConfigurationError("min_bytes_per_second must be positive")
        if self.pacing_seconds < 0:
            raise ConfigurationError("pacing_seconds must not be negative")
        if self.stitch_window_words < 1:
            raise ConfigurationError("stitch_window_words must be at least 1")

    @property
    def forced_language(self) -> Optional[str]:
        """Language to force on the recognizer, or None to let it auto-detect."""
        if self.auto_language_detection:
            return None
        return self.language or None

    @property
    def reported_language(self) -> str:
        return self.language or AUTO_LANGUAGE

    def resolve_api_key(self) -> Optional[str]:
        return self.openai_api_key or os.environ.get("OPENAI_API_KEY")


@dataclass(frozen=True)
class TranscriptionOutcome:
    """Final result of one transcription request."""
    transcript: str
    source: str  # SOURCE_CAPTIONS or SOURCE_ASR
    duration_seconds: int
    language: str

    def to_dict(self) -> dict:
        return {
            "transcript": self.transcript,
            "language": self.language,
            "duration": self.duration_seconds,
            "source": self.source,
        }


# ---------------------------------------------------------------------------
# Pipeline utilities
# ---------------------------------------------------------------------------

def run_command(cmd: list[str], description: str, verbose: bool = False,
                text: bool = True) -> subprocess.CompletedProcess:
    """Run a shell command with error handling.

    With text=False, stdout/stderr are returned as bytes (used to capture
    raw audio from yt-dlp).
    """
    if verbose:
        print(f"  Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=text, check=True)
        return result
    except subprocess.CalledProcessError as e:
        stderr = e.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        print(f"  Error: {description}")
        print(f"  {stderr}")
        raise


def check_dependencies() -> dict[str, bool]:
    """Check for required external tools."""
    deps = {
        "yt-dlp": False,
        "openai": False,
    }

    deps["yt-dlp"] = shutil.which("yt-dlp") is not None

    try:
        import openai
        deps["openai"] = True
    except ImportError:
        pass

    return deps
