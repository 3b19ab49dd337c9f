"""
Download module for the transcription pipeline.

Handles media info, raw audio, and captions for video URLs using yt-dlp.
"""

import json
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, urlparse

from tubescribe.shared import (
    tprint as print,
    TranscribeConfig, DownloadError,
    run_command,
)

# yt-dlp container extension -> MIME type sent to the recognition service
MEDIA_TYPES = {
    "webm": "audio/webm",
    "opus": "audio/ogg",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}


@dataclass
class AudioDownload:
    """Fully buffered audio stream plus what the format listing says about it."""
    data: bytes
    bitrate: Optional[float] = None  # bits/second, None if unknown
    ext: Optional[str] = None
    format_id: Optional[str] = None


def extract_video_id(url: str) -> Optional[str]:
    """Return the YouTube video ID for a URL, or None if it is not one."""
    try:
        u = urlparse(url)
    except ValueError:
        return None
    host = (u.hostname or "").lower()
    if host.endswith("youtu.be"):
        return u.path.lstrip("/").split("/")[0] or None
    if host.endswith("youtube.com"):
        video_id = parse_qs(u.query).get("v", [None])[0]
        if video_id:
            return video_id
        m = re.match(r"^/(?:shorts|embed|live)/([\w-]+)", u.path)
        if m:
            return m.group(1)
    return None


def fetch_media_info(url: str, verbose: bool = False) -> dict:
    """Fetch video/audio metadata via yt-dlp without downloading."""
    try:
        result = run_command(
            ["yt-dlp", "--dump-json", "--no-playlist", url],
            "fetching media info",
            verbose,
        )
    except (subprocess.CalledProcessError, OSError) as e:
        raise DownloadError(f"Could not fetch media info for {url}: {e}") from e
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise DownloadError(f"yt-dlp returned unreadable media info: {e}") from e


def _is_audio_only(fmt: dict) -> bool:
    return fmt.get("vcodec") == "none" and fmt.get("acodec") not in (None, "none")


def format_bitrate(fmt: Optional[dict]) -> Optional[float]:
    """Bits/second for a yt-dlp format entry (yt-dlp reports kbit/s)."""
    if not fmt:
        return None
    kbps = fmt.get("abr") or fmt.get("tbr")
    if not kbps:
        return None
    return float(kbps) * 1000


def select_audio_format(info: dict) -> Optional[dict]:
    """Pick the audio-only format with the highest bitrate, if any."""
    candidates = [f for f in info.get("formats") or [] if _is_audio_only(f)]
    if not candidates:
        return None
    return max(candidates, key=lambda f: (f.get("abr") or 0, f.get("tbr") or 0))


def media_type_for(ext: Optional[str], default: str = "audio/webm") -> str:
    return MEDIA_TYPES.get((ext or "").lower(), default)


def download_audio(config: TranscribeConfig, url: str, info: dict = None) -> AudioDownload:
    """Download the whole audio stream into memory.

    The chunk planner needs the total length up front, so nothing is
    processed until yt-dlp has finished writing to stdout.
    """
    fmt = select_audio_format(info) if info else None
    selector = fmt["format_id"] if fmt and fmt.get("format_id") else config.audio_format

    print(f"  Downloading audio (format: {selector})...")
    try:
        result = run_command(
            ["yt-dlp", "-f", selector, "-o", "-", "--quiet", "--no-playlist", url],
            "downloading audio",
            config.verbose,
            text=False,
        )
    except (subprocess.CalledProcessError, OSError) as e:
        raise DownloadError(f"Audio download failed: {e}") from e

    data = result.stdout or b""
    bitrate = format_bitrate(fmt)
    print(f"  Audio: {len(data):,} bytes"
          + (f", {bitrate / 1000:.0f} kbit/s" if bitrate else ", bitrate unknown"))
    return AudioDownload(
        data=data,
        bitrate=bitrate,
        ext=fmt.get("ext") if fmt else None,
        format_id=fmt.get("format_id") if fmt else None,
    )


# ---------------------------------------------------------------------------
# Captions (fast path)
# ---------------------------------------------------------------------------

def select_caption_language(info: dict, preferred: Optional[str]) -> Optional[str]:
    """Choose a caption track: the preferred language, else the first available.

    Uploaded subtitles win over automatic captions when falling back.
    """
    manual = info.get("subtitles") or {}
    automatic = info.get("automatic_captions") or {}
    if preferred and (preferred in manual or preferred in automatic):
        return preferred
    for tracks in (manual, automatic):
        for lang in tracks:
            if lang != "live_chat":
                return lang
    return None


VTT_HEADER = re.compile(r"^(WEBVTT|Kind:|Language:|NOTE\b|STYLE$|REGION$)")
CUE_TIMING = re.compile(r"^(\d{2}:)?\d{2}:\d{2}\.\d{3}|-->")
CUE_TAG = re.compile(r"<[^>]+>")


def vtt_to_text(content: str) -> str:
    """Flatten WebVTT content into one line of caption text.

    Auto-generated tracks repeat each line as it scrolls, so a line that
    was already emitted is dropped.
    """
    emitted = []
    seen = set()
    for line in content.splitlines():
        if not line.strip() or VTT_HEADER.match(line):
            continue
        if CUE_TIMING.search(line):
            continue
        text = " ".join(CUE_TAG.sub(" ", line).split())
        if text and text not in seen:
            seen.add(text)
            emitted.append(text)
    return " ".join(emitted)


def clean_vtt_captions(vtt_path: Path) -> str:
    """Read a VTT file and return its caption text.

    Undecodable bytes are replaced rather than failing the read.
    """
    content = Path(vtt_path).read_text(encoding="utf-8", errors="replace")
    return vtt_to_text(content)


def fetch_captions(config: TranscribeConfig, url: str, info: dict,
                   language: Optional[str] = None) -> Optional[str]:
    """Download existing captions and return them as plain text.

    Returns None when no usable track exists or anything goes wrong; the
    caller then falls back to speech recognition.
    """
    lang = select_caption_language(info, language or config.caption_language)
    if not lang:
        print("  No captions available")
        return None

    print(f"  Downloading captions ({lang})...")
    with tempfile.TemporaryDirectory(prefix="tubescribe-") as tmp:
        tmp_dir = Path(tmp)
        try:
            run_command(
                ["yt-dlp", "--write-sub", "--write-auto-sub", "--sub-lang", lang,
                 "--sub-format", "vtt", "--skip-download", "--no-playlist",
                 "-o", str(tmp_dir / "captions.%(ext)s"), url],
                "downloading captions",
                config.verbose,
            )
        except (subprocess.CalledProcessError, OSError):
            print("  Caption download failed")
            return None

        vtt_files = sorted(tmp_dir.glob("captions*.vtt"))
        if not vtt_files:
            print("  No captions available")
            return None
        try:
            text = clean_vtt_captions(vtt_files[0])
        except (OSError, ValueError) as e:
            print(f"  Could not read captions: {e}")
            return None

    if not text:
        print("  Captions were empty")
        return None
    print(f"  Captions: {len(text.split()):,} words")
    return text
