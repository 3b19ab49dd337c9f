"""
Transcription pipeline: captions fast path with a chunked ASR fallback.

The fallback buffers the whole audio stream, plans overlapping byte-range
chunks from an estimated byte rate, sends the chunks to the recognition
service one at a time with a pause between calls, and stitches the partial
transcripts in order. Any failure aborts the attempt; partial text is never
returned.
"""

import math
from typing import Optional

from tubescribe.shared import (
    tprint as print,
    TranscribeConfig, TranscriptionOutcome,
    DurationLimitError, RecognitionError,
    SOURCE_ASR, SOURCE_CAPTIONS,
)
from tubescribe.chunking import estimate_bytes_per_second, plan_chunks
from tubescribe.stitch import ChunkResult, TranscriptStitcher
from tubescribe.recognition import Pacer, SpeechRecognizer, create_asr_client
from tubescribe.download import (
    download_audio, extract_video_id, fetch_captions, fetch_media_info,
    media_type_for,
)


def transcribe_audio_stream(audio: bytes, bitrate: Optional[float],
                            recognizer: SpeechRecognizer, config: TranscribeConfig,
                            media_type: Optional[str] = None,
                            pacer: Optional[Pacer] = None) -> str:
    """Recognize a fully buffered audio stream chunk by chunk.

    Chunks are processed strictly in plan order so the stitcher always sees
    the previous chunk's text. Raises RecognitionError on the first failed
    chunk.
    """
    media_type = media_type or config.media_type
    pacer = pacer or Pacer(config.pacing_seconds)

    bytes_per_second = estimate_bytes_per_second(bitrate, config.min_bytes_per_second)
    plan = plan_chunks(len(audio), bytes_per_second,
                       config.chunk_seconds, config.overlap_seconds)
    print(f"  Planned {len(plan)} chunk(s) at ~{bytes_per_second:,} bytes/s "
          f"({config.chunk_seconds}s each, {config.overlap_seconds}s overlap)")

    stitcher = TranscriptStitcher(config.stitch_window_words)
    for chunk in plan:
        print(f"  Chunk {chunk.index + 1}/{len(plan)}: {chunk.length:,} bytes")
        try:
            text = recognizer.recognize(
                audio[chunk.offset:chunk.end],
                media_type=media_type,
                language=config.forced_language,
                index=chunk.index,
            )
        except Exception as e:
            raise RecognitionError(
                f"Recognition failed on chunk {chunk.index + 1}/{len(plan)}: {e}") from e
        stitcher.add(ChunkResult(index=chunk.index, text=text))
        if chunk.index < len(plan) - 1:
            pacer.pause()

    if stitcher.duplicates_removed:
        print(f"  Collapsed {stitcher.duplicates_removed} repeated chunk boundary(ies)")
    return stitcher.result()


def transcribe_with_asr(config: TranscribeConfig, url: str, info: dict = None,
                        recognizer: Optional[SpeechRecognizer] = None,
                        pacer: Optional[Pacer] = None,
                        duration_seconds: int = 0) -> TranscriptionOutcome:
    """Run the speech-recognition fallback end to end for one URL."""
    print()
    print("[asr] Transcribing audio with speech recognition...")

    if recognizer is None:
        recognizer = SpeechRecognizer(create_asr_client(config), config.asr_model)

    download = download_audio(config, url, info)
    transcript = transcribe_audio_stream(
        download.data, download.bitrate, recognizer, config,
        media_type=media_type_for(download.ext, config.media_type),
        pacer=pacer,
    )
    print(f"  Transcript: {len(transcript.split()):,} words")
    return TranscriptionOutcome(
        transcript=transcript,
        source=SOURCE_ASR,
        duration_seconds=duration_seconds,
        language=config.reported_language,
    )


def check_duration(info: dict, max_seconds: int) -> int:
    """Return the media duration in whole seconds, enforcing the limit."""
    # Extractors without a duration (e.g. live streams) report nothing; treat as 0
    raw = info.get("duration") or 0
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        raise DurationLimitError("Cannot read video duration")
    if not math.isfinite(seconds):
        raise DurationLimitError("Cannot read video duration")
    if seconds > max_seconds:
        hours = max_seconds / 3600
        raise DurationLimitError(f"Video exceeds {hours:g}-hour limit")
    return int(seconds)


def transcribe_url(config: TranscribeConfig, url: str, info: dict = None,
                   recognizer: Optional[SpeechRecognizer] = None,
                   pacer: Optional[Pacer] = None) -> TranscriptionOutcome:
    """Transcribe a URL, preferring existing captions over speech recognition."""
    if info is None:
        print()
        print("[1] Fetching media info...")
        info = fetch_media_info(url, config.verbose)
    print(f"  Title: {info.get('title', '(untitled)')}")

    duration = check_duration(info, config.max_duration_seconds)
    print(f"  Duration: {duration // 60} min {duration % 60} s")

    if config.use_captions and extract_video_id(url):
        print()
        print("[2] Looking for captions...")
        text = fetch_captions(config, url, info, config.language)
        if text:
            return TranscriptionOutcome(
                transcript=text,
                source=SOURCE_CAPTIONS,
                duration_seconds=duration,
                language=config.reported_language,
            )
    elif not config.use_captions:
        print("  Skipping captions (--no-captions)")

    return transcribe_with_asr(config, url, info, recognizer=recognizer,
                               pacer=pacer, duration_seconds=duration)
