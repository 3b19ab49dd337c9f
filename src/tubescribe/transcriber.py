#!/usr/bin/env python3
"""
Tubescribe
==========
Turns a video or audio URL into a plain-text transcript.

Pipeline:
1. Fetch media info and enforce the duration limit (yt-dlp)
2. Use existing captions when the video has them (yt-dlp)
3. Otherwise download the audio, split it into overlapping chunks, send each
   chunk to the OpenAI transcription API, and stitch the results

Usage:
    tubescribe <url> [options]

Examples:
    # Captions if available, speech recognition otherwise
    tubescribe "https://youtube.com/watch?v=..."

    # Always use speech recognition, forcing German
    tubescribe "https://youtube.com/watch?v=..." --no-captions --language de --no-auto-language

    # Write the full result as JSON
    tubescribe "https://youtube.com/watch?v=..." --json -o result.json
"""

import argparse
import json
import sys
from pathlib import Path

from tubescribe import __version__
from tubescribe.shared import (
    tprint as print,
    TranscribeConfig, TranscriptionError,
    check_dependencies,
)
from tubescribe.pipeline import transcribe_url

SECTION_SEPARATOR = "=" * 50


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tubescribe",
        description="Transcribe videos from URLs (captions first, speech recognition fallback)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "https://youtube.com/watch?v=..."
  %(prog)s "https://youtube.com/watch?v=..." --no-captions
  %(prog)s "https://youtube.com/watch?v=..." --language de --no-auto-language
  %(prog)s "https://youtube.com/watch?v=..." --json -o result.json
        """
    )
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")

    # Input
    input_group = parser.add_argument_group("input")
    input_group.add_argument("url", help="URL of the video or audio")
    input_group.add_argument("--language",
                        help="Language code for captions and the reported result (e.g. en, de)")
    input_group.add_argument("--no-auto-language", action="store_true",
                        help="Force --language on speech recognition instead of auto-detecting")
    input_group.add_argument("--no-captions", action="store_true",
                        help="Skip existing captions and always use speech recognition")

    # Output
    output_group = parser.add_argument_group("output")
    output_group.add_argument("-o", "--output",
                        help="Write the transcript to this file (default: stdout)")
    output_group.add_argument("--json", action="store_true",
                        help="Write transcript, language, duration and source as JSON")

    # Speech recognition
    asr_group = parser.add_argument_group("speech recognition")
    asr_group.add_argument("--api-key",
                        help="OpenAI API key (or set OPENAI_API_KEY env var)")
    asr_group.add_argument("--base-url",
                        help="Alternative OpenAI-compatible API base URL")
    asr_group.add_argument("--model", default="whisper-1",
                        help="Transcription model (default: whisper-1)")
    asr_group.add_argument("--chunk-seconds", type=int, default=600,
                        help="Target audio length per recognition call (default: 600)")
    asr_group.add_argument("--overlap-seconds", type=int, default=2,
                        help="Audio shared between consecutive chunks (default: 2)")
    asr_group.add_argument("--pacing", type=float, default=0.8,
                        help="Seconds to wait between recognition calls (default: 0.8)")

    # Policy
    policy_group = parser.add_argument_group("policy")
    policy_group.add_argument("--max-duration", type=float, default=3.0,
                        help="Refuse media longer than this many hours (default: 3)")
    policy_group.add_argument("-v", "--verbose", action="store_true",
                        help="Show detailed command output")
    return parser


def config_from_args(args) -> TranscribeConfig:
    return TranscribeConfig(
        openai_api_key=args.api_key,
        openai_base_url=args.base_url,
        asr_model=args.model,
        chunk_seconds=args.chunk_seconds,
        overlap_seconds=args.overlap_seconds,
        pacing_seconds=args.pacing,
        max_duration_seconds=int(args.max_duration * 3600),
        language=args.language,
        auto_language_detection=not args.no_auto_language,
        use_captions=not args.no_captions,
        caption_language=args.language or "en",
        verbose=args.verbose,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_auto_language and not args.language:
        parser.error("--no-auto-language requires --language")

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    # Check dependencies
    print("Checking dependencies...")
    deps = check_dependencies()
    missing = []
    if not deps["yt-dlp"]:
        missing.append("yt-dlp (install with: pip install yt-dlp)")
    if not deps["openai"]:
        missing.append("openai (install with: pip install openai)")
    if missing:
        print("Missing dependencies:")
        for dep in missing:
            print(f"  - {dep}")
        sys.exit(1)

    print()
    print(f"Processing: {args.url}")

    try:
        outcome = transcribe_url(config, args.url)
    except (TranscriptionError, ValueError) as e:
        print()
        print(f"Error: {e}")
        if config.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    if args.json:
        output = json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False)
    else:
        output = outcome.transcript

    print()
    print(SECTION_SEPARATOR)
    print(f"COMPLETE! ({outcome.source}, {len(outcome.transcript.split()):,} words)")
    print(SECTION_SEPARATOR)

    if args.output:
        path = Path(args.output)
        path.write_text(output + "\n")
        print(f"Transcript saved: {path}")
    else:
        sys.stdout.write(output + "\n")


if __name__ == "__main__":
    main()
