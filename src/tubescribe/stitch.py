"""
Stitching of per-chunk recognition results into a single transcript.

Consecutive chunks share a few seconds of audio, so the words spoken in the
overlap are usually recognized twice. There is no timing or alignment signal
to locate them; instead the trailing words of the transcript so far are
compared with the leading words of the next chunk, and an exact
(case-insensitive) match is collapsed to a single copy. Near matches are not
deduplicated.
"""

import re
from dataclasses import dataclass

DEFAULT_WINDOW_WORDS = 12


@dataclass(frozen=True)
class ChunkResult:
    """Recognized text for the chunk at position ``index`` of the plan."""
    index: int
    text: str


def _drop_leading_words(text: str, count: int) -> str:
    """Remove the first ``count`` words, keeping the rest of ``text`` verbatim."""
    parts = re.split(r"\s+", text.strip(), maxsplit=count)
    if len(parts) <= count:
        return ""
    return parts[count]


class TranscriptStitcher:
    """Accumulates chunk results, in plan order, into one transcript."""

    def __init__(self, window_words: int = DEFAULT_WINDOW_WORDS):
        if window_words < 1:
            raise ValueError("window_words must be at least 1")
        self.window_words = window_words
        self._transcript = ""
        self._next_index = 0
        self.duplicates_removed = 0

    def add(self, result: ChunkResult) -> None:
        """Append the next chunk's text, collapsing an exact boundary repeat."""
        if result.index != self._next_index:
            raise ValueError(
                f"Chunk results must arrive in order: expected {self._next_index}, "
                f"got {result.index}")
        self._next_index += 1

        segment = result.text.strip()
        if result.index > 0 and self._transcript:
            tail = [w.lower() for w in self._transcript.split()[-self.window_words:]]
            head = [w.lower() for w in segment.split()[:self.window_words]]
            if tail == head:
                segment = _drop_leading_words(segment, self.window_words)
                self.duplicates_removed += 1

        if not segment:
            return
        if self._transcript:
            self._transcript += " " + segment
        else:
            self._transcript = segment

    @property
    def chunks_seen(self) -> int:
        return self._next_index

    def result(self) -> str:
        return self._transcript.strip()


def stitch_transcripts(texts, window_words: int = DEFAULT_WINDOW_WORDS) -> str:
    """Stitch an ordered sequence of chunk texts into one transcript."""
    stitcher = TranscriptStitcher(window_words)
    for i, text in enumerate(texts):
        stitcher.add(ChunkResult(index=i, text=text))
    return stitcher.result()
