"""
Chunk planning for the speech-recognition fallback.

The recognition service limits the size of each upload, but the audio
stream carries no per-chunk duration. Time-based targets (e.g. 10-minute
chunks with 2 seconds of overlap) are therefore converted into byte ranges
using an estimate of the stream's byte rate.
"""

import math
from dataclasses import dataclass
from typing import Optional

from tubescribe.shared import ConfigurationError

# Floor for the byte-rate estimate. A missing or tiny reported bitrate
# would otherwise produce a few huge chunks that exceed the upload limit.
MIN_BYTES_PER_SECOND = 16000


@dataclass(frozen=True)
class ByteRange:
    """One planned chunk: bytes [offset, offset + length) of the stream."""
    index: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


def estimate_bytes_per_second(bitrate: Optional[float],
                              floor: int = MIN_BYTES_PER_SECOND) -> int:
    """Convert a reported encoding bitrate (bits/sec) into bytes/sec.

    Missing, zero, negative or otherwise implausible values fall back to
    ``floor``; the result is never below it.
    """
    if not bitrate or not math.isfinite(bitrate) or bitrate < 0:
        return floor
    return max(floor, int(bitrate) // 8)


def plan_chunks(stream_length: int, bytes_per_second: int,
                chunk_seconds: int = 600, overlap_seconds: int = 2) -> list[ByteRange]:
    """Split a stream of ``stream_length`` bytes into overlapping byte ranges.

    Each range is at most ``bytes_per_second * chunk_seconds`` long and
    consecutive ranges overlap by ``bytes_per_second * overlap_seconds``
    bytes (the last pair may overlap more, since the final range is clamped
    to the end of the stream). The last range always ends exactly at
    ``stream_length``. An empty stream yields an empty plan.

    Raises ConfigurationError if the overlap is not smaller than the chunk.
    """
    if bytes_per_second <= 0:
        raise ConfigurationError(f"bytes_per_second must be positive, got {bytes_per_second}")
    chunk_size = bytes_per_second * chunk_seconds
    overlap_size = bytes_per_second * overlap_seconds
    step = chunk_size - overlap_size
    if step <= 0:
        raise ConfigurationError(
            f"Chunk overlap ({overlap_size} bytes) must be smaller than "
            f"chunk size ({chunk_size} bytes)")

    plan = []
    offset = 0
    while offset < stream_length:
        end = min(offset + chunk_size, stream_length)
        plan.append(ByteRange(index=len(plan), offset=offset, length=end - offset))
        if end >= stream_length:
            break
        offset += step
    return plan
