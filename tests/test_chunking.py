"""Tests for chunking.py — byte-rate estimation and chunk planning."""

import pytest

from tubescribe.shared import ConfigurationError

from tubescribe.chunking import (
    MIN_BYTES_PER_SECOND,
    ByteRange,
    estimate_bytes_per_second,
    plan_chunks,
)


# ---------------------------------------------------------------------------
# estimate_bytes_per_second
# ---------------------------------------------------------------------------

class TestEstimateBytesPerSecond:
    def test_missing_bitrate_uses_floor(self):
        assert estimate_bytes_per_second(None) == MIN_BYTES_PER_SECOND

    def test_zero_bitrate_uses_floor(self):
        assert estimate_bytes_per_second(0) == MIN_BYTES_PER_SECOND

    def test_negative_bitrate_uses_floor(self):
        assert estimate_bytes_per_second(-64000) == MIN_BYTES_PER_SECOND

    @pytest.mark.parametrize("bitrate", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_bitrate_uses_floor(self, bitrate):
        assert estimate_bytes_per_second(bitrate) == MIN_BYTES_PER_SECOND

    def test_converts_bits_to_bytes(self):
        assert estimate_bytes_per_second(256000) == 32000

    def test_low_bitrate_clamped_to_floor(self):
        # 48 kbit/s opus is 6000 bytes/s, below the floor
        assert estimate_bytes_per_second(48000) == MIN_BYTES_PER_SECOND

    def test_fractional_bitrate(self):
        # yt-dlp reports e.g. 129.478 kbit/s
        assert estimate_bytes_per_second(129478.0) == 16184

    def test_custom_floor(self):
        assert estimate_bytes_per_second(None, floor=8000) == 8000
        assert estimate_bytes_per_second(128000, floor=8000) == 16000


# ---------------------------------------------------------------------------
# plan_chunks
# ---------------------------------------------------------------------------

def _assert_covers(plan, stream_length):
    """Ranges are contiguous-or-overlapping and cover exactly [0, stream_length)."""
    assert plan[0].offset == 0
    assert plan[-1].end == stream_length
    for prev, cur in zip(plan, plan[1:]):
        assert cur.offset > prev.offset
        assert cur.offset <= prev.end  # no gap
    for r in plan:
        assert r.length > 0


class TestPlanChunks:
    def test_empty_stream_yields_empty_plan(self):
        assert plan_chunks(0, 16000) == []

    def test_short_stream_is_single_chunk(self):
        plan = plan_chunks(1_000_000, 16000, chunk_seconds=600, overlap_seconds=2)
        assert plan == [ByteRange(index=0, offset=0, length=1_000_000)]

    def test_stream_exactly_chunk_size_is_single_chunk(self):
        plan = plan_chunks(9_600_000, 16000, chunk_seconds=600, overlap_seconds=2)
        assert len(plan) == 1
        assert plan[0].end == 9_600_000

    def test_consecutive_chunks_overlap(self):
        # chunk = 100 bytes, overlap = 10 bytes, step = 90
        plan = plan_chunks(250, 10, chunk_seconds=10, overlap_seconds=1)
        assert [(r.offset, r.end) for r in plan] == [(0, 100), (90, 190), (180, 250)]
        assert plan[0].end - plan[1].offset == 10
        assert plan[1].end - plan[2].offset == 10

    def test_last_chunk_clamped_to_stream_end(self):
        plan = plan_chunks(195, 10, chunk_seconds=10, overlap_seconds=1)
        assert [(r.offset, r.end) for r in plan] == [(0, 100), (90, 190), (180, 195)]

    def test_no_trailing_chunk_when_end_reached(self):
        # Second chunk ends exactly at the stream end; no third chunk
        plan = plan_chunks(190, 10, chunk_seconds=10, overlap_seconds=1)
        assert [(r.offset, r.end) for r in plan] == [(0, 100), (90, 190)]

    def test_indexes_follow_plan_order(self):
        plan = plan_chunks(1000, 10, chunk_seconds=10, overlap_seconds=1)
        assert [r.index for r in plan] == list(range(len(plan)))

    @pytest.mark.parametrize("length", [1, 99, 100, 101, 189, 190, 191, 1000, 12345])
    def test_plan_covers_whole_stream(self, length):
        plan = plan_chunks(length, 10, chunk_seconds=10, overlap_seconds=1)
        _assert_covers(plan, length)
        assert all(r.length <= 100 for r in plan)

    def test_zero_overlap(self):
        plan = plan_chunks(250, 10, chunk_seconds=10, overlap_seconds=0)
        assert [(r.offset, r.end) for r in plan] == [(0, 100), (100, 200), (200, 250)]

    def test_overlap_not_smaller_than_chunk_raises(self):
        with pytest.raises(ConfigurationError):
            plan_chunks(1000, 10, chunk_seconds=5, overlap_seconds=5)

    def test_non_positive_byte_rate_raises(self):
        with pytest.raises(ConfigurationError):
            plan_chunks(1000, 0)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            plan_chunks(1000, 10, chunk_seconds=2, overlap_seconds=3)
