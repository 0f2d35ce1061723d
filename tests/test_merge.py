"""Tests for the overlap-aware merge engine."""

from __future__ import annotations

import pytest

from src.pipeline_config import ChunkingConfig
from src.transcription.merge import MissingChunkError, ensure_complete, merge_chunks
from src.transcription.models import Chunk


def _chunk(index: int, start_ms: int, end_ms: int, text: str) -> Chunk:
    return Chunk(index=index, start_ms=start_ms, end_ms=end_ms, raw_text=text, corrected_text=text)


class TestMergeBasics:
    def test_two_chunks_drop_overlap(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: hello\n04:50 B: almost done\n05:00 A: cut here")
        # chunk 1 starts at 04:55; skip threshold is 04:50
        b = _chunk(1, 295_000, 600_000, "04:45 A: heard again\n05:00 A: cut here\n05:10 B: new")
        result = merge_chunks([a, b], 2)

        assert "heard again" not in result.merged_text
        assert "05:10 B: new" in result.merged_text
        assert len(result.diagnostics.dropped) == 1
        dropped = result.diagnostics.dropped[0]
        assert dropped.chunk_index == 1
        assert dropped.timestamp_ms == 285_000
        assert dropped.threshold_ms == 290_000

    def test_order_independent_of_input_order(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: one\n04:00 B: two")
        b = _chunk(1, 295_000, 600_000, "05:00 A: three")
        assert merge_chunks([b, a], 2).merged_text == merge_chunks([a, b], 2).merged_text

    def test_trailing_whitespace_trimmed(self) -> None:
        result = merge_chunks([_chunk(0, 0, 10_000, "00:00 A: hi   \n00:05 B: yo\t")], 1)
        assert result.merged_text == "00:00 A: hi\n00:05 B: yo"

    def test_zero_overlap(self) -> None:
        a = _chunk(0, 0, 300_000, "00:00 A: one")
        b = _chunk(1, 300_000, 600_000, "04:59 A: dropped\n05:00 B: kept")
        result = merge_chunks([a, b], 2, ChunkingConfig(overlap_seconds=0))
        assert result.merged_text == "00:00 A: one\n05:00 B: kept"


class TestThresholdAdvance:
    def test_lines_after_previous_end_kept(self) -> None:
        """Chunk B keeps every line at or after 60:59 even though A claims to end later."""
        a = _chunk(
            14,
            3_600_000,  # 60:00
            3_700_000,  # past chunk B's own content start
            "01:00:00 A: start of chunk 14\n01:00:30 B: middle\n01:00:58 A: end of chunk 14",
        )
        b = _chunk(
            15,
            3_664_000,  # 61:04, skip threshold 60:59
            3_960_000,
            "01:00:58 A: end of chunk 14\n01:00:59 B: boundary\n01:01:04 A: new content\n"
            "01:01:10 B: more new content",
        )
        earlier = [
            _chunk(i, i * 240_000, (i + 1) * 240_000, f"{i * 4:02d}:00 A: chunk {i}")
            for i in range(14)
        ]
        result = merge_chunks([*earlier, a, b], 16)

        text = result.merged_text
        assert "01:00:59 B: boundary" in text
        assert "01:01:04 A: new content" in text
        assert "01:01:10 B: more new content" in text
        assert text.count("end of chunk 14") == 1
        assert [d.threshold_ms for d in result.diagnostics.dropped] == [3_659_000]

        span = result.diagnostics.spans[15]
        assert span.first_retained_ms == 3_659_000
        assert span.last_retained_ms == 3_670_000
        assert span.retained_lines == 3


class TestContinuationLines:
    def test_attached_to_previous_line(self) -> None:
        text = "00:00 A: first line\nsecond line of A\n00:05 B: reply"
        result = merge_chunks([_chunk(0, 0, 10_000, text)], 1)
        assert result.merged_text == text
        assert result.diagnostics.spans[0].continuation_lines == 1

    def test_continuation_of_dropped_line_kept(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: one\n04:40 B: last retained")
        b = _chunk(1, 295_000, 600_000, "04:45 B: dropped\nits continuation\n05:00 A: new")
        result = merge_chunks([a, b], 2)
        assert result.merged_text == (
            "00:00 A: one\n04:40 B: last retained\nits continuation\n05:00 A: new"
        )

    def test_unicode_separators_stay_inside_utterance(self) -> None:
        text = "00:00 A: one\u2028two\x0cthree\n00:05 B: four\x85five"
        result = merge_chunks([_chunk(0, 0, 10_000, text)], 1)
        assert result.merged_text == text
        assert result.diagnostics.spans[0].continuation_lines == 0

    def test_crlf_line_endings(self) -> None:
        result = merge_chunks([_chunk(0, 0, 10_000, "00:00 A: one\r\n00:05 B: two")], 1)
        assert result.merged_text == "00:00 A: one\n00:05 B: two"
        assert result.diagnostics.spans[0].retained_lines == 2

    def test_leading_continuation_without_previous(self) -> None:
        result = merge_chunks([_chunk(0, 0, 10_000, "preamble\n00:01 A: hi")], 1)
        assert result.merged_text == "preamble\n00:01 A: hi"


class TestDegradedInput:
    def test_unparseable_chunk_flagged(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: one")
        b = _chunk(1, 295_000, 600_000, "model forgot timestamps\nentirely")
        result = merge_chunks([a, b], 2)
        assert result.diagnostics.unparseable_chunks == [1]
        assert result.merged_text == "00:00 A: one\nmodel forgot timestamps\nentirely"

    def test_fully_overlapped_chunk_is_legal(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: one\n04:30 B: two")
        b = _chunk(1, 295_000, 300_000, "04:30 B: two")
        result = merge_chunks([a, b], 2)
        assert result.merged_text == "00:00 A: one\n04:30 B: two"
        assert result.diagnostics.spans[1].retained_lines == 0
        assert result.diagnostics.spans[1].first_retained_ms is None
        assert result.diagnostics.final_timestamp_ms == 270_000

    def test_final_timestamp_none_without_timestamps(self) -> None:
        result = merge_chunks([_chunk(0, 0, 10_000, "no timestamps here")], 1)
        assert result.diagnostics.final_timestamp_ms is None

    def test_out_of_order_line_reported(self) -> None:
        a = _chunk(0, 0, 305_000, "00:00 A: one\n05:03 B: late in chunk 0")
        b = _chunk(1, 295_000, 600_000, "04:58 A: inside the overlap\n05:10 B: new")
        result = merge_chunks([a, b], 2)
        assert "04:58 A: inside the overlap" in result.merged_text
        assert len(result.diagnostics.out_of_order) == 1
        assert result.diagnostics.out_of_order[0].threshold_ms == 303_000


class TestMissingChunks:
    @pytest.mark.parametrize("missing", [0, 1, 2, 3, 4])
    def test_missing_chunk_named(self, missing: int) -> None:
        chunks = [
            _chunk(i, i * 300_000, (i + 1) * 300_000, f"{i * 5:02d}:00 A: chunk {i}")
            for i in range(5)
            if i != missing
        ]
        with pytest.raises(MissingChunkError) as exc_info:
            merge_chunks(chunks, 5)
        assert exc_info.value.index == missing
        assert exc_info.value.missing == [missing]
        assert f"missing chunk {missing}" in str(exc_info.value)

    @pytest.mark.parametrize("text", [None, "", "  \n "])
    def test_empty_text_counts_as_missing(self, text: str | None) -> None:
        chunks = [
            _chunk(0, 0, 300_000, "00:00 A: x"),
            Chunk(index=1, start_ms=295_000, end_ms=600_000, corrected_text=text),
        ]
        with pytest.raises(MissingChunkError) as exc_info:
            merge_chunks(chunks, 2)
        assert exc_info.value.index == 1

    def test_all_missing_listed(self) -> None:
        with pytest.raises(MissingChunkError) as exc_info:
            ensure_complete([_chunk(2, 0, 1, "00:00 A: x")], 4)
        assert exc_info.value.missing == [0, 1, 3]
        assert exc_info.value.index == 0

    def test_missing_is_value_error(self) -> None:
        assert issubclass(MissingChunkError, ValueError)

    def test_duplicate_index_rejected(self) -> None:
        chunk = _chunk(0, 0, 1_000, "00:00 A: x")
        with pytest.raises(ValueError, match="Duplicate"):
            merge_chunks([chunk, chunk], 1)

    def test_out_of_range_index_rejected(self) -> None:
        with pytest.raises(ValueError, match="outside"):
            merge_chunks([_chunk(3, 0, 1_000, "00:00 A: x")], 1)

    def test_non_positive_total_rejected(self) -> None:
        with pytest.raises(ValueError, match="total_chunks"):
            merge_chunks([], 0)
