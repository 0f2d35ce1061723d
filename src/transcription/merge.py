"""Stitch corrected chunk transcripts into one timeline, dropping boundary overlap."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.pipeline_config import ChunkingConfig
from src.transcription.models import (
    Chunk,
    ChunkSpan,
    DroppedLine,
    MergeDiagnostics,
    MergeResult,
    OutOfOrderLine,
)
from src.transcription.timestamps import parse_timestamp_ms, split_lines

logger = logging.getLogger(__name__)


class MissingChunkError(ValueError):
    """Raised when a merge is attempted before every chunk has corrected text.

    ``index`` is the lowest missing chunk; ``missing`` lists all of them so the
    caller can re-drive transcription for exactly those chunks.
    """

    def __init__(self, missing: list[int]) -> None:
        self.missing = sorted(missing)
        self.index = self.missing[0]
        super().__init__(f"missing chunk {self.index} (all missing: {self.missing})")


def ensure_complete(chunks: Iterable[Chunk], total_chunks: int) -> list[Chunk]:
    """Check that indices ``0 .. total_chunks - 1`` are each present once with text.

    Returns:
        The chunks sorted by index.

    Raises:
        ValueError: If *total_chunks* is not positive, or an index is
            duplicated or out of range.
        MissingChunkError: If any index has no corrected text.
    """
    if total_chunks <= 0:
        msg = f"total_chunks must be positive, got {total_chunks}"
        raise ValueError(msg)

    by_index: dict[int, Chunk] = {}
    for chunk in chunks:
        if not 0 <= chunk.index < total_chunks:
            msg = f"Chunk index {chunk.index} outside [0, {total_chunks})"
            raise ValueError(msg)
        if chunk.index in by_index:
            msg = f"Duplicate chunk index {chunk.index}"
            raise ValueError(msg)
        by_index[chunk.index] = chunk

    missing = [
        i
        for i in range(total_chunks)
        if i not in by_index or not (by_index[i].corrected_text or "").strip()
    ]
    if missing:
        logger.warning(
            "Merge blocked: %d of %d chunks missing %s", len(missing), total_chunks, missing
        )
        raise MissingChunkError(missing)

    return [by_index[i] for i in range(total_chunks)]


def merge_chunks(
    chunks: Iterable[Chunk],
    total_chunks: int,
    config: ChunkingConfig | None = None,
) -> MergeResult:
    """Merge corrected chunk transcripts into a single transcript.

    A timestamped line earlier than ``chunk.start_ms - overlap_ms`` is the
    previous chunk's tail heard again and is dropped. Lines without a
    timestamp continue the previously retained line. After each chunk the
    running threshold advances to the chunk's ``start_ms``, never its
    ``end_ms``: the end of one chunk can lie past the start of the next
    chunk's own content.

    Args:
        chunks: Every chunk of the recording, with ``corrected_text`` set.
        total_chunks: Number of chunks the recording was cut into.
        config: Chunking parameters; supplies the overlap.

    Returns:
        A :class:`MergeResult` with the merged text and diagnostics.

    Raises:
        MissingChunkError: If any chunk in ``[0, total_chunks)`` has no text.
    """
    cfg = config or ChunkingConfig()
    ordered = ensure_complete(chunks, total_chunks)

    diagnostics = MergeDiagnostics()
    lines: list[str] = []
    threshold_ms = 0

    for chunk in ordered:
        skip_threshold_ms = chunk.start_ms - cfg.overlap_ms
        span = ChunkSpan(chunk_index=chunk.index)
        parsed = 0

        for line in split_lines(chunk.corrected_text or ""):
            timestamp_ms = parse_timestamp_ms(line)

            if timestamp_ms is None:
                if lines:
                    lines[-1] = f"{lines[-1]}\n{line}"
                else:
                    lines.append(line)
                span.continuation_lines += 1
                continue

            parsed += 1
            if timestamp_ms < skip_threshold_ms:
                diagnostics.dropped.append(
                    DroppedLine(chunk.index, timestamp_ms, skip_threshold_ms, line)
                )
                span.dropped_lines += 1
                continue

            if timestamp_ms < threshold_ms:
                diagnostics.out_of_order.append(
                    OutOfOrderLine(chunk.index, timestamp_ms, threshold_ms, line)
                )
            lines.append(line.rstrip())
            threshold_ms = max(threshold_ms, timestamp_ms)
            if span.first_retained_ms is None:
                span.first_retained_ms = timestamp_ms
            span.last_retained_ms = timestamp_ms
            span.retained_lines += 1

        if parsed == 0:
            logger.warning(
                "Chunk %d has no parseable timestamps; lines attached to the previous utterance",
                chunk.index,
            )
            diagnostics.unparseable_chunks.append(chunk.index)

        threshold_ms = max(threshold_ms, chunk.start_ms)
        diagnostics.spans.append(span)

    if diagnostics.out_of_order:
        logger.warning("Merged transcript has %d out-of-order lines", len(diagnostics.out_of_order))
    logger.info(
        "Merged %d chunks: %d lines kept, %d overlap lines dropped",
        len(ordered),
        len(lines),
        len(diagnostics.dropped),
    )
    return MergeResult(merged_text="\n".join(lines), diagnostics=diagnostics)
