"""Per-recording flow: transcribe chunks -> correct each once -> merge."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from src.pipeline_config import PipelineConfig
from src.transcription.corrector import correct_timestamps
from src.transcription.merge import merge_chunks
from src.transcription.models import Chunk, ChunkWindow, MergeResult

logger = logging.getLogger(__name__)

Transcriber = Callable[[ChunkWindow], Awaitable[str]]


def ingest_chunk(
    window: ChunkWindow,
    raw_text: str,
    config: PipelineConfig | None = None,
) -> Chunk:
    """Correct a freshly transcribed chunk and freeze it.

    The returned chunk is immutable; correcting the same input again yields
    an equal chunk, so at-least-once redelivery upstream is harmless.
    """
    cfg = config or PipelineConfig()
    corrected = correct_timestamps(raw_text, window.start_ms, cfg.classifier)
    return Chunk(
        index=window.index,
        start_ms=window.start_ms,
        end_ms=window.end_ms,
        raw_text=raw_text,
        corrected_text=corrected,
    )


async def transcribe_chunks(
    windows: Iterable[ChunkWindow],
    transcribe: Transcriber,
    config: PipelineConfig | None = None,
) -> list[Chunk]:
    """Transcribe and correct every window with bounded concurrency.

    Args:
        windows: Chunk windows to transcribe.
        transcribe: Coroutine returning the speech model's text for a window.
        config: Supplies ``transcription_concurrency`` and classifier thresholds.

    Returns:
        Corrected chunks ordered by index. The first transcription failure
        propagates to the caller.
    """
    cfg = config or PipelineConfig()
    semaphore = asyncio.Semaphore(cfg.chunking.transcription_concurrency)

    async def _one(window: ChunkWindow) -> Chunk:
        async with semaphore:
            raw_text = await transcribe(window)
        logger.info("Chunk %d transcribed (%d chars)", window.index, len(raw_text))
        return ingest_chunk(window, raw_text, cfg)

    chunks = await asyncio.gather(*(_one(w) for w in windows))
    return sorted(chunks, key=lambda c: c.index)


def assemble_transcript(
    chunks: Iterable[Chunk],
    total_chunks: int,
    config: PipelineConfig | None = None,
) -> MergeResult:
    """Merge all corrected chunks of a recording into the final transcript."""
    cfg = config or PipelineConfig()
    return merge_chunks(chunks, total_chunks, cfg.chunking)
