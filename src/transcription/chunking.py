"""Cut a recording into overlapping byte-range chunks with estimated time windows."""

from __future__ import annotations

import math

from src.pipeline_config import ChunkingConfig
from src.transcription.models import ChunkWindow


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def plan_chunks(
    file_size_bytes: int,
    duration_ms: int,
    config: ChunkingConfig | None = None,
) -> list[ChunkWindow]:
    """Plan the chunk windows for a recording.

    Byte offsets are mapped to time through the average bitrate, so the
    windows are estimates. Every chunk after the first starts
    ``overlap_seconds`` worth of bytes before its unique range so speech
    straddling a cut is transcribed twice and removed again on merge.

    Args:
        file_size_bytes: Size of the encoded audio file.
        duration_ms: Playback duration of the recording.
        config: Chunk size and overlap; defaults when omitted.

    Returns:
        One :class:`ChunkWindow` per chunk, in index order.

    Raises:
        ValueError: If the size or duration is not positive, or the
            recording is longer than ``max_recording_ms``.
    """
    cfg = config or ChunkingConfig()
    if file_size_bytes <= 0:
        msg = f"file_size_bytes must be positive, got {file_size_bytes}"
        raise ValueError(msg)
    if duration_ms <= 0:
        msg = f"duration_ms must be positive, got {duration_ms}"
        raise ValueError(msg)
    if duration_ms > cfg.max_recording_ms:
        msg = f"Recording is {duration_ms}ms; maximum is {cfg.max_recording_ms}ms"
        raise ValueError(msg)

    bytes_per_ms = file_size_bytes / duration_ms
    overlap_bytes = _round_half_up(bytes_per_ms * cfg.overlap_ms)
    total_chunks = math.ceil(file_size_bytes / cfg.chunk_size_bytes)

    windows: list[ChunkWindow] = []
    for index in range(total_chunks):
        unique_start = index * cfg.chunk_size_bytes
        end_byte = min(file_size_bytes, (index + 1) * cfg.chunk_size_bytes)
        start_byte = 0 if index == 0 else max(0, unique_start - overlap_bytes)

        start_ms = max(0, _round_half_up(start_byte / file_size_bytes * duration_ms))
        end_ms = min(duration_ms, _round_half_up(end_byte / file_size_bytes * duration_ms))

        windows.append(
            ChunkWindow(
                index=index,
                start_ms=start_ms,
                end_ms=end_ms,
                start_byte=start_byte,
                end_byte=end_byte,
            )
        )

    return windows
