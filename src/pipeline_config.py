"""Pipeline configuration: chunking and classifier parameters as frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.config import Settings

MIN_CHUNK_SIZE_BYTES = 128 * 1024
MAX_CHUNK_SIZE_BYTES = 8 * 1024 * 1024
MAX_OVERLAP_SECONDS = 30
MAX_CONCURRENCY = 8


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        msg = f"{name} must be between {low} and {high}, got {value!r}"
        raise ValueError(msg)


@dataclass(frozen=True)
class ChunkingConfig:
    """How a recording is cut into overlapping chunks.

    ``overlap_seconds`` is shared by chunk planning and the merge engine; both
    sides must read it from the same config or overlap removal goes wrong.

    Valid ranges:
        chunk_size_bytes: 128 KiB to 8 MiB.
        overlap_seconds: 0 to 30.
        transcription_concurrency: 1 to 8.
        max_recording_ms: positive.
    """

    chunk_size_bytes: int = 1024 * 1024
    overlap_seconds: int = 5
    transcription_concurrency: int = 4
    max_recording_ms: int = 3 * 60 * 60 * 1000

    def __post_init__(self) -> None:
        _check_range(
            "chunk_size_bytes", self.chunk_size_bytes, MIN_CHUNK_SIZE_BYTES, MAX_CHUNK_SIZE_BYTES
        )
        _check_range("overlap_seconds", self.overlap_seconds, 0, MAX_OVERLAP_SECONDS)
        _check_range(
            "transcription_concurrency", self.transcription_concurrency, 1, MAX_CONCURRENCY
        )
        if self.max_recording_ms <= 0:
            msg = f"max_recording_ms must be positive, got {self.max_recording_ms!r}"
            raise ValueError(msg)

    @property
    def overlap_ms(self) -> int:
        return self.overlap_seconds * 1000


@dataclass(frozen=True)
class ClassifierConfig:
    """Thresholds for deciding whether chunk timestamps are already absolute.

    ``delayed_start_window_s`` is calibrated to roughly one chunk's nominal
    duration (~4.5 minutes at 1 MiB chunks); retune it when the chunk size
    changes significantly.
    """

    sample_lines: int = 10
    sample_timestamps: int = 5
    min_timestamps: int = 2
    relative_first_ts_max_s: int = 60
    relative_chunk_start_min_s: int = 120
    min_tolerance_s: int = 120
    tolerance_ratio: float = 0.1
    delayed_start_window_s: int = 300

    def __post_init__(self) -> None:
        _check_range("sample_lines", self.sample_lines, 1, 1000)
        _check_range("sample_timestamps", self.sample_timestamps, 1, self.sample_lines)
        _check_range("min_timestamps", self.min_timestamps, 1, self.sample_timestamps)
        _check_range("relative_first_ts_max_s", self.relative_first_ts_max_s, 0, 3600)
        _check_range("relative_chunk_start_min_s", self.relative_chunk_start_min_s, 0, 3600)
        _check_range("min_tolerance_s", self.min_tolerance_s, 0, 3600)
        _check_range("tolerance_ratio", self.tolerance_ratio, 0.0, 1.0)
        _check_range("delayed_start_window_s", self.delayed_start_window_s, 0, 3600)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for correction and merging.

    Defaults mirror the values the upload client ships with.
    """

    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            chunking=ChunkingConfig(
                chunk_size_bytes=settings.chunk_size_bytes,
                overlap_seconds=settings.chunk_overlap_seconds,
                transcription_concurrency=settings.transcription_concurrency,
                max_recording_ms=settings.max_recording_ms,
            ),
            classifier=ClassifierConfig(
                min_tolerance_s=settings.classifier_min_tolerance_s,
                delayed_start_window_s=settings.classifier_delayed_start_window_s,
            ),
        )
