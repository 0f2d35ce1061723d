"""Data models for chunk correction and transcript merging."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChunkWindow:
    """Where one chunk sits in the source file and on the recording timeline.

    ``[start_ms, end_ms)`` includes the leading overlap for every chunk but
    the first.
    """

    index: int
    start_ms: int
    end_ms: int
    start_byte: int = 0
    end_byte: int = 0


@dataclass(frozen=True)
class Chunk:
    """A transcribed chunk. Immutable once ``corrected_text`` is set."""

    index: int
    start_ms: int
    end_ms: int
    raw_text: str = ""
    corrected_text: str | None = None


@dataclass(frozen=True)
class TimestampToken:
    """A line-leading timestamp located by the parser."""

    indent: str
    seconds: int
    end: int  # offset in the line just past the token


@dataclass
class DroppedLine:
    """A line discarded as overlap during the merge."""

    chunk_index: int
    timestamp_ms: int
    threshold_ms: int
    line: str


@dataclass
class OutOfOrderLine:
    """A retained line whose timestamp is behind the running merge threshold."""

    chunk_index: int
    timestamp_ms: int
    threshold_ms: int
    line: str


@dataclass
class ChunkSpan:
    """Per-chunk merge summary."""

    chunk_index: int
    first_retained_ms: int | None = None
    last_retained_ms: int | None = None
    retained_lines: int = 0
    dropped_lines: int = 0
    continuation_lines: int = 0


@dataclass
class MergeDiagnostics:
    """Everything needed to debug a merge after the fact."""

    dropped: list[DroppedLine] = field(default_factory=list)
    out_of_order: list[OutOfOrderLine] = field(default_factory=list)
    spans: list[ChunkSpan] = field(default_factory=list)
    unparseable_chunks: list[int] = field(default_factory=list)

    @property
    def final_timestamp_ms(self) -> int | None:
        """Last retained timestamp, skipping trailing chunks that kept nothing."""
        for span in reversed(self.spans):
            if span.last_retained_ms is not None:
                return span.last_retained_ms
        return None


@dataclass
class MergeResult:
    """The merged transcript plus its diagnostics."""

    merged_text: str
    diagnostics: MergeDiagnostics
