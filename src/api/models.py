"""Pydantic request/response schemas for the transcript merge API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChunkingConfigResponse(BaseModel):
    """Chunking parameters clients must use when cutting recordings."""

    chunk_size_bytes: int
    overlap_seconds: int
    transcription_concurrency: int
    max_recording_ms: int


class PlanRequest(BaseModel):
    """Request body for the /api/chunks/plan endpoint."""

    file_size_bytes: int = Field(gt=0)
    duration_ms: int = Field(gt=0)


class ChunkWindowSchema(BaseModel):
    """A planned chunk: byte range plus estimated time window."""

    index: int
    start_ms: int
    end_ms: int
    start_byte: int
    end_byte: int


class PlanResponse(BaseModel):
    """Response body for the /api/chunks/plan endpoint."""

    total_chunks: int
    overlap_seconds: int
    chunks: list[ChunkWindowSchema]


class CorrectRequest(BaseModel):
    """Request body for the /api/chunks/correct endpoint."""

    index: int = Field(ge=0)
    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    raw_text: str


class CorrectResponse(BaseModel):
    """Response body for the /api/chunks/correct endpoint."""

    index: int
    corrected_text: str
    already_corrected: bool
    rule: str


class MergeChunk(BaseModel):
    """A stored chunk as supplied to the merge."""

    index: int = Field(ge=0)
    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    corrected_text: str | None = None


class MergeRequest(BaseModel):
    """Request body for the /api/transcripts/merge endpoint."""

    total_chunks: int = Field(gt=0)
    chunks: list[MergeChunk]


class MergeLineSchema(BaseModel):
    chunk_index: int
    timestamp_ms: int
    threshold_ms: int
    line: str


class ChunkSpanSchema(BaseModel):
    chunk_index: int
    first_retained_ms: int | None = None
    last_retained_ms: int | None = None
    retained_lines: int = 0
    dropped_lines: int = 0
    continuation_lines: int = 0


class MergeDiagnosticsSchema(BaseModel):
    """Why each line was kept or dropped."""

    dropped: list[MergeLineSchema] = []
    out_of_order: list[MergeLineSchema] = []
    spans: list[ChunkSpanSchema] = []
    unparseable_chunks: list[int] = []


class MergeResponse(BaseModel):
    """Response body for the /api/transcripts/merge endpoint."""

    merged_text: str
    diagnostics: MergeDiagnosticsSchema
