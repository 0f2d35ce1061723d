"""Chunk planning, correction, and merge endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from src.api.models import (
    ChunkingConfigResponse,
    ChunkWindowSchema,
    CorrectRequest,
    CorrectResponse,
    MergeDiagnosticsSchema,
    MergeRequest,
    MergeResponse,
    PlanRequest,
    PlanResponse,
)
from src.config import settings
from src.pipeline_config import PipelineConfig
from src.transcription.chunking import plan_chunks
from src.transcription.corrector import correct_and_classify
from src.transcription.merge import MissingChunkError, merge_chunks
from src.transcription.models import Chunk

router = APIRouter()


def _pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


@router.get("/api/config", response_model=ChunkingConfigResponse)
async def get_config() -> ChunkingConfigResponse:
    """Chunking parameters shared by the upload client and the merge."""
    chunking = _pipeline_config().chunking
    return ChunkingConfigResponse(
        chunk_size_bytes=chunking.chunk_size_bytes,
        overlap_seconds=chunking.overlap_seconds,
        transcription_concurrency=chunking.transcription_concurrency,
        max_recording_ms=chunking.max_recording_ms,
    )


@router.post("/api/chunks/plan", response_model=PlanResponse)
async def plan(request: PlanRequest) -> PlanResponse:
    """Plan overlapping chunk windows for a recording."""
    chunking = _pipeline_config().chunking
    try:
        windows = plan_chunks(request.file_size_bytes, request.duration_ms, chunking)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PlanResponse(
        total_chunks=len(windows),
        overlap_seconds=chunking.overlap_seconds,
        chunks=[ChunkWindowSchema(**asdict(w)) for w in windows],
    )


@router.post("/api/chunks/correct", response_model=CorrectResponse)
async def correct(request: CorrectRequest) -> CorrectResponse:
    """Correct one chunk's timestamps right after transcription."""
    corrected, classification = correct_and_classify(
        request.raw_text, request.start_ms, _pipeline_config().classifier
    )
    return CorrectResponse(
        index=request.index,
        corrected_text=corrected,
        already_corrected=classification.already_corrected,
        rule=classification.rule,
    )


@router.post("/api/transcripts/merge", response_model=MergeResponse)
async def merge(request: MergeRequest) -> MergeResponse:
    """Merge every corrected chunk of a recording.

    Returns 409 naming the missing chunk index when any chunk is not yet
    available, so the caller can re-submit just that chunk.
    """
    chunks = [
        Chunk(
            index=c.index,
            start_ms=c.start_ms,
            end_ms=c.end_ms,
            corrected_text=c.corrected_text,
        )
        for c in request.chunks
    ]
    try:
        result = merge_chunks(chunks, request.total_chunks, _pipeline_config().chunking)
    except MissingChunkError as exc:
        raise HTTPException(
            status_code=409,
            detail={"error": "missing_chunk", "index": exc.index, "missing": exc.missing},
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return MergeResponse(
        merged_text=result.merged_text,
        diagnostics=MergeDiagnosticsSchema(**asdict(result.diagnostics)),
    )
