"""Shift chunk-relative timestamps onto the recording timeline."""

from __future__ import annotations

import logging

from src.pipeline_config import ClassifierConfig
from src.transcription.classifier import Classification, classify_chunk
from src.transcription.timestamps import match_timestamp, replace_timestamp, sanitize_timestamps

logger = logging.getLogger(__name__)


def shift_line(line: str, offset_s: int) -> str:
    """Add *offset_s* seconds to the line-leading timestamp, if any."""
    token = match_timestamp(line)
    if token is None:
        return line
    return replace_timestamp(line, token, token.seconds + offset_s)


def correct_and_classify(
    raw_text: str,
    chunk_start_ms: int,
    config: ClassifierConfig | None = None,
) -> tuple[str, Classification]:
    """Like :func:`correct_timestamps`, also returning the classifier verdict."""
    if chunk_start_ms == 0:
        return raw_text, classify_chunk(raw_text, 0, config)

    text = sanitize_timestamps(raw_text)
    classification = classify_chunk(text, chunk_start_ms, config)
    if classification.already_corrected:
        logger.info(
            "Timestamps at %dms already absolute (rule=%s); leaving unchanged",
            chunk_start_ms,
            classification.rule,
        )
        return text, classification

    offset_s = chunk_start_ms // 1000
    logger.info(
        "Shifting timestamps at %dms by %ds (rule=%s)",
        chunk_start_ms,
        offset_s,
        classification.rule,
    )
    shifted = "\n".join(shift_line(line, offset_s) for line in text.split("\n"))
    return shifted, classification


def correct_timestamps(
    raw_text: str,
    chunk_start_ms: int,
    config: ClassifierConfig | None = None,
) -> str:
    """Return the chunk transcript with meeting-absolute timestamps.

    Chunk 0 is returned untouched. Otherwise malformed timestamps are
    normalised first, then the classifier decides whether the chunk offset
    still has to be added. Only the timestamp token of each line changes;
    indentation, speaker label, and utterance text are kept as-is.

    Args:
        raw_text: Transcript returned by the speech model for this chunk.
        chunk_start_ms: Declared start of the chunk on the recording timeline.
        config: Classifier thresholds; defaults when omitted.

    Returns:
        The corrected transcript.
    """
    corrected, _ = correct_and_classify(raw_text, chunk_start_ms, config)
    return corrected
