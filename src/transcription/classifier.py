"""Decide whether a chunk transcript already carries meeting-absolute timestamps.

The speech model is asked for absolute timestamps but sometimes restarts
from ``00:00`` at every chunk. Correcting already-absolute output shifts it
forward a second time; skipping correction of relative output makes every
chunk collide with the first on merge. The decision is an ordered rule
table: the first rule whose predicate holds decides.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from src.pipeline_config import ClassifierConfig
from src.transcription.timestamps import match_timestamp, split_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evidence:
    """What the classifier measured on a chunk."""

    chunk_start_ms: int
    chunk_start_s: int
    timestamps: list[int] = field(default_factory=list)  # seconds, in line order
    tolerance_s: int = 0

    @property
    def first_s(self) -> int:
        return self.timestamps[0] if self.timestamps else 0

    @property
    def monotonic(self) -> bool:
        return all(a <= b for a, b in zip(self.timestamps, self.timestamps[1:]))


@dataclass(frozen=True)
class ClassifierRule:
    """One row of the decision table."""

    name: str
    predicate: Callable[[Evidence, ClassifierConfig], bool]
    already_corrected: bool


@dataclass(frozen=True)
class Classification:
    """Outcome of :func:`classify_chunk`."""

    already_corrected: bool
    rule: str
    evidence: Evidence


def _relative_restart(e: Evidence, cfg: ClassifierConfig) -> bool:
    return (
        e.first_s < cfg.relative_first_ts_max_s
        and e.chunk_start_s > cfg.relative_chunk_start_min_s
    )


def _within_tolerance(e: Evidence, cfg: ClassifierConfig) -> bool:
    return abs(e.first_s - e.chunk_start_s) <= e.tolerance_s and e.monotonic


def _delayed_start(e: Evidence, cfg: ClassifierConfig) -> bool:
    return e.chunk_start_s <= e.first_s <= e.chunk_start_s + cfg.delayed_start_window_s


# Order matters: evaluated top to bottom, first match wins.
CLASSIFIER_RULES: list[ClassifierRule] = [
    ClassifierRule("chunk_zero", lambda e, cfg: e.chunk_start_ms == 0, True),
    ClassifierRule(
        "insufficient_evidence",
        lambda e, cfg: len(e.timestamps) < cfg.min_timestamps,
        False,
    ),
    ClassifierRule("relative_restart", _relative_restart, False),
    ClassifierRule(
        "behind_tolerance",
        lambda e, cfg: e.first_s < e.chunk_start_s - e.tolerance_s,
        False,
    ),
    ClassifierRule("within_tolerance", _within_tolerance, True),
    ClassifierRule("delayed_start", _delayed_start, True),
]

DEFAULT_RULE = "assume_relative"


def sample_timestamps(text: str, config: ClassifierConfig) -> list[int]:
    """Return up to ``sample_timestamps`` leading timestamps (seconds) from the
    first ``sample_lines`` lines of *text*. Blank lines count toward the limit."""
    lines = split_lines(text)[: config.sample_lines]
    found: list[int] = []
    for line in lines:
        token = match_timestamp(line)
        if token is None:
            continue
        found.append(token.seconds)
        if len(found) >= config.sample_timestamps:
            break
    return found


def gather_evidence(text: str, chunk_start_ms: int, config: ClassifierConfig) -> Evidence:
    chunk_start_s = chunk_start_ms // 1000
    tolerance_s = max(config.min_tolerance_s, math.floor(chunk_start_s * config.tolerance_ratio))
    return Evidence(
        chunk_start_ms=chunk_start_ms,
        chunk_start_s=chunk_start_s,
        timestamps=sample_timestamps(text, config) if chunk_start_ms else [],
        tolerance_s=tolerance_s,
    )


def classify_chunk(
    text: str,
    chunk_start_ms: int,
    config: ClassifierConfig | None = None,
) -> Classification:
    """Run the decision table over a chunk transcript.

    Args:
        text: The chunk transcript as returned by the speech model.
        chunk_start_ms: Declared start of the chunk on the recording timeline.
        config: Classifier thresholds; defaults when omitted.

    Returns:
        A :class:`Classification` naming the deciding rule.
    """
    cfg = config or ClassifierConfig()
    evidence = gather_evidence(text, chunk_start_ms, cfg)

    for rule in CLASSIFIER_RULES:
        if rule.predicate(evidence, cfg):
            result = Classification(rule.already_corrected, rule.name, evidence)
            break
    else:
        result = Classification(False, DEFAULT_RULE, evidence)

    logger.debug(
        "Chunk at %dms: rule=%s already_corrected=%s first=%ss samples=%s tolerance=%ss",
        chunk_start_ms,
        result.rule,
        result.already_corrected,
        evidence.first_s,
        evidence.timestamps,
        evidence.tolerance_s,
    )
    return result


def detect_if_already_corrected(
    text: str,
    chunk_start_ms: int,
    config: ClassifierConfig | None = None,
) -> bool:
    """Return True when *text* already has absolute timestamps, False when it
    needs *chunk_start_ms* added."""
    return classify_chunk(text, chunk_start_ms, config).already_corrected
