"""Re-merge a stored recording's chunks and print merge diagnostics.

Input is a JSON dump of one task's chunks::

    {
      "total_chunks": 18,
      "chunks": [
        {"index": 0, "start_ms": 0, "end_ms": 265000, "text": "00:00 A: ..."},
        ...
      ]
    }

``text`` is the stored (corrected) transcript. Pass ``--recorrect`` when the
dump holds raw model output and correction should be run first.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.pipeline_config import PipelineConfig
from src.transcription.merge import MissingChunkError
from src.transcription.models import Chunk, ChunkWindow
from src.transcription.pipeline import assemble_transcript, ingest_chunk
from src.transcription.timestamps import format_timestamp


def load_chunks(data: dict, config: PipelineConfig, recorrect: bool = False) -> list[Chunk]:
    """Build chunks from a task dump, optionally re-running correction."""
    chunks: list[Chunk] = []
    for item in data.get("chunks", []):
        text = item.get("text", item.get("corrected_text", "")) or ""
        if recorrect:
            window = ChunkWindow(index=item["index"], start_ms=item["start_ms"], end_ms=item["end_ms"])
            chunks.append(ingest_chunk(window, text, config))
        else:
            chunks.append(
                Chunk(
                    index=item["index"],
                    start_ms=item["start_ms"],
                    end_ms=item["end_ms"],
                    raw_text=text,
                    corrected_text=text,
                )
            )
    return chunks


def _fmt(ms: int | None) -> str:
    return "-" if ms is None else format_timestamp(ms // 1000)


def remerge(path: str, out: str | None = None, recorrect: bool = False) -> int:
    """Merge the dump at *path*; return a process exit code."""
    config = PipelineConfig.from_settings(settings)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    chunks = load_chunks(data, config, recorrect)
    total_chunks = data.get("total_chunks", len(chunks))

    try:
        result = assemble_transcript(chunks, total_chunks, config)
    except MissingChunkError as e:
        print(f"ERROR: {e}. Re-submit chunk(s) {e.missing} and retry.")
        return 2

    diagnostics = result.diagnostics
    print(f"Merged {total_chunks} chunks (overlap {config.chunking.overlap_seconds}s)")
    for span in diagnostics.spans:
        print(
            f"  [{span.chunk_index:3d}] {_fmt(span.first_retained_ms)} -> {_fmt(span.last_retained_ms)}"
            f"  kept={span.retained_lines} dropped={span.dropped_lines}"
            f" continuation={span.continuation_lines}"
        )
    for dropped in diagnostics.dropped:
        print(
            f"  DROP chunk {dropped.chunk_index} {_fmt(dropped.timestamp_ms)}"
            f" < {_fmt(dropped.threshold_ms)}: {dropped.line[:60]}"
        )
    if diagnostics.unparseable_chunks:
        print(f"  WARNING: no timestamps in chunk(s) {diagnostics.unparseable_chunks}")
    if diagnostics.out_of_order:
        print(f"  WARNING: {len(diagnostics.out_of_order)} out-of-order line(s)")

    last_ms = diagnostics.final_timestamp_ms
    print(f"\nFinal timestamp: {_fmt(last_ms)}")

    if out:
        Path(out).write_text(result.merged_text, encoding="utf-8")
        print(f"Saved merged transcript -> {out}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("dump", help="JSON dump of a task's chunks")
    parser.add_argument("--out", default=None)
    parser.add_argument("--recorrect", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level)
    sys.exit(remerge(args.dump, args.out, args.recorrect))
