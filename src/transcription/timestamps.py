"""Line-leading timestamp parsing, formatting, and clean-up.

Every caller that needs to read a timestamp off a transcript line goes
through :func:`match_timestamp`. Lines look like::

    12:34 Speaker A: text
    01:02:03 Speaker B: text

``MM:SS`` and ``HH:MM:SS`` are both accepted. A line without a leading
timestamp is a continuation of the previous utterance.
"""

from __future__ import annotations

import re

from src.transcription.models import TimestampToken

# Digits are ASCII only; full-width digits are not timestamps.
TIMESTAMP_RE = re.compile(
    r"^(?P<indent>\s*)(?P<first>[0-9]{2}):(?P<second>[0-9]{2})(?::(?P<third>[0-9]{2}))?"
)

# Hour field zero-padded to 3+ digits, e.g. "0001:02:03".
_WIDE_HOUR_RE = re.compile(
    r"^(?P<indent>\s*)(?P<hours>[0-9]{3,}):(?P<minutes>[0-9]{2}):(?P<seconds>[0-9]{2})"
)

# A trailing millisecond group, e.g. "12:34:567", "12:34.567", "01:02:03,456".
_MILLIS_RE = re.compile(
    r"^(?P<indent>\s*)(?P<clock>[0-9]{2}:[0-9]{2}(?::[0-9]{2})?)[.,:][0-9]{3}(?![0-9])"
)

# Only "\n" and "\r\n" end a line; other Unicode separators stay inside the utterance.
LINE_BREAK_RE = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    return LINE_BREAK_RE.split(text)


def match_timestamp(line: str) -> TimestampToken | None:
    """Locate the timestamp at the start of *line*.

    Returns:
        A :class:`TimestampToken` with the value in whole seconds, or ``None``
        when the line does not begin with ``MM:SS`` / ``HH:MM:SS``.
    """
    match = TIMESTAMP_RE.match(line)
    if match is None:
        return None

    try:
        first = int(match.group("first"))
        second = int(match.group("second"))
        third = match.group("third")
        if third is not None:
            seconds = first * 3600 + second * 60 + int(third)
        else:
            seconds = first * 60 + second
    except ValueError:
        return None

    return TimestampToken(indent=match.group("indent"), seconds=seconds, end=match.end())


def parse_timestamp_ms(line: str) -> int | None:
    """Return the line-leading timestamp of *line* in milliseconds, or ``None``."""
    token = match_timestamp(line)
    if token is None:
        return None
    return token.seconds * 1000


def format_timestamp(total_seconds: int) -> str:
    """Format seconds as ``HH:MM:SS`` from one hour upwards, ``MM:SS`` below."""
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if total_seconds >= 3600:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def replace_timestamp(line: str, token: TimestampToken, seconds: int) -> str:
    """Rewrite the timestamp *token* in *line* as *seconds*, keeping everything else."""
    return f"{token.indent}{format_timestamp(seconds)}{line[token.end:]}"


def _sanitize_line(line: str) -> str:
    wide = _WIDE_HOUR_RE.match(line)
    if wide:
        hours = int(wide.group("hours"))
        if hours < 100:
            line = (
                f"{wide.group('indent')}{hours:02d}:{wide.group('minutes')}:"
                f"{wide.group('seconds')}{line[wide.end():]}"
            )

    millis = _MILLIS_RE.match(line)
    if millis:
        line = f"{millis.group('indent')}{millis.group('clock')}{line[millis.end():]}"

    return line


def sanitize_timestamps(text: str) -> str:
    """Normalise malformed line-leading timestamps emitted by the speech model.

    Drops spurious millisecond groups and re-pads over-wide hour fields so
    every timestamp is ``MM:SS`` or ``HH:MM:SS``. Other lines pass through
    untouched; applying it twice is the same as applying it once.
    """
    return "\n".join(_sanitize_line(line) for line in text.split("\n"))
