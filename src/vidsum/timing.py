"""
Caption timing normalizer.

Platform transcript APIs disagree on how they spell timestamps: some use
seconds, some milliseconds, some clock strings, some give an end time and
some only a duration. This module probes the known conventions in a fixed
order and repairs whatever comes back into a clean, ordered, overlap-free
list of CaptionFragment.

Input: list of raw caption records (dicts, or bare strings).
Output: List[CaptionFragment] with start < end and
        fragment[i].end <= fragment[i + 1].start.

Malformed records are repaired, never rejected.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Tuple

from vidsum.models import CaptionFragment


SECONDS = 1.0
MILLISECONDS = 0.001

# Probed in order; the first usable value wins.
START_FIELDS: List[Tuple[str, float]] = [
    ("start_ms", MILLISECONDS),
    ("startMs", MILLISECONDS),
    ("start_time_ms", MILLISECONDS),
    ("startTimeMs", MILLISECONDS),
    ("start", SECONDS),
    ("startTime", SECONDS),
    ("start_offset_ms", MILLISECONDS),
    ("startOffsetMs", MILLISECONDS),
    ("begin_time_ms", MILLISECONDS),
    ("beginTimeMs", MILLISECONDS),
    ("offset", SECONDS),
    ("time", SECONDS),
    ("from", SECONDS),
]

END_FIELDS: List[Tuple[str, float]] = [
    ("end_ms", MILLISECONDS),
    ("endMs", MILLISECONDS),
    ("end_time_ms", MILLISECONDS),
    ("endTimeMs", MILLISECONDS),
    ("end", SECONDS),
    ("endTime", SECONDS),
    ("end_offset_ms", MILLISECONDS),
    ("endOffsetMs", MILLISECONDS),
    ("to", SECONDS),
]

DURATION_FIELDS: List[Tuple[str, float]] = [
    ("duration_ms", MILLISECONDS),
    ("durationMs", MILLISECONDS),
    ("duration", SECONDS),
    ("dur", SECONDS),
]

DEFAULT_FRAGMENT_SECONDS = 2.0
MAX_ESTIMATED_SECONDS = 10.0
SECONDS_PER_CHAR = 0.05
FALLBACK_SPACING_SECONDS = 3.0
UNKNOWN_DURATION_CEILING = 7200.0
KNOWN_DURATION_TOLERANCE = 1.5

_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_INT_RE = re.compile(r"\d+")


# ----------------------------
# Formatting
# ----------------------------

def format_timestamp(seconds: float) -> str:
    """Format seconds as M:SS, or H:MM:SS once past the hour."""
    seconds = max(0, int(seconds))
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_duration(seconds: Optional[float]) -> str:
    seconds = max(0, int(seconds or 0))
    return f"{seconds // 60}m {seconds % 60}s"


# ----------------------------
# Field parsing
# ----------------------------

def _leading_float(text: str) -> float:
    match = _NUMBER_RE.match(text)
    return float(match.group()) if match else 0.0


def _leading_int(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group()) if match else 0


def parse_time_string(value: Any) -> float:
    """
    Parse a clock-style time string into seconds.

    "12.5" -> 12.5, "01:23.4" -> 83.4, "1:02:03" -> 3723.0.
    Anything unparseable (or with more than three parts) -> 0.
    """
    if not isinstance(value, str):
        return 0.0

    cleaned = re.sub(r"[^\d:.]", "", value)
    parts = cleaned.split(":")

    if len(parts) == 1:
        return _leading_float(parts[0])
    if len(parts) == 2:
        return _leading_int(parts[0]) * 60 + _leading_float(parts[1])
    if len(parts) == 3:
        return _leading_int(parts[0]) * 3600 + _leading_int(parts[1]) * 60 + _leading_float(parts[2])
    return 0.0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _probe(record: Dict[str, Any], fields: List[Tuple[str, float]], allow_strings: bool = True) -> Optional[float]:
    for name, unit in fields:
        value = record.get(name)
        if value is None:
            continue
        if _is_number(value):
            number = float(value) * unit
            # Negative or NaN/inf timestamps count as missing
            if math.isfinite(number) and number >= 0:
                return number
            continue
        if allow_strings and isinstance(value, str):
            if ":" in value:
                parsed = parse_time_string(value)
            else:
                # Plain numeric strings keep the field's unit
                parsed = parse_time_string(value) * unit
            if math.isfinite(parsed) and parsed > 0:
                return parsed
    return None


def extract_timestamp(record: Any) -> Dict[str, Optional[float]]:
    """
    Pull start / end / duration out of a raw caption record.

    Returns:
        Dict with "start", "end" and "duration" keys; each None when the
        record carries no usable value for it.
    """
    if not isinstance(record, dict):
        return {"start": None, "end": None, "duration": None}

    return {
        "start": _probe(record, START_FIELDS),
        "end": _probe(record, END_FIELDS),
        "duration": _probe(record, DURATION_FIELDS, allow_strings=False),
    }


def extract_text(record: Any) -> str:
    """Find the caption text in one of the known record shapes."""
    if isinstance(record, str):
        return record
    if not isinstance(record, dict):
        return ""

    snippet = record.get("snippet")
    if isinstance(snippet, dict) and snippet.get("text"):
        return str(snippet["text"])
    if record.get("text"):
        return str(record["text"])
    if record.get("content"):
        return str(record["content"])
    nested = record.get("transcript_segment")
    if isinstance(nested, dict):
        nested_snippet = nested.get("snippet")
        if isinstance(nested_snippet, dict) and nested_snippet.get("text"):
            return str(nested_snippet["text"])
    return ""


# ----------------------------
# Normalization
# ----------------------------

def estimate_fragment_seconds(text: str) -> float:
    """Guess how long a caption stays on screen from its length."""
    return max(DEFAULT_FRAGMENT_SECONDS, min(len(text) * SECONDS_PER_CHAR, MAX_ESTIMATED_SECONDS))


def normalize_captions(
    records: List[Any],
    true_duration: Optional[float] = None,
    verbose: bool = False,
) -> List[CaptionFragment]:
    """
    Repair raw caption records into an ordered, overlap-free fragment list.

    Args:
        records: Raw caption records as returned by a platform API
        true_duration: Real video length in seconds, if known
        verbose: Print repair details

    Returns:
        List of CaptionFragment (empty input gives an empty list)
    """
    if not records:
        return []

    known_duration = true_duration if true_duration and true_duration > 0 else None
    ceiling = known_duration * KNOWN_DURATION_TOLERANCE if known_duration else UNKNOWN_DURATION_CEILING
    total = len(records)

    timed: List[List[Any]] = []  # [start, end, text]
    cumulative = 0.0
    reanchored = 0

    for index, record in enumerate(records):
        text = extract_text(record).strip()
        timing = extract_timestamp(record)

        start = timing["start"]
        if start is None or (start == 0 and index > 0):
            start = cumulative

        end = timing["end"]
        if not end:
            if timing["duration"]:
                end = start + timing["duration"]
            else:
                end = start + estimate_fragment_seconds(text)

        cumulative = max(cumulative, end)

        if cumulative > ceiling:
            # Runaway timestamps: fall back to evenly spaced synthetic ones
            if known_duration:
                spacing = known_duration / total
                start = index * spacing
                end = start + spacing
            else:
                start = index * FALLBACK_SPACING_SECONDS
                end = start + DEFAULT_FRAGMENT_SECONDS
            cumulative = end
            reanchored += 1

        if text:
            timed.append([start, end, text])

    if reanchored and verbose:
        print(f"    Warning: re-anchored {reanchored} caption(s) with implausible timestamps (ceiling {ceiling:.0f}s)")

    if known_duration and timed and timed[-1][1] > known_duration:
        scale = known_duration / timed[-1][1]
        if verbose:
            print(f"    Warning: captions run past video length, rescaling timestamps by {scale:.3f}")
        for item in timed:
            item[0] *= scale
            item[1] *= scale

    for i, item in enumerate(timed):
        item[0] = max(item[0], 0.0)
        if i > 0 and item[0] < timed[i - 1][1]:
            item[0] = timed[i - 1][1]
        if item[1] <= item[0]:
            item[1] = item[0] + 1

    return [CaptionFragment(start=s, end=e, text=t) for s, e, t in timed]
