"""
Smart segmentation of caption fragments (time-, word- and topic-bounded).

Input: ordered CaptionFragment list (see timing.normalize_captions).
Output: SegmentGroup list - contiguous, non-overlapping runs of captions
that are each summarised independently.

Boundaries are chosen by, in priority order:
- hard cap on segment duration (max_segment_minutes)
- hard cap on accumulated word count (max_words_per_segment)
- a topic-change heuristic once the segment is at least min_segment_minutes long

Degenerate inputs (no captions, captions without text) produce synthetic
placeholder segments instead of errors.
"""

from __future__ import annotations

import re
from typing import List, Optional

from vidsum.models import CaptionFragment, SegmentGroup
from vidsum.timing import format_timestamp


DEFAULT_MAX_WORDS = 800

# Topic-change heuristic tuning. Empirical values, keep as-is.
RECENT_CONTEXT_CHARS = 200
MIN_WORD_LENGTH = 3  # words must be longer than this to count
MIN_OVERLAP_RATIO = 0.3

TRANSITION_SIGNALS = [
    "now", "next", "let me", "moving on", "another", "also", "furthermore",
    "however", "but", "on the other hand", "meanwhile", "in contrast",
    "so", "therefore", "as a result", "consequently",
    "first", "second", "third", "finally", "lastly",
    "现在", "接下来", "然后", "另外", "此外", "但是", "然而", "同时", "因此", "所以",
    "首先", "其次", "第一", "第二", "第三", "最后", "总之",
]

NO_SUBTITLE_TEXT = "Video segment {start} - {end} (no subtitles)"
INVALID_SUBTITLE_TEXT = "Video content (subtitles unavailable)"

_WHITESPACE_RE = re.compile(r"\s+")


# ----------------------------
# Heuristics
# ----------------------------

def count_words(text: str) -> int:
    return len([w for w in _WHITESPACE_RE.split(text) if w])


def _long_words(text: str) -> set:
    return {w for w in _WHITESPACE_RE.split(text) if len(w) > MIN_WORD_LENGTH}


def detect_topic_change(current_text: str, new_text: str) -> bool:
    """
    Guess whether new_text starts a new topic relative to current_text.

    A discourse marker in new_text is taken as a topic change outright.
    Otherwise the long-word overlap between the tail of current_text and
    new_text is compared against MIN_OVERLAP_RATIO.
    """
    recent_text = current_text[-RECENT_CONTEXT_CHARS:].lower()
    new_text_lower = new_text.lower()

    if any(signal in new_text_lower for signal in TRANSITION_SIGNALS):
        return True

    recent_words = _long_words(recent_text)
    new_words = _long_words(new_text_lower)
    overlap_ratio = len(recent_words & new_words) / max(len(recent_words), 1)

    return overlap_ratio < MIN_OVERLAP_RATIO


# ----------------------------
# Placeholder segments
# ----------------------------

def _placeholder_segments(duration: float, segment_seconds: float) -> List[SegmentGroup]:
    segments: List[SegmentGroup] = []
    current_start = 0.0
    while current_start < duration:
        current_end = min(current_start + segment_seconds, duration)
        segments.append(
            SegmentGroup(
                start=current_start,
                end=current_end,
                text=NO_SUBTITLE_TEXT.format(
                    start=format_timestamp(current_start),
                    end=format_timestamp(current_end),
                ),
                subtitle_count=0,
            )
        )
        current_start = current_end
    return segments


# ----------------------------
# Core segmentation
# ----------------------------

def smart_segmentation(
    fragments: List[CaptionFragment],
    min_segment_minutes: float,
    max_segment_minutes: float,
    max_words_per_segment: int = DEFAULT_MAX_WORDS,
    video_duration: Optional[float] = None,
    verbose: bool = False,
) -> List[SegmentGroup]:
    """
    Group caption fragments into segments worth summarising on their own.

    Args:
        fragments: Ordered, normalized caption fragments
        min_segment_minutes: Minimum length before a soft (topic) boundary may fire
        max_segment_minutes: Hard cap on segment length
        max_words_per_segment: Hard cap on whitespace-separated words
        video_duration: Real video length in seconds, used for placeholder segments
        verbose: Print boundary decisions

    Returns:
        List of SegmentGroup; empty when there is nothing to segment
    """
    if not fragments:
        if video_duration and video_duration > 0:
            segment_seconds = (min_segment_minutes + max_segment_minutes) / 2 * 60
            segments = _placeholder_segments(video_duration, segment_seconds)
            if verbose:
                print(f"    No captions, created {len(segments)} time-based placeholder segments")
            return segments
        return []

    min_segment_seconds = min_segment_minutes * 60
    max_segment_seconds = max_segment_minutes * 60

    first_index = next((i for i, f in enumerate(fragments) if f.text and f.text.strip()), None)
    if first_index is None:
        total_duration = max(max(f.end for f in fragments), video_duration or 0)
        if total_duration > 0:
            if verbose:
                print("    Captions contain no text, using a single placeholder segment")
            return [SegmentGroup(start=0.0, end=total_duration, text=INVALID_SUBTITLE_TEXT, subtitle_count=0)]
        return []

    segments: List[SegmentGroup] = []
    first = fragments[first_index]
    seg_start = first.start
    seg_end = first.end
    seg_text = first.text.strip()
    seg_count = 1

    for fragment in fragments[first_index + 1:]:
        text = fragment.text.strip() if fragment.text else ""
        if not text:
            continue

        current_duration = seg_end - seg_start
        current_words = count_words(seg_text)

        should_split = (
            current_duration >= max_segment_seconds
            or current_words >= max_words_per_segment
            or (current_duration >= min_segment_seconds and detect_topic_change(seg_text, text))
        )

        if should_split:
            if verbose:
                print(
                    f"    Segment {format_timestamp(seg_start)} - {format_timestamp(seg_end)} "
                    f"({current_duration:.1f}s, {current_words} words)"
                )
            segments.append(SegmentGroup(start=seg_start, end=seg_end, text=seg_text, subtitle_count=seg_count))
            seg_start = fragment.start
            seg_end = fragment.end
            seg_text = text
            seg_count = 1
        else:
            seg_text += " " + text
            seg_end = fragment.end
            seg_count += 1

    if seg_text.strip():
        segments.append(SegmentGroup(start=seg_start, end=seg_end, text=seg_text, subtitle_count=seg_count))

    if not segments:
        non_empty = [f.text.strip() for f in fragments if f.text and f.text.strip()]
        if non_empty:
            segments.append(
                SegmentGroup(
                    start=fragments[0].start,
                    end=fragments[-1].end,
                    text=" ".join(non_empty),
                    subtitle_count=len(non_empty),
                )
            )

    return segments


def time_based_segmentation(fragments: List[CaptionFragment], segment_minutes: float) -> List[SegmentGroup]:
    """Fixed-window fallback: start a new segment every segment_minutes."""
    if not fragments:
        return []

    segment_seconds = segment_minutes * 60
    segments: List[SegmentGroup] = []
    seg_start, seg_end, seg_text, seg_count = fragments[0].start, fragments[0].end, fragments[0].text, 1

    for fragment in fragments[1:]:
        if fragment.start >= seg_start + segment_seconds:
            segments.append(SegmentGroup(start=seg_start, end=seg_end, text=seg_text, subtitle_count=seg_count))
            seg_start, seg_end, seg_text, seg_count = fragment.start, fragment.end, fragment.text, 1
        else:
            seg_text += " " + fragment.text
            seg_end = fragment.end
            seg_count += 1

    if seg_text.strip():
        segments.append(SegmentGroup(start=seg_start, end=seg_end, text=seg_text, subtitle_count=seg_count))

    return segments


def validate_segments(segments: List[SegmentGroup]) -> List[str]:
    """
    Check segments for obvious problems without changing them.

    Placeholder segments (subtitle_count == 0) are reported too; callers
    treat every entry as a warning.
    """
    errors: List[str] = []

    for index, segment in enumerate(segments, start=1):
        if segment.start < 0:
            errors.append(f"Segment {index}: start time is negative")
        if segment.end <= segment.start:
            errors.append(f"Segment {index}: end time must be after start time")
        if not segment.text or not segment.text.strip():
            errors.append(f"Segment {index}: text is empty")
        if segment.subtitle_count <= 0:
            errors.append(f"Segment {index}: subtitle count must be positive")

    for index in range(len(segments) - 1):
        if segments[index].end > segments[index + 1].start:
            errors.append(f"Segments {index + 1} and {index + 2}: time ranges overlap")

    return errors
