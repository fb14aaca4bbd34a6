"""
Overall summary: one LLM call over all segment summaries, parsed into four sections.
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

from vidsum.config import DEFAULT_LANGUAGE
from vidsum.models import OverallSummary, ProcessedSegment
from vidsum.prompts import (
    CONCLUSION_HEADER,
    DEFAULT_CONCLUSION,
    DEFAULT_FULL_SUMMARY,
    DEFAULT_KEY_POINT,
    DEFAULT_MAIN_THEME,
    FULL_SUMMARY_HEADER,
    KEY_POINTS_HEADER,
    OVERALL_SUMMARY_PROMPT,
    THEME_HEADER,
    TITLE_ONLY_SUMMARY_PROMPT,
)
from vidsum.rate_limiter import call_llm_with_retry
from vidsum.timing import format_duration, format_timestamp

# Header substring -> section name, checked in this order
SECTION_HEADERS = (
    (THEME_HEADER, "theme"),
    (KEY_POINTS_HEADER, "points"),
    (FULL_SUMMARY_HEADER, "summary"),
    (CONCLUSION_HEADER, "conclusion"),
)


def format_segment_summaries(segments: List[ProcessedSegment]) -> str:
    blocks = []
    for i, segment in enumerate(segments, start=1):
        time_range = f"{format_timestamp(segment.start_time)} - {format_timestamp(segment.end_time)}"
        blocks.append(f"Segment {i} ({time_range}): {segment.detailed_summary}")
    return "\n\n".join(blocks)


def build_overall_prompt(
    title: str,
    duration: Optional[float],
    segments: List[ProcessedSegment],
    language: str = DEFAULT_LANGUAGE,
) -> str:
    return OVERALL_SUMMARY_PROMPT.format(
        language=language,
        title=title,
        duration=format_duration(duration or 0),
        segment_summaries=format_segment_summaries(segments),
    )


def build_title_only_prompt(title: str, duration: Optional[float], language: str = DEFAULT_LANGUAGE) -> str:
    return TITLE_ONLY_SUMMARY_PROMPT.format(
        title=title,
        duration=format_duration(duration) if duration else "unknown",
        language=language,
    )


def _match_section(line: str) -> Optional[str]:
    for header, section in SECTION_HEADERS:
        if header in line:
            return section
    return None


def parse_overall_summary(response: str) -> OverallSummary:
    """
    Parse a four-section response into an OverallSummary.

    Never raises. Header lines are matched by substring and switch the
    current section; theme and conclusion keep their last non-empty line,
    key points collect lines starting with "-", and summary lines are
    joined with spaces. Anything missing falls back to a default, and
    key_points always has at least one entry.

    Args:
        response: Raw LLM completion text (may be empty or malformed)

    Returns:
        OverallSummary with every field populated
    """
    main_theme = DEFAULT_MAIN_THEME
    conclusion = DEFAULT_CONCLUSION
    key_points: List[str] = []
    summary_lines: List[str] = []

    section = ""
    for raw_line in (response or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        matched = _match_section(line)
        if matched is not None:
            section = matched
            continue

        if section == "theme":
            main_theme = line
        elif section == "points" and line.startswith("-"):
            point = line[1:].strip()
            if point:
                key_points.append(point)
        elif section == "summary":
            summary_lines.append(line)
        elif section == "conclusion":
            conclusion = line

    return OverallSummary(
        main_theme=main_theme,
        key_points=key_points or [DEFAULT_KEY_POINT],
        full_summary=" ".join(summary_lines) if summary_lines else DEFAULT_FULL_SUMMARY,
        conclusion=conclusion,
    )


async def generate_overall_summary(
    title: str,
    duration: Optional[float],
    processed_segments: List[ProcessedSegment],
    llm_caller: Callable[[str], Awaitable[str]],
    language: str = DEFAULT_LANGUAGE,
    max_retries: int = 3,
    verbose: bool = False,
) -> OverallSummary:
    """Single LLM call; falls back to a title-only prompt when there are no segments."""
    if processed_segments:
        print(f"    Combining {len(processed_segments)} segment summaries into an overall summary...")
        prompt = build_overall_prompt(title, duration, processed_segments, language)
    else:
        print("    Warning: no segment summaries available, summarising from title only")
        prompt = build_title_only_prompt(title, duration, language)

    response = await call_llm_with_retry(llm_caller, prompt, max_retries, verbose=verbose)
    summary = parse_overall_summary(response)

    print("    ✓ Overall summary generated")
    if verbose:
        print(f"      Theme: {summary.main_theme}")
        print(f"      Key points: {len(summary.key_points)}")
        print(f"      Full summary: {len(summary.full_summary)} characters")

    return summary
