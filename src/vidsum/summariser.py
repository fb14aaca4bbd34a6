"""
Per-segment summarisation with batched, rate-limited LLM calls.

Segments are processed in consecutive batches of BATCH_SIZE. Inside a batch
every call is launched at once and joined; if any call fails the whole
batch (and the run) fails. Batches are separated by BATCH_DELAY_S. Each
call additionally goes through the shared RateLimiter and the rate-limit
retry wrapper, so real concurrency never exceeds the limiter's cap.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from vidsum.config import DEFAULT_LANGUAGE
from vidsum.models import ProcessedSegment, SegmentGroup
from vidsum.prompts import NO_SUBTITLE_SEGMENT_PROMPT, SEGMENT_SUMMARY_PROMPT
from vidsum.rate_limiter import RateLimiter, call_llm_with_retry
from vidsum.segmentation import INVALID_SUBTITLE_TEXT
from vidsum.timing import format_timestamp

BATCH_SIZE = 3
BATCH_DELAY_S = 2.0

LLMCaller = Callable[[str], Awaitable[str]]


def is_placeholder_segment(segment: SegmentGroup) -> bool:
    text = segment.text.strip()
    return segment.is_placeholder or text == INVALID_SUBTITLE_TEXT or text.endswith("(no subtitles)")


def build_segment_prompt(segment: SegmentGroup, language: str = DEFAULT_LANGUAGE, title: str = "") -> str:
    """Content prompt for captioned segments, short time-anchored note otherwise."""
    if is_placeholder_segment(segment):
        return NO_SUBTITLE_SEGMENT_PROMPT.format(
            title=title or "this video",
            start=format_timestamp(segment.start),
            end=format_timestamp(segment.end),
            language=language,
        )
    return SEGMENT_SUMMARY_PROMPT.format(text=segment.text, language=language)


class SegmentSummariser:
    """Turns SegmentGroups into ProcessedSegments via the LLM."""

    def __init__(
        self,
        llm_caller: LLMCaller,
        rate_limiter: Optional[RateLimiter] = None,
        language: str = DEFAULT_LANGUAGE,
        title: str = "",
        batch_size: int = BATCH_SIZE,
        batch_delay_s: float = BATCH_DELAY_S,
        max_retries: int = 3,
        verbose: bool = False,
    ):
        """
        Args:
            llm_caller: Async single-shot completion, ``prompt -> text``
            rate_limiter: Shared limiter (defaults to the "default" preset)
            language: Language the summaries are written in
            title: Video title, used in prompts for caption-less segments
            batch_size: Segments launched together per batch
            batch_delay_s: Pause between batches
            max_retries: Attempts per call on rate-limit errors
            verbose: Print per-segment progress
        """
        if rate_limiter is None:
            rate_limiter = RateLimiter.from_preset("default")
        self.llm_caller = llm_caller
        self.rate_limiter = rate_limiter
        self.language = language
        self.title = title
        self.batch_size = batch_size
        self.batch_delay_s = batch_delay_s
        self.max_retries = max_retries
        self.verbose = verbose

    async def summarise_segment(self, segment: SegmentGroup, index: int, total: int) -> ProcessedSegment:
        prompt = build_segment_prompt(segment, self.language, self.title)
        if self.verbose:
            print(f"      Segment {index}/{total}: {format_timestamp(segment.start)} - {format_timestamp(segment.end)}")

        summary = await self.rate_limiter.execute(
            lambda: call_llm_with_retry(self.llm_caller, prompt, self.max_retries, verbose=self.verbose)
        )

        if self.verbose:
            print(f"      ✓ Segment {index} summarised ({len(summary)} characters)")

        return ProcessedSegment(
            start_time=segment.start,
            end_time=segment.end,
            original_text=segment.text.strip(),
            detailed_summary=summary.strip(),
        )

    async def summarise(self, segments: List[SegmentGroup]) -> List[ProcessedSegment]:
        """
        Summarise every segment, in order.

        Returns:
            One ProcessedSegment per input segment, same order; empty for no segments
        """
        if not segments:
            print("    No segments to summarise, skipping LLM calls")
            return []

        total = len(segments)
        total_batches = (total + self.batch_size - 1) // self.batch_size
        print(f"    Summarising {total} segments in {total_batches} batches of up to {self.batch_size}...")

        results: List[ProcessedSegment] = []
        for start in range(0, total, self.batch_size):
            batch = segments[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            if self.verbose:
                print(f"    Processing batch {batch_number}/{total_batches} ({len(batch)} segments)...")

            batch_results = await asyncio.gather(
                *(
                    self.summarise_segment(segment, start + offset + 1, total)
                    for offset, segment in enumerate(batch)
                )
            )
            results.extend(batch_results)

            if start + self.batch_size < total:
                if self.verbose:
                    print(f"    Waiting {self.batch_delay_s:g}s before next batch...")
                await asyncio.sleep(self.batch_delay_s)

        print(f"    ✓ Summarised {len(results)} segments")
        return results


async def summarise_segments(
    segments: List[SegmentGroup],
    llm_caller: LLMCaller,
    **kwargs,
) -> List[ProcessedSegment]:
    """Convenience wrapper around SegmentSummariser(...).summarise(segments)."""
    return await SegmentSummariser(llm_caller, **kwargs).summarise(segments)


def validate_processed_segments(segments: List[ProcessedSegment]) -> List[str]:
    errors: List[str] = []
    for index, segment in enumerate(segments, start=1):
        if segment.start_time < 0:
            errors.append(f"Segment {index}: start time is negative")
        if segment.end_time <= segment.start_time:
            errors.append(f"Segment {index}: end time must be after start time")
        if not segment.detailed_summary.strip():
            errors.append(f"Segment {index}: summary is empty")
    for index in range(len(segments) - 1):
        if segments[index].end_time > segments[index + 1].start_time:
            errors.append(f"Segments {index + 1} and {index + 2}: time ranges overlap")
    return errors
