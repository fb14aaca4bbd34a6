"""
End-to-end summarisation run.

A run is a plain list of async stage functions applied in order to one
shared RunContext. Every stage reads what earlier stages stored on the
context and writes its own results back.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from vidsum import aggregator
from vidsum.config import (
    DEFAULT_LANGUAGE,
    DEFAULT_MODEL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SEGMENT_MINUTES_MAX,
    DEFAULT_SEGMENT_MINUTES_MIN,
    PIPELINE_MAX_WORDS_PER_SEGMENT,
)
from vidsum.llm import LLMClient
from vidsum.markdown import (
    SummaryDocument,
    generate_simple_summary,
    generate_table_summary,
    generate_video_summary,
)
from vidsum.models import OverallSummary, PlatformInfo, ProcessedSegment, SegmentGroup, VideoData
from vidsum.obsidian import ObsidianConfig, export_to_obsidian
from vidsum.output import create_output_structure, write_markdown, write_token_files
from vidsum.platforms import detect_platform, get_adapter
from vidsum.rate_limiter import RateLimiter
from vidsum.segmentation import smart_segmentation, time_based_segmentation, validate_segments
from vidsum.summariser import SegmentSummariser, validate_processed_segments
from vidsum.timing import format_duration, format_timestamp
from vidsum.token_monitor import TokenMonitor

LLMCaller = Callable[[str], Awaitable[str]]


@dataclass
class RunContext:
    """Options for one run plus everything the stages produce."""

    url: str
    output_dir: str = DEFAULT_OUTPUT_DIR
    segment_minutes_min: float = DEFAULT_SEGMENT_MINUTES_MIN
    segment_minutes_max: float = DEFAULT_SEGMENT_MINUTES_MAX
    max_words_per_segment: int = PIPELINE_MAX_WORDS_PER_SEGMENT
    language: str = DEFAULT_LANGUAGE
    model: str = DEFAULT_MODEL
    style: str = "full"
    segmentation: str = "smart"
    enable_token_monitoring: bool = True
    save_token_files: bool = False
    obsidian: Optional[ObsidianConfig] = None
    verbose: bool = False

    # Injected collaborators (built on demand when left as None)
    llm_caller: Optional[LLMCaller] = None
    rate_limiter: Optional[RateLimiter] = None
    token_monitor: TokenMonitor = field(default_factory=TokenMonitor)

    # Stage results
    platform_info: Optional[PlatformInfo] = None
    adapter: Any = None
    video_data: Optional[VideoData] = None
    video_output_dir: Optional[str] = None
    markdown_path: Optional[str] = None
    segments: List[SegmentGroup] = field(default_factory=list)
    processed_segments: List[ProcessedSegment] = field(default_factory=list)
    overall_summary: Optional[OverallSummary] = None
    markdown_content: Optional[str] = None
    obsidian_export_path: Optional[str] = None
    token_files: Dict[str, str] = field(default_factory=dict)


Stage = Callable[[RunContext], Awaitable[None]]


def _llm_caller(ctx: RunContext) -> LLMCaller:
    if ctx.llm_caller is None:
        on_usage = ctx.token_monitor.record if ctx.enable_token_monitoring else None
        client = LLMClient(model=ctx.model, on_usage=on_usage, verbose=ctx.verbose)
        ctx.llm_caller = client.caller()
    return ctx.llm_caller


# ----------------------------
# Stages
# ----------------------------

async def reset_token_stats(ctx: RunContext) -> None:
    ctx.token_monitor.reset()
    if ctx.verbose:
        print("  Token statistics reset")


async def detect_video_platform(ctx: RunContext) -> None:
    print("  Step 1: Detecting video platform...")
    ctx.platform_info = detect_platform(ctx.url)
    ctx.adapter = get_adapter(ctx.platform_info.platform, verbose=ctx.verbose)
    print(f"    ✓ Platform: {ctx.platform_info.platform.value}, video id: {ctx.platform_info.video_id}")


async def fetch_video_data(ctx: RunContext) -> None:
    print("  Step 2: Fetching video data and captions...")
    # Adapters do blocking HTTP
    ctx.video_data = await asyncio.to_thread(ctx.adapter.get_video_data, ctx.platform_info.video_id)

    structure = create_output_structure(ctx.output_dir, ctx.video_data.title, ctx.platform_info.video_id)
    ctx.video_output_dir = structure["output_dir"]
    ctx.markdown_path = structure["markdown_path"]

    duration = ctx.video_data.duration
    print(f"    ✓ {len(ctx.video_data.fragments)} caption fragments")
    print(f"    Duration: {format_duration(duration) if duration else 'unknown'}")
    if ctx.verbose:
        print(f"    Output directory: {ctx.video_output_dir}")


async def process_segments(ctx: RunContext) -> None:
    print(
        f"  Step 3: Segmenting captions "
        f"({ctx.segment_minutes_min:g}-{ctx.segment_minutes_max:g} minutes per segment)..."
    )
    if ctx.segmentation == "time":
        window = (ctx.segment_minutes_min + ctx.segment_minutes_max) / 2
        ctx.segments = time_based_segmentation(ctx.video_data.fragments, window)
    else:
        ctx.segments = smart_segmentation(
            ctx.video_data.fragments,
            ctx.segment_minutes_min,
            ctx.segment_minutes_max,
            max_words_per_segment=ctx.max_words_per_segment,
            video_duration=ctx.video_data.duration,
            verbose=ctx.verbose,
        )

    for problem in validate_segments(ctx.segments):
        print(f"    Warning: {problem}")

    print(f"    ✓ {len(ctx.segments)} segments")
    if ctx.verbose:
        for i, segment in enumerate(ctx.segments, start=1):
            print(
                f"      Segment {i}: {format_timestamp(segment.start)} - {format_timestamp(segment.end)} "
                f"({format_duration(segment.duration)}, {segment.subtitle_count} captions)"
            )

    summariser = SegmentSummariser(
        _llm_caller(ctx),
        rate_limiter=ctx.rate_limiter,
        language=ctx.language,
        title=ctx.video_data.title,
        verbose=ctx.verbose,
    )
    ctx.processed_segments = await summariser.summarise(ctx.segments)

    for problem in validate_processed_segments(ctx.processed_segments):
        print(f"    Warning: {problem}")


async def token_checkpoint(ctx: RunContext) -> None:
    monitor = ctx.token_monitor
    print(
        f"    Tokens so far: {monitor.total_calls} calls, "
        f"{monitor.total_tokens:,} tokens, ${monitor.total_cost:.4f}"
    )


async def generate_overall_summary(ctx: RunContext) -> None:
    print("  Step 4: Generating overall summary...")
    ctx.overall_summary = await aggregator.generate_overall_summary(
        ctx.video_data.title,
        ctx.video_data.duration,
        ctx.processed_segments,
        _llm_caller(ctx),
        language=ctx.language,
        verbose=ctx.verbose,
    )


def build_document(ctx: RunContext) -> SummaryDocument:
    video_id = ctx.platform_info.video_id
    return SummaryDocument(
        title=ctx.video_data.title,
        video_id=video_id,
        video_url=ctx.adapter.video_url(video_id),
        segments=ctx.processed_segments,
        overall_summary=ctx.overall_summary,
        duration=ctx.video_data.duration,
        platform=ctx.platform_info.platform.value,
        timestamp_url=lambda seconds: ctx.adapter.timestamp_url(video_id, seconds),
    )


async def generate_output(ctx: RunContext) -> None:
    print("  Step 5: Writing output...")
    doc = build_document(ctx)

    if ctx.style == "simple":
        ctx.markdown_content = generate_simple_summary(doc)
    elif ctx.style == "table":
        ctx.markdown_content = generate_table_summary(doc)
    else:
        ctx.markdown_content = generate_video_summary(doc)
    write_markdown(ctx.markdown_path, ctx.markdown_content)

    if ctx.obsidian is not None:
        try:
            ctx.obsidian_export_path = export_to_obsidian(doc, ctx.obsidian)
            print(f"    ✓ Exported to Obsidian: {ctx.obsidian_export_path}")
        except OSError as e:
            print(f"    Warning: Obsidian export failed: {e}")


async def token_summary(ctx: RunContext) -> None:
    print()
    print(ctx.token_monitor.report())
    ctx.token_monitor.print_efficiency_analysis()
    if ctx.save_token_files:
        ctx.token_files = write_token_files(ctx.video_output_dir or ctx.output_dir, ctx.token_monitor)


# ----------------------------
# Running
# ----------------------------

def build_stages(enable_token_monitoring: bool = True) -> List[Stage]:
    if not enable_token_monitoring:
        return [
            detect_video_platform,
            fetch_video_data,
            process_segments,
            generate_overall_summary,
            generate_output,
        ]
    return [
        reset_token_stats,
        detect_video_platform,
        fetch_video_data,
        process_segments,
        token_checkpoint,
        generate_overall_summary,
        token_checkpoint,
        generate_output,
        token_summary,
    ]


async def run_stages(ctx: RunContext, stages: List[Stage]) -> RunContext:
    """Apply stages in order; the first failure aborts the run."""
    for stage in stages:
        await stage(ctx)
    return ctx


async def run_video_summariser(url: str, **options) -> RunContext:
    """
    Summarise one video end to end.

    Args:
        url: YouTube or Bilibili URL (or a bare BV/AV id)
        **options: Any RunContext field, e.g. output_dir, language, obsidian

    Returns:
        The finished RunContext
    """
    ctx = RunContext(url=url, **options)
    print(f"Summarising video: {url}")
    await run_stages(ctx, build_stages(ctx.enable_token_monitoring))
    print(f"Done! Summary saved to {ctx.markdown_path}")
    return ctx
