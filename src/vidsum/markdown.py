"""
Markdown rendering for finished summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from vidsum.models import OverallSummary, ProcessedSegment
from vidsum.timing import format_duration, format_timestamp


@dataclass
class SummaryDocument:
    """Everything the renderers need about one summarised video."""

    title: str
    video_id: str
    video_url: str
    segments: List[ProcessedSegment]
    overall_summary: OverallSummary
    duration: Optional[float] = None
    platform: str = "youtube"
    generated_at: datetime = field(default_factory=datetime.now)
    # seconds -> deep link; defaults to "<video_url>&t=<s>s"
    timestamp_url: Optional[Callable[[float], str]] = None

    def link_at(self, seconds: float) -> str:
        if self.timestamp_url is not None:
            return self.timestamp_url(seconds)
        separator = "&" if "?" in self.video_url else "?"
        return f"{self.video_url}{separator}t={int(seconds)}s"


def _time_range(segment: ProcessedSegment) -> str:
    return f"{format_timestamp(segment.start_time)} - {format_timestamp(segment.end_time)}"


def _numbered(items: List[str]) -> str:
    return "".join(f"{i}. {item}\n" for i, item in enumerate(items, start=1))


def generate_video_summary(doc: SummaryDocument) -> str:
    """Full report: header, overall summary, contents and per-segment sections."""
    overall = doc.overall_summary
    parts = [
        f"# {doc.title}\n\n",
        f"**Video link**: [{doc.video_url}]({doc.video_url})\n\n",
        f"**Video ID**: `{doc.video_id}`\n\n",
        f"**Generated**: {doc.generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n\n",
    ]
    if doc.duration:
        parts.append(f"**Duration**: {format_duration(doc.duration)}\n\n")
    parts.append(f"**Segments**: {len(doc.segments)}\n\n")

    parts.append("## 🎯 Summary\n\n")
    parts.append(f"### Theme\n{overall.main_theme}\n\n")
    parts.append(f"### Key Points\n{_numbered(overall.key_points)}\n")
    parts.append(f"### Full Summary\n{overall.full_summary}\n\n")
    parts.append(f"### Conclusion\n{overall.conclusion}\n\n")

    if doc.segments:
        parts.append("## 📋 Contents\n\n")
        for i, segment in enumerate(doc.segments, start=1):
            parts.append(f"{i}. [{_time_range(segment)}](#segment-{i})\n")
        parts.append("\n")

        parts.append("## 📝 Segment Summaries\n\n")
        for i, segment in enumerate(doc.segments, start=1):
            parts.append(f"### Segment {i}\n\n")
            parts.append(f"**Time**: [{_time_range(segment)}]({doc.link_at(segment.start_time)})\n\n")
            parts.append(f"**Summary**:\n\n{segment.detailed_summary}\n\n")
            parts.append("---\n\n")

    return "".join(parts)


def generate_simple_summary(doc: SummaryDocument) -> str:
    overall = doc.overall_summary
    parts = [
        f"# {doc.title}\n\n",
        f"[Watch the video]({doc.video_url})\n\n",
        f"## Summary\n{overall.full_summary}\n\n",
        f"## Key Points\n{_numbered(overall.key_points)}\n",
    ]
    if doc.segments:
        parts.append("## Segments\n\n")
        for i, segment in enumerate(doc.segments, start=1):
            parts.append(f"### {i}. [{_time_range(segment)}]({doc.link_at(segment.start_time)})\n\n")
            parts.append(f"{segment.detailed_summary}\n\n")
    return "".join(parts)


def generate_summary_table(segments: List[ProcessedSegment]) -> str:
    """Two-column table; newlines and pipes in summaries are escaped."""
    lines = ["| Time | Summary |", "|------|---------|"]
    for segment in segments:
        summary = segment.detailed_summary.replace("\n", " ").replace("|", "\\|").strip()
        lines.append(f"| {_time_range(segment)} | {summary} |")
    return "\n".join(lines) + "\n"



def generate_table_summary(doc: SummaryDocument) -> str:
    """Compact report: overall summary followed by a time/summary table."""
    overall = doc.overall_summary
    parts = [
        f"# {doc.title}\n\n",
        f"[Watch the video]({doc.video_url})\n\n",
        f"## Summary\n{overall.full_summary}\n\n",
        f"## Key Points\n{_numbered(overall.key_points)}\n",
    ]
    if doc.segments:
        parts.append("## Segments\n\n")
        parts.append(generate_summary_table(doc.segments))
    return "".join(parts)
