"""
Data structures shared across the pipeline.

Caption fragments come in from the platform adapters, segment groups are
produced by the segmenter, and processed segments / overall summaries come
back from the LLM stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class CaptionFragment:
    start: float  # seconds
    end: float
    text: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert CaptionFragment to a dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class SegmentGroup:
    start: float
    end: float
    text: str
    subtitle_count: int

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_placeholder(self) -> bool:
        """True for synthetic segments that carry no caption content."""
        return self.subtitle_count == 0


@dataclass(frozen=True)
class ProcessedSegment:
    start_time: float
    end_time: float
    original_text: str
    detailed_summary: str


@dataclass(frozen=True)
class OverallSummary:
    main_theme: str
    key_points: List[str]
    full_summary: str
    conclusion: str


@dataclass
class VideoData:
    title: str
    duration: Optional[float]
    fragments: List[CaptionFragment]
    metadata: Dict[str, Any] = field(default_factory=dict)


class VideoPlatform(str, Enum):
    YOUTUBE = "youtube"
    BILIBILI = "bilibili"


@dataclass(frozen=True)
class PlatformInfo:
    platform: VideoPlatform
    video_id: str
    original_url: str
