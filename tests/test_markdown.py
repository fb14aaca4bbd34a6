"""Tests for markdown rendering."""

from datetime import datetime

import pytest

from vidsum.markdown import (
    SummaryDocument,
    generate_simple_summary,
    generate_summary_table,
    generate_table_summary,
    generate_video_summary,
)


@pytest.fixture
def doc(processed_segments, overall_summary):
    return SummaryDocument(
        title="How Models Learn",
        video_id="abc",
        video_url="https://www.youtube.com/watch?v=abc",
        segments=processed_segments,
        overall_summary=overall_summary,
        duration=620,
        generated_at=datetime(2024, 5, 1, 12, 30, 0),
    )


def test_full_summary_layout(doc):
    markdown = generate_video_summary(doc)
    assert markdown.startswith("# How Models Learn\n")
    assert "**Duration**: 10m 20s" in markdown
    assert "**Generated**: 2024-05-01 12:30:00" in markdown
    assert "1. Data matters\n2. Evaluation matters\n" in markdown
    assert "1. [0:00 - 5:00](#segment-1)" in markdown
    assert "[5:00 - 10:20](https://www.youtube.com/watch?v=abc&t=300s)" in markdown
    assert markdown.index("## 🎯 Summary") < markdown.index("## 📝 Segment Summaries")


def test_custom_timestamp_links(doc):
    doc.timestamp_url = lambda seconds: f"https://example.com/v?t={int(seconds)}"
    assert "(https://example.com/v?t=300)" in generate_video_summary(doc)


def test_link_without_query_string(doc):
    doc.video_url = "https://www.bilibili.com/video/BV1"
    assert doc.link_at(61.7) == "https://www.bilibili.com/video/BV1?t=61s"


def test_no_segments_omits_segment_sections(doc):
    doc.segments = []
    markdown = generate_video_summary(doc)
    assert "Segment Summaries" not in markdown
    assert "**Segments**: 0" in markdown


def test_simple_summary(doc):
    markdown = generate_simple_summary(doc)
    assert "[Watch the video](https://www.youtube.com/watch?v=abc)" in markdown
    assert "### 2. [5:00 - 10:20]" in markdown
    assert "## Full Summary" not in markdown


def test_summary_table_escapes_pipes(processed_segments):
    table = generate_summary_table(processed_segments)
    lines = table.strip().split("\n")
    assert lines[0] == "| Time | Summary |"
    assert len(lines) == 4
    assert "training data \\| pipeline" in lines[3]



def test_table_summary(doc):
    markdown = generate_table_summary(doc)
    assert markdown.startswith(f"# {doc.title}\n")
    assert "## Key Points\n1. " in markdown
    assert "| Time | Summary |" in markdown
    assert "| 5:00 - 10:20 |" in markdown
