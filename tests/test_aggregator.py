"""Tests for the overall summary aggregator."""

import asyncio

from vidsum.aggregator import build_overall_prompt, generate_overall_summary, parse_overall_summary
from vidsum.prompts import (
    DEFAULT_CONCLUSION,
    DEFAULT_FULL_SUMMARY,
    DEFAULT_KEY_POINT,
    DEFAULT_MAIN_THEME,
)

from conftest import FakeLLM

FULL_RESPONSE = """【主要主题】
How neural networks learn

【关键要点】
- Data quality matters
- Loss functions guide training
-

【完整总结】
The video explains training.
It covers loss functions and data.

【核心结论】
Training is iterative.
Good data is essential.
"""


def test_parse_complete_response():
    summary = parse_overall_summary(FULL_RESPONSE)
    assert summary.main_theme == "How neural networks learn"
    assert summary.key_points == ["Data quality matters", "Loss functions guide training"]
    assert summary.full_summary == "The video explains training. It covers loss functions and data."
    assert summary.conclusion == "Good data is essential."


def test_missing_conclusion_falls_back_to_default():
    response = FULL_RESPONSE.split("【核心结论】")[0]
    summary = parse_overall_summary(response)
    assert summary.conclusion == DEFAULT_CONCLUSION
    assert summary.main_theme == "How neural networks learn"
    assert len(summary.key_points) == 2


def test_headers_matched_by_substring():
    response = "## 【主要主题】:\nTheme here\n**【关键要点】**\n- one\n"
    summary = parse_overall_summary(response)
    assert summary.main_theme == "Theme here"
    assert summary.key_points == ["one"]


def test_malformed_response_gives_defaults():
    for response in ["", "no structure at all\n- not a point"]:
        summary = parse_overall_summary(response)
        assert summary.main_theme == DEFAULT_MAIN_THEME
        assert summary.key_points == [DEFAULT_KEY_POINT]
        assert summary.full_summary == DEFAULT_FULL_SUMMARY
        assert summary.conclusion == DEFAULT_CONCLUSION


def test_overall_prompt_embeds_segments(processed_segments):
    prompt = build_overall_prompt("Talk", 620, processed_segments, language="English")
    assert "Talk" in prompt
    assert "10m 20s" in prompt
    assert "Segment 1 (0:00 - 5:00): The speaker introduces the topic." in prompt
    assert "【核心结论】" in prompt


def test_generate_uses_title_only_prompt_without_segments():
    llm = FakeLLM(responses=[FULL_RESPONSE])
    summary = asyncio.run(generate_overall_summary("Mystery Video", None, [], llm, language="English"))
    assert summary.main_theme == "How neural networks learn"
    assert len(llm.prompts) == 1
    assert "No caption or transcript content" in llm.prompts[0]
    assert "Mystery Video" in llm.prompts[0]


def test_generate_with_segments(processed_segments):
    llm = FakeLLM(responses=["garbage"])
    summary = asyncio.run(generate_overall_summary("Talk", 620, processed_segments, llm))
    assert summary.key_points == [DEFAULT_KEY_POINT]
    assert "Segment 2 (5:00 - 10:20)" in llm.prompts[0]
