"""Shared fixtures and test doubles."""

import pytest

from vidsum import config, rate_limiter
from vidsum.models import OverallSummary, ProcessedSegment


class FakeLLM:
    """Async prompt -> text double that records every prompt."""

    def __init__(self, responses=None, default="summary text"):
        self.responses = list(responses or [])
        self.default = default
        self.prompts = []

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, BaseException):
                raise response
            return response
        return self.default


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def no_backoff(monkeypatch):
    """Make retry backoff instantaneous."""
    monkeypatch.setattr(rate_limiter, "_backoff_delay", lambda attempt: 0)


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point the global config file at a temporary directory."""
    config_dir = tmp_path / ".video-summary"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_FILE", config_dir / "config.json")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return config_dir


@pytest.fixture
def processed_segments():
    return [
        ProcessedSegment(0, 300, "intro text", "The speaker introduces the topic."),
        ProcessedSegment(300, 620, "main text", "Details about the training data | pipeline."),
    ]


@pytest.fixture
def overall_summary():
    return OverallSummary(
        main_theme="How models learn",
        key_points=["Data matters", "Evaluation matters"],
        full_summary="A walk through model training.",
        conclusion="Good data beats clever tricks.",
    )
