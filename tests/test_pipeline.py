"""End-to-end pipeline tests with fake platform and LLM."""

import asyncio
import os

import pytest

from vidsum import platforms, pipeline
from vidsum.models import CaptionFragment, VideoData, VideoPlatform
from vidsum.obsidian import ObsidianConfig
from vidsum.pipeline import RunContext, build_stages, run_stages, run_video_summariser
from vidsum.rate_limiter import RateLimiter

OVERALL_RESPONSE = "【主要主题】\nTraining models\n【关键要点】\n- Data\n- Loss\n【完整总结】\nAll about training.\n【核心结论】\nData wins."

URL = "https://www.youtube.com/watch?v=abc"


class FakeAdapter:
    platform = VideoPlatform.YOUTUBE

    def __init__(self, video_data):
        self.video_data = video_data
        self.requested = []

    def can_handle(self, url):
        return "youtube.com" in url

    def extract_video_id(self, url):
        return url.split("v=")[1]

    def get_video_data(self, video_id):
        self.requested.append(video_id)
        return self.video_data

    def video_url(self, video_id):
        return f"https://www.youtube.com/watch?v={video_id}"

    def timestamp_url(self, video_id, seconds):
        return f"https://www.youtube.com/watch?v={video_id}&t={int(seconds)}s"


class ScriptedLLM:
    def __init__(self, fail_with=None):
        self.prompts = []
        self.fail_with = fail_with

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.fail_with is not None:
            raise self.fail_with
        if "【主要主题】" in prompt:
            return OVERALL_RESPONSE
        return "A segment summary."


def install_adapter(monkeypatch, fragments, duration):
    adapter = FakeAdapter(VideoData(title="Training Models 101", duration=duration, fragments=fragments))
    monkeypatch.setitem(platforms._adapters, VideoPlatform.YOUTUBE, adapter)
    return adapter


def caption_fragments(count=10, seconds_each=60):
    return [
        CaptionFragment(i * seconds_each, (i + 1) * seconds_each, "machine learning models require training data")
        for i in range(count)
    ]


def test_build_stages():
    assert len(build_stages(True)) == 9
    stages = build_stages(False)
    assert pipeline.token_summary not in stages
    assert stages[0] is pipeline.detect_video_platform
    assert stages[-1] is pipeline.generate_output


def test_full_run_writes_markdown_and_exports(monkeypatch, tmp_path):
    adapter = install_adapter(monkeypatch, caption_fragments(), 600)
    vault = tmp_path / "vault"
    vault.mkdir()
    llm = ScriptedLLM()

    ctx = asyncio.run(
        run_video_summariser(
            URL,
            output_dir=str(tmp_path / "out"),
            llm_caller=llm,
            rate_limiter=RateLimiter(3, 0),
            save_token_files=True,
            obsidian=ObsidianConfig(vault_path=str(vault)),
        )
    )

    assert adapter.requested == ["abc"]
    assert len(ctx.segments) == 1
    assert len(ctx.processed_segments) == 1
    assert len(llm.prompts) == 2
    assert ctx.overall_summary.main_theme == "Training models"

    assert os.path.isfile(ctx.markdown_path)
    with open(ctx.markdown_path, encoding="utf-8") as f:
        content = f.read()
    assert "# Training Models 101" in content
    assert "A segment summary." in content
    assert "https://www.youtube.com/watch?v=abc&t=0s" in content

    assert ctx.obsidian_export_path and os.path.isfile(ctx.obsidian_export_path)
    assert os.path.isfile(ctx.token_files["report_path"])


def test_run_without_captions_uses_title_only_summary(monkeypatch, tmp_path):
    install_adapter(monkeypatch, [], None)
    llm = ScriptedLLM()

    ctx = asyncio.run(
        run_video_summariser(
            URL,
            output_dir=str(tmp_path),
            llm_caller=llm,
            rate_limiter=RateLimiter(3, 0),
            enable_token_monitoring=False,
            style="simple",
        )
    )

    assert ctx.segments == []
    assert ctx.processed_segments == []
    assert len(llm.prompts) == 1
    assert "No caption or transcript content" in llm.prompts[0]
    assert ctx.overall_summary.key_points == ["Data", "Loss"]
    assert os.path.isfile(ctx.markdown_path)


def test_llm_failure_aborts_before_output(monkeypatch, tmp_path):
    install_adapter(monkeypatch, caption_fragments(), 600)
    ctx = RunContext(
        url=URL,
        output_dir=str(tmp_path),
        llm_caller=ScriptedLLM(fail_with=PermissionError("invalid api key")),
        rate_limiter=RateLimiter(3, 0),
    )

    with pytest.raises(PermissionError):
        asyncio.run(run_stages(ctx, build_stages(True)))
    assert ctx.overall_summary is None
    assert not os.path.exists(ctx.markdown_path)


def test_obsidian_failure_is_not_fatal(monkeypatch, tmp_path, capsys):
    install_adapter(monkeypatch, caption_fragments(3), 180)
    ctx = asyncio.run(
        run_video_summariser(
            URL,
            output_dir=str(tmp_path),
            llm_caller=ScriptedLLM(),
            rate_limiter=RateLimiter(3, 0),
            obsidian=ObsidianConfig(vault_path=str(tmp_path / "missing")),
        )
    )
    assert ctx.obsidian_export_path is None
    assert os.path.isfile(ctx.markdown_path)
    assert "Obsidian export failed" in capsys.readouterr().out


def test_time_based_segmentation_with_table_output(monkeypatch, tmp_path):
    install_adapter(monkeypatch, caption_fragments(10, 60), 600)
    llm = ScriptedLLM()

    ctx = asyncio.run(
        run_video_summariser(
            URL,
            output_dir=str(tmp_path),
            segment_minutes_min=2,
            segment_minutes_max=2,
            segmentation="time",
            style="table",
            llm_caller=llm,
            rate_limiter=RateLimiter(3, 0),
            enable_token_monitoring=False,
        )
    )

    assert [s.start for s in ctx.segments] == [0, 120, 240, 360, 480]
    assert len(llm.prompts) == 6
    assert "| Time | Summary |" in ctx.markdown_content
    assert "| 2:00 - 4:00 | A segment summary. |" in ctx.markdown_content
