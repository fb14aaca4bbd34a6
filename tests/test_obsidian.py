"""Tests for Obsidian export."""

import os
from datetime import datetime

import pytest

from vidsum.markdown import SummaryDocument
from vidsum.obsidian import (
    ObsidianConfig,
    detect_obsidian_vaults,
    export_to_obsidian,
    generate_obsidian_markdown,
    note_file_name,
    validate_obsidian_vault,
)


@pytest.fixture
def doc(processed_segments, overall_summary):
    return SummaryDocument(
        title='Models "Explained": Part 1',
        video_id="BV1xx411c7mD",
        video_url="https://www.bilibili.com/video/BV1xx411c7mD",
        segments=processed_segments,
        overall_summary=overall_summary,
        duration=620,
        platform="bilibili",
        generated_at=datetime(2024, 5, 1, 9, 0, 0),
    )


def test_front_matter(doc, tmp_path):
    markdown = generate_obsidian_markdown(doc, ObsidianConfig(vault_path=str(tmp_path), tags=["ml", "notes"]))
    front, _, body = markdown.partition("---\n\n")
    assert front.startswith("---\n")
    assert 'title: "Models \\"Explained\\": Part 1"' in front
    assert "platform: bilibili" in front
    assert "created: 2024-05-01" in front
    assert "duration: 10:20" in front
    assert "tags: [ml, notes]" in front
    assert body.startswith("# Models")


def test_standard_template_has_timeline_links(doc, tmp_path):
    markdown = generate_obsidian_markdown(doc, ObsidianConfig(vault_path=str(tmp_path)))
    assert "### Key Points\n- Data matters\n- Evaluation matters\n" in markdown
    assert "[⏯️](https://www.bilibili.com/video/BV1xx411c7mD?t=300s)" in markdown


def test_minimal_template_has_no_segments(doc, tmp_path):
    markdown = generate_obsidian_markdown(doc, ObsidianConfig(vault_path=str(tmp_path), template="minimal"))
    assert "Timeline" not in markdown
    assert "- Data matters" in markdown


def test_timeline_template(doc, tmp_path):
    markdown = generate_obsidian_markdown(doc, ObsidianConfig(vault_path=str(tmp_path), template="timeline"))
    assert "## Overview" in markdown
    assert "**5:00** [⏯️]" in markdown


def test_note_file_name_strips_illegal_characters(doc):
    assert note_file_name(doc) == "Models Explained Part 1 - 2024-05-01.md"


def test_export_writes_into_folder(doc, tmp_path):
    path = export_to_obsidian(doc, ObsidianConfig(vault_path=str(tmp_path), folder_name="Videos"))
    assert os.path.dirname(path) == os.path.join(str(tmp_path), "Videos")
    with open(path, encoding="utf-8") as f:
        assert f.read().startswith("---\n")


def test_export_requires_existing_vault(doc, tmp_path):
    with pytest.raises(FileNotFoundError):
        export_to_obsidian(doc, ObsidianConfig(vault_path=str(tmp_path / "missing")))


def test_vault_validation_and_detection(tmp_path):
    vault = tmp_path / "Documents" / "Obsidian" / "Main"
    (vault / ".obsidian").mkdir(parents=True)
    (tmp_path / "Documents" / "Obsidian" / "NotAVault").mkdir()

    assert validate_obsidian_vault(str(vault))
    assert not validate_obsidian_vault(str(tmp_path))
    assert detect_obsidian_vaults(home=tmp_path) == [str(vault)]


def test_note_file_name_fits_byte_limit(doc):
    doc.title = "中" * 100
    name = note_file_name(doc)
    assert name.endswith(" - 2024-05-01.md")
    assert len(name.encode("utf-8")) <= 255
