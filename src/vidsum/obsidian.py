"""
Obsidian vault export.

Notes get YAML front matter plus one of three body templates:
"standard", "minimal" or "timeline".
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from vidsum.markdown import SummaryDocument
from vidsum.timing import format_duration, format_timestamp

DEFAULT_FOLDER = "Video Notes"
DEFAULT_TAGS = ["video", "video-summary"]
TEMPLATES = ("standard", "minimal", "timeline")
MAX_NOTE_TITLE_LENGTH = 100
# Leaves room for " - YYYY-MM-DD.md" under the 255-byte name limit
MAX_NOTE_TITLE_BYTES = 200


@dataclass
class ObsidianConfig:
    vault_path: str
    folder_name: str = DEFAULT_FOLDER
    tags: List[str] = field(default_factory=lambda: list(DEFAULT_TAGS))
    template: str = "standard"


def _front_matter(doc: SummaryDocument, tags: List[str]) -> str:
    lines = [
        "---",
        # JSON strings are valid YAML scalars, so quotes in titles stay safe
        f"title: {json.dumps(doc.title, ensure_ascii=False)}",
        "type: video-summary",
        f"platform: {doc.platform}",
        f"video_id: {doc.video_id}",
        f"source: {doc.video_url}",
        f"created: {doc.generated_at.strftime('%Y-%m-%d')}",
    ]
    if doc.duration:
        seconds = int(doc.duration)
        lines.append(f"duration: {seconds // 60}:{seconds % 60:02d}")
    lines.append(f"tags: [{', '.join(tags)}]")
    lines.append("---")
    return "\n".join(lines) + "\n\n"


def _time_link(doc: SummaryDocument, seconds: float) -> str:
    return f"[⏯️]({doc.link_at(seconds)})"


def _standard_template(doc: SummaryDocument) -> str:
    overall = doc.overall_summary
    parts = [f"# {doc.title}\n\n", f"🔗 **[Watch video]({doc.video_url})**\n\n"]
    if doc.duration:
        parts.append(f"⏱️ **Duration**: {format_duration(doc.duration)}\n\n")

    parts.append("## 📝 Summary\n\n")
    parts.append(f"### Theme\n{overall.main_theme}\n\n")
    parts.append("### Key Points\n")
    parts.extend(f"- {point}\n" for point in overall.key_points)
    parts.append("\n")
    parts.append(f"### Full Summary\n{overall.full_summary}\n\n")
    if overall.conclusion:
        parts.append(f"### Conclusion\n{overall.conclusion}\n\n")

    if doc.segments:
        parts.append("## ⏰ Timeline\n\n")
        for segment in doc.segments:
            parts.append(f"### {format_timestamp(segment.start_time)} - {format_timestamp(segment.end_time)}\n")
            parts.append(f"{_time_link(doc, segment.start_time)}\n\n")
            parts.append(f"{segment.detailed_summary}\n\n")
            parts.append("---\n\n")
    return "".join(parts)


def _minimal_template(doc: SummaryDocument) -> str:
    overall = doc.overall_summary
    parts = [
        f"# {doc.title}\n\n",
        f"🔗 [Watch video]({doc.video_url})\n\n",
        f"## Summary\n{overall.full_summary}\n\n",
        "## Key Points\n",
    ]
    parts.extend(f"- {point}\n" for point in overall.key_points)
    parts.append("\n")
    return "".join(parts)


def _timeline_template(doc: SummaryDocument) -> str:
    parts = [
        f"# {doc.title}\n\n",
        f"🔗 [Watch video]({doc.video_url})\n\n",
        f"## Overview\n{doc.overall_summary.full_summary}\n\n",
        "## Timeline\n\n",
    ]
    for segment in doc.segments:
        parts.append(
            f"**{format_timestamp(segment.start_time)}** {_time_link(doc, segment.start_time)} "
            f"- {segment.detailed_summary}\n\n"
        )
    return "".join(parts)


_TEMPLATE_RENDERERS = {
    "standard": _standard_template,
    "minimal": _minimal_template,
    "timeline": _timeline_template,
}


def generate_obsidian_markdown(doc: SummaryDocument, config: ObsidianConfig) -> str:
    """Front matter followed by the configured template (unknown names use "standard")."""
    renderer = _TEMPLATE_RENDERERS.get(config.template, _standard_template)
    return _front_matter(doc, config.tags) + renderer(doc)


def note_file_name(doc: SummaryDocument) -> str:
    clean_title = re.sub(r'[<>:"/\\|?*]', "", doc.title)
    clean_title = re.sub(r"\s+", " ", clean_title).strip()[:MAX_NOTE_TITLE_LENGTH]
    clean_title = clean_title.encode("utf-8")[:MAX_NOTE_TITLE_BYTES].decode("utf-8", "ignore").strip()
    return f"{clean_title or doc.video_id} - {doc.generated_at.strftime('%Y-%m-%d')}.md"


def export_to_obsidian(doc: SummaryDocument, config: ObsidianConfig) -> str:
    """
    Write the note into ``<vault>/<folder_name>/`` and return its path.

    Raises:
        FileNotFoundError: the vault directory does not exist
    """
    if not os.path.isdir(config.vault_path):
        raise FileNotFoundError(f"Obsidian vault not found: {config.vault_path}")

    target_folder = os.path.join(config.vault_path, config.folder_name)
    os.makedirs(target_folder, exist_ok=True)

    file_path = os.path.join(target_folder, note_file_name(doc))
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(generate_obsidian_markdown(doc, config))
    return file_path


def validate_obsidian_vault(vault_path: str) -> bool:
    """A vault is a directory containing a .obsidian folder."""
    return os.path.isdir(os.path.join(vault_path, ".obsidian"))


def detect_obsidian_vaults(home: Optional[Path] = None) -> List[str]:
    home = home or Path.home()
    locations = [
        home / "Documents" / "Obsidian",
        home / "ObsidianVault",
        home / "Documents",
        home / "Desktop",
        home / "Library" / "Mobile Documents" / "iCloud~md~obsidian" / "Documents",
    ]

    vaults: List[str] = []
    for location in locations:
        if not location.is_dir():
            continue
        try:
            children = sorted(location.iterdir())
        except PermissionError:
            continue
        for child in children:
            if child.is_dir() and validate_obsidian_vault(str(child)):
                vaults.append(str(child))
    return vaults
