"""
Output files: folder layout, markdown and token reports.
"""

import os
import re
from datetime import datetime
from typing import Dict, Optional

from vidsum.token_monitor import TokenMonitor

# Bytes; most file systems cap a name at 255 bytes, not characters
MAX_FILE_NAME_BYTES = 255
MARKDOWN_SUFFIX = "_summary.md"
MAX_THEME_LENGTH = 30
MIN_THEME_LENGTH = 5
MIN_FOLDER_NAME_LENGTH = 3

_ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Title decorations stripped before picking a folder name
_THEME_STRIP_PATTERNS = [
    re.compile(r"【.*?】"),
    re.compile(r"\[.*?\]"),
    re.compile(r"\(.*?\)"),
    re.compile(r"第\d+期"),
    re.compile(r"S\d+E\d+", re.IGNORECASE),
    re.compile(r"EP\d+", re.IGNORECASE),
    re.compile(r"\d{4}年\d{1,2}月\d{1,2}日"),
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}"),
    re.compile(r"\d{1,2}:\d{2}:\d{2}"),
]
_SEPARATOR_RE = re.compile(r"[|｜：:，,]")


def sanitize_file_name(name: str, reserved_bytes: int = 0) -> str:
    """
    Replace characters illegal on Windows/macOS (and path separators) with '_'.

    The result is cut to fit in MAX_FILE_NAME_BYTES of UTF-8 together with
    reserved_bytes (room for a suffix the caller appends), never splitting
    a multi-byte character.
    """
    result = name.replace("..", "_")
    result = _ILLEGAL_CHARS_RE.sub("_", result).strip()
    limit = max(MAX_FILE_NAME_BYTES - reserved_bytes, 0)
    return result.encode("utf-8")[:limit].decode("utf-8", "ignore").strip()


def extract_video_theme(title: str) -> str:
    """Short folder-friendly theme from a video title (at most 30 characters)."""
    theme = title
    for pattern in _THEME_STRIP_PATTERNS:
        theme = pattern.sub("", theme)
    theme = _SEPARATOR_RE.sub(" ", theme)
    theme = re.sub(r"\s+", " ", theme).strip()

    if len(theme) < MIN_THEME_LENGTH:
        theme = title

    if len(theme) > MAX_THEME_LENGTH:
        words = theme[:MAX_THEME_LENGTH].split(" ")
        if len(words) > 1:
            # Drop the word that was cut in half
            theme = " ".join(words[:-1])
        else:
            theme = theme[:MAX_THEME_LENGTH]

    return theme.strip()


def create_output_structure(base_dir: str, title: str, video_id: Optional[str] = None) -> Dict[str, str]:
    """
    Create ``<base_dir>/<theme>/`` and return its path plus the markdown path.

    Returns:
        Dict with "output_dir" and "markdown_path"
    """
    folder_name = sanitize_file_name(extract_video_theme(title))
    if len(folder_name) < MIN_FOLDER_NAME_LENGTH:
        folder_name = video_id or "video"

    output_dir = os.path.join(base_dir, folder_name)
    os.makedirs(output_dir, exist_ok=True)

    file_stem = sanitize_file_name(title, reserved_bytes=len(MARKDOWN_SUFFIX.encode("utf-8")))
    return {
        "output_dir": output_dir,
        "markdown_path": os.path.join(output_dir, file_stem + MARKDOWN_SUFFIX),
    }


def write_markdown(path: str, content: str) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    print(f"Markdown saved to {path}")
    return path


def write_token_files(output_dir: str, monitor: TokenMonitor, now: Optional[datetime] = None) -> Dict[str, str]:
    """Write token-report-<stamp>.txt and token-data-<stamp>.json into output_dir."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    os.makedirs(output_dir, exist_ok=True)

    report_path = os.path.join(output_dir, f"token-report-{stamp}.txt")
    data_path = os.path.join(output_dir, f"token-data-{stamp}.json")

    with open(report_path, "w", encoding="utf-8") as f:
        f.write(monitor.report())
    with open(data_path, "w", encoding="utf-8") as f:
        f.write(monitor.export_json())

    print(f"Token report saved to {report_path}")
    return {"report_path": report_path, "data_path": data_path}
