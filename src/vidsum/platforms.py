"""
Platform registry: maps each VideoPlatform to the adapter that serves it.

Adapters share one informal interface: ``can_handle``, ``extract_video_id``,
``get_video_data``, ``timestamp_url`` and ``video_url``.
"""

from typing import Dict, List

from vidsum.bilibili_client import BilibiliClient
from vidsum.models import PlatformInfo, VideoPlatform
from vidsum.youtube_client import YoutubeClient


class UnsupportedPlatformError(ValueError):
    """No registered adapter recognises the URL."""


SUPPORTED_URL_HINT = (
    "Supported platforms:\n"
    "- YouTube: youtube.com, youtu.be\n"
    "- Bilibili: bilibili.com, BV/AV ids"
)

# Checked in insertion order
_ADAPTER_FACTORIES = {
    VideoPlatform.YOUTUBE: YoutubeClient,
    VideoPlatform.BILIBILI: BilibiliClient,
}
_adapters: Dict[VideoPlatform, object] = {}


def get_adapter(platform, verbose: bool = False):
    """Return the (lazily created) adapter for a platform enum or name."""
    try:
        platform = VideoPlatform(platform)
    except ValueError:
        raise UnsupportedPlatformError(f"No adapter found for platform: {platform}") from None

    adapter = _adapters.get(platform)
    if adapter is None:
        adapter = _ADAPTER_FACTORIES[platform]()
        _adapters[platform] = adapter
    adapter.verbose = verbose
    return adapter


def _find_adapter(url: str):
    for platform in _ADAPTER_FACTORIES:
        adapter = get_adapter(platform)
        if adapter.can_handle(url):
            return adapter
    raise UnsupportedPlatformError(f"Unsupported platform for URL: {url}\n{SUPPORTED_URL_HINT}")


def detect_platform(url: str) -> PlatformInfo:
    """
    Identify the platform and video id of a URL.

    Raises:
        UnsupportedPlatformError: no adapter recognises the URL
        ValueError: the URL looks like a known platform but has no usable id
    """
    url = url.strip()
    adapter = _find_adapter(url)
    return PlatformInfo(platform=adapter.platform, video_id=adapter.extract_video_id(url), original_url=url)


def is_platform_supported(url: str) -> bool:
    try:
        _find_adapter(url.strip())
    except UnsupportedPlatformError:
        return False
    return True


def supported_platforms() -> List[str]:
    return [platform.value for platform in _ADAPTER_FACTORIES]
