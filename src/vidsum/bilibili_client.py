"""
Bilibili video metadata and subtitles over the public web API.
"""

import re
from typing import Any, Dict, List

import requests

from vidsum.models import VideoData, VideoPlatform
from vidsum.timing import normalize_captions

BILIBILI_VIEW_API = "https://api.bilibili.com/x/web-interface/view"
BILIBILI_SUBTITLE_API = "https://api.bilibili.com/x/player/v2"

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "Referer": "https://www.bilibili.com/",
}
REQUEST_TIMEOUT = 10

_BARE_BV_RE = re.compile(r"^BV[0-9A-Za-z]+$")
_BARE_AV_RE = re.compile(r"^AV\d+$", re.IGNORECASE)
_URL_BV_RE = re.compile(r"/video/(BV[0-9A-Za-z]+)")
_URL_AV_RE = re.compile(r"/video/(av\d+)", re.IGNORECASE)


class BilibiliClient:
    platform = VideoPlatform.BILIBILI

    def __init__(self, session: requests.Session = None, verbose: bool = False):
        self.session = session or requests.Session()
        self.session.headers.update(REQUEST_HEADERS)
        self.verbose = verbose

    def can_handle(self, url: str) -> bool:
        return (
            "bilibili.com" in url
            or "b23.tv" in url
            or bool(_BARE_BV_RE.match(url))
            or bool(_BARE_AV_RE.match(url))
        )

    def extract_video_id(self, url: str) -> str:
        """BV ids are returned as-is, AV ids upper-cased."""
        if _BARE_BV_RE.match(url):
            return url
        if _BARE_AV_RE.match(url):
            return url.upper()
        if "b23.tv" in url:
            raise ValueError("Bilibili short links (b23.tv) are not supported, use the full video URL or BV id")

        match = _URL_BV_RE.search(url)
        if match:
            return match.group(1)
        match = _URL_AV_RE.search(url)
        if match:
            return match.group(1).upper()

        raise ValueError(f"Invalid Bilibili URL: {url}")

    def video_url(self, video_id: str) -> str:
        return f"https://www.bilibili.com/video/{video_id}"

    def timestamp_url(self, video_id: str, seconds: float) -> str:
        return f"https://www.bilibili.com/video/{video_id}?t={int(seconds)}"

    # ----------------------------
    # Web API
    # ----------------------------

    def _get_json(self, url: str, params: Dict[str, Any] = None) -> Dict[str, Any]:
        response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    def get_video_info(self, video_id: str) -> Dict[str, Any]:
        if video_id.startswith("BV"):
            params = {"bvid": video_id}
        elif video_id.startswith("AV"):
            params = {"aid": video_id[2:]}
        else:
            raise ValueError(f"Unsupported Bilibili video id: {video_id}")

        payload = self._get_json(BILIBILI_VIEW_API, params)
        if payload.get("code") != 0:
            raise RuntimeError(f"Bilibili API error: {payload.get('message') or 'unknown error'}")

        data = payload.get("data") or {}
        pages = data.get("pages") or []
        if not pages:
            raise RuntimeError("Bilibili API returned no video pages")

        return {
            "title": data.get("title") or f"Bilibili video {video_id}",
            "duration": data.get("duration") or None,
            "bvid": data.get("bvid"),
            "aid": data.get("aid"),
            "cid": pages[0]["cid"],
            "uploader": (data.get("owner") or {}).get("name"),
            "tags": [tag.get("tag_name") for tag in data.get("tag") or []],
            "description": data.get("desc") or "",
        }

    def get_subtitle_records(self, aid: Any, cid: Any) -> List[Dict[str, Any]]:
        """
        Raw subtitle entries ({from, to, content}) of the first subtitle track.

        Videos without subtitles, and any failure along the way, give [].
        """
        try:
            payload = self._get_json(BILIBILI_SUBTITLE_API, {"aid": aid, "cid": cid})
            if payload.get("code") != 0:
                print(f"    Warning: could not list subtitles: {payload.get('message')}")
                return []

            tracks = ((payload.get("data") or {}).get("subtitle") or {}).get("subtitles") or []
            if not tracks:
                print("    Warning: video has no subtitles, falling back to time-based segments")
                return []

            track = tracks[0]
            if self.verbose:
                print(f"      Subtitle track: {track.get('lan_doc')} ({track.get('lan')})")

            url = track.get("subtitle_url") or ""
            if url.startswith("//"):
                url = "https:" + url
            content = self._get_json(url)
        except (requests.RequestException, ValueError) as e:
            print(f"    Warning: failed to fetch subtitles, continuing without them: {e}")
            return []

        body = content.get("body") if isinstance(content, dict) else None
        if not isinstance(body, list):
            print("    Warning: subtitle content is malformed, continuing without it")
            return []
        return body

    def get_video_data(self, video_id: str) -> VideoData:
        try:
            info = self.get_video_info(video_id)
        except Exception as e:
            raise RuntimeError(f"Failed to get Bilibili video data: {e}") from e

        records = self.get_subtitle_records(info["aid"], info["cid"])
        fragments = normalize_captions(records, info["duration"], verbose=self.verbose)

        print(f"    ✓ Bilibili video: {info['title']}")
        if self.verbose:
            print(f"      Uploader: {info['uploader']}")
            print(f"      Subtitle entries: {len(records)}, kept fragments: {len(fragments)}")

        return VideoData(
            title=info["title"],
            duration=info["duration"],
            fragments=fragments,
            metadata={
                "bvid": info["bvid"],
                "aid": str(info["aid"]),
                "cid": str(info["cid"]),
                "uploader": info["uploader"],
                "tags": info["tags"],
                "video_id": video_id,
            },
        )
