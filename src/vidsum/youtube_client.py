import re
from typing import Any, Dict, List, Optional

from pytube import YouTube
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from vidsum.config import transcript_languages
from vidsum.models import VideoData, VideoPlatform
from vidsum.timing import normalize_captions

YOUTUBE_HANDLE_PATTERNS = [
    re.compile(r"youtube\.com/watch\?v="),
    re.compile(r"youtu\.be/"),
    re.compile(r"youtube\.com/embed/"),
    re.compile(r"youtube\.com/v/"),
    re.compile(r"youtube\.com/watch\?.*&v="),
]

YOUTUBE_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
    re.compile(r"youtube\.com/watch\?.*&v=([^&\n?#]+)"),
]


class YoutubeClient:
    platform = VideoPlatform.YOUTUBE

    def __init__(self, languages: Optional[List[str]] = None, verbose: bool = False):
        self.client = YouTubeTranscriptApi()
        self.languages = languages or transcript_languages()
        self.verbose = verbose

    def can_handle(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in YOUTUBE_HANDLE_PATTERNS)

    def extract_video_id(self, url: str) -> str:
        for pattern in YOUTUBE_ID_PATTERNS:
            match = pattern.search(url)
            if match and match.group(1):
                return match.group(1)
        raise ValueError(f"Invalid YouTube URL: {url}")

    def video_url(self, video_id: str) -> str:
        return f"https://www.youtube.com/watch?v={video_id}"

    def timestamp_url(self, video_id: str, seconds: float) -> str:
        return f"https://www.youtube.com/watch?v={video_id}&t={int(seconds)}s"

    def get_transcript(self, video_id: str) -> List[Dict[str, Any]]:
        """
        Raw caption records ({text, start, duration}) in the first available
        preferred language. Videos without retrievable captions give [].
        """
        try:
            transcript = self.client.fetch(video_id, languages=self.languages)
        except CouldNotRetrieveTranscript as e:
            print(f"    Warning: no captions available for {video_id}: {type(e).__name__}")
            return []
        return transcript.to_raw_data()

    def get_video_metadata(self, video_id: str) -> Dict[str, Any]:
        """
        Get video metadata using pytube.
        Returns: title, channel, duration (seconds or None), URL
        """
        url = self.video_url(video_id)
        try:
            yt = YouTube(url)
            return {
                "title": yt.title,
                "channel": yt.author,
                "duration": yt.length,  # in seconds
                "url": url,
            }
        except Exception as e:
            # pytube breaks whenever YouTube changes its page layout
            print(f"    Warning: could not read video metadata ({e}), using defaults")
            return {
                "title": f"Video {video_id}",
                "channel": None,
                "duration": None,
                "url": url,
            }

    def get_video_data(self, video_id: str) -> VideoData:
        try:
            metadata = self.get_video_metadata(video_id)
            records = self.get_transcript(video_id)
        except Exception as e:
            raise RuntimeError(f"Failed to get YouTube video data: {e}") from e

        duration = metadata["duration"] or None
        fragments = normalize_captions(records, duration, verbose=self.verbose)

        print(f"    ✓ YouTube video: {metadata['title']}")
        if self.verbose:
            print(f"      Caption records: {len(records)}, kept fragments: {len(fragments)}")

        return VideoData(
            title=metadata["title"],
            duration=duration,
            fragments=fragments,
            metadata={"channel": metadata["channel"], "url": metadata["url"], "video_id": video_id},
        )
