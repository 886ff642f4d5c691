from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

import httpx

from songbird.log import logger

YOUTUBE_VIDEOS_API = "https://www.googleapis.com/youtube/v3/videos"

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")
_ISO_DURATION = re.compile(r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$")


def extract_youtube_video_id(url: str) -> str | None:
    if not url:
        return None
    parsed = urlparse(url)
    host = (parsed.hostname or "").removeprefix("www.").removeprefix("m.")

    candidate: str | None = None
    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host.endswith("youtube.com"):
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        else:
            parts = parsed.path.strip("/").split("/")
            if len(parts) >= 2 and parts[0] in ("embed", "shorts", "v", "live"):
                candidate = parts[1]

    if candidate and _VIDEO_ID.match(candidate):
        return candidate
    return None


def get_youtube_embed_link(url: str) -> str:
    video_id = extract_youtube_video_id(url)
    return f"https://www.youtube.com/embed/{video_id}" if video_id else ""


def parse_iso8601_duration(duration: str) -> int:
    match = _ISO_DURATION.match(duration)
    if not match:
        raise ValueError(f"Invalid ISO 8601 duration: {duration}")
    parts = {k: int(v) if v else 0 for k, v in match.groupdict().items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


class YoutubeClient:
    def __init__(self, api_key: str | None, client: httpx.AsyncClient | None = None):
        self.api_key = api_key
        self.client = client or httpx.AsyncClient()

    async def fetch_duration(self, video_id: str) -> int:
        """Return the video length in seconds."""
        if not self.api_key:
            raise ValueError("YouTube API key is not configured")

        response = await self.client.get(
            YOUTUBE_VIDEOS_API,
            params={"part": "contentDetails", "id": video_id, "key": self.api_key},
        )
        response.raise_for_status()
        items = response.json().get("items") or []
        if not items:
            raise ValueError(f"YouTube video not found: {video_id}")

        duration = parse_iso8601_duration(items[0]["contentDetails"]["duration"])
        logger.info(f"YouTube video {video_id} is {duration} seconds long")
        return duration

    async def close(self) -> None:
        await self.client.aclose()
