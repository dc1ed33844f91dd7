from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel

from config.settings import Settings


logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"

ATOM = "{http://www.w3.org/2005/Atom}"
YT = "{http://www.youtube.com/xml/schemas/2015}"
MEDIA = "{http://search.yahoo.com/mrss/}"


class VideoRecord(BaseModel):
    video_id: str
    title: str = ""
    published: str = ""
    description: str = ""
    view_count: Optional[int] = None
    link: str = ""
    thumbnail: Optional[str] = None

    def searchable_text(self) -> str:
        return f"{self.title}\n{self.description}"


class GuestMention(BaseModel):
    name: str
    count: int
    video_ids: List[str]


class CatalogError(RuntimeError):
    """Base class for video catalog failures."""


class CatalogConfigError(CatalogError):
    """The channel id (or every usable credential) is missing."""


class CatalogAPIError(CatalogError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogEmptyError(CatalogError):
    """The catalog answered but returned no videos."""


def _watch_link(video_id: Optional[str]) -> str:
    return WATCH_URL.format(video_id=video_id) if video_id else ""


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _best_thumbnail(snippet: Dict[str, Any]) -> Optional[str]:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return url
    return None


def _api_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = (data.get("error") or {}).get("message")
        if message:
            return message
    return (
        f"YouTube API error {response.status_code}. "
        "Check API enabled + quota + key restrictions."
    )


def video_from_search_item(item: Dict[str, Any]) -> VideoRecord:
    snippet = item.get("snippet") or {}
    video_id = (item.get("id") or {}).get("videoId") or ""
    return VideoRecord(
        video_id=video_id,
        title=snippet.get("title") or "",
        published=snippet.get("publishedAt") or "",
        description=snippet.get("description") or "",
        link=_watch_link(video_id),
        thumbnail=_best_thumbnail(snippet),
    )


def video_from_videos_item(item: Dict[str, Any]) -> VideoRecord:
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    video_id = item.get("id") or ""
    return VideoRecord(
        video_id=video_id,
        title=snippet.get("title") or "",
        published=snippet.get("publishedAt") or "",
        description=snippet.get("description") or "",
        view_count=_to_int(stats.get("viewCount")),
        link=_watch_link(video_id),
        thumbnail=_best_thumbnail(snippet),
    )


def _text(el: ET.Element, *tags: str) -> str:
    for tag in tags:
        child = el.find(tag)
        if child is not None and child.text:
            return child.text.strip()
    return ""


def parse_feed(raw: bytes | str, max_items: int = 15) -> List[VideoRecord]:
    """Parse a channel's Atom feed into video records.

    Raises ``CatalogAPIError`` when the payload is not XML.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise CatalogAPIError(f"Video feed could not be parsed: {exc}") from exc

    videos: List[VideoRecord] = []
    for entry in root.findall(f"{ATOM}entry")[:max_items]:
        video_id = _text(entry, f"{YT}videoId")
        if not video_id:
            entry_id = _text(entry, f"{ATOM}id")
            video_id = entry_id.rsplit(":", 1)[-1] if entry_id else ""
        link_el = entry.find(f"{ATOM}link")
        link = link_el.get("href", "") if link_el is not None else ""

        group = entry.find(f"{MEDIA}group")
        description = ""
        thumbnail = None
        views = None
        if group is not None:
            description = _text(group, f"{MEDIA}description")
            thumb_el = group.find(f"{MEDIA}thumbnail")
            if thumb_el is not None:
                thumbnail = thumb_el.get("url")
            stats_el = group.find(f"{MEDIA}community/{MEDIA}statistics")
            if stats_el is not None:
                views = _to_int(stats_el.get("views"))

        videos.append(
            VideoRecord(
                video_id=video_id,
                title=_text(entry, f"{ATOM}title"),
                published=_text(entry, f"{ATOM}published", f"{ATOM}updated"),
                description=description,
                view_count=views,
                link=link or _watch_link(video_id),
                thumbnail=thumbnail or (THUMBNAIL_URL.format(video_id=video_id) if video_id else None),
            )
        )
    return videos


def rank_by_views(videos: Iterable[VideoRecord], limit: Optional[int] = None) -> List[VideoRecord]:
    """Most viewed first.

    Only ranks what it is given (the recent uploads), so "most popular" means
    most viewed among the last N videos. ``sorted`` is stable, so equal view
    counts keep catalog order; missing counts rank as zero.
    """
    ranked = sorted(videos, key=lambda v: v.view_count or 0, reverse=True)
    return ranked if limit is None else ranked[:limit]


def _normalize(text: str) -> str:
    return " ".join((text or "").lower().split())


def filter_videos(videos: Iterable[VideoRecord], term: str) -> List[VideoRecord]:
    """Plain substring match of ``term`` against title + description."""
    needle = _normalize(term)
    return [v for v in videos if needle in _normalize(v.searchable_text())]


# Guest extraction is a heuristic, not entity recognition. It only sees runs of
# two or more Capitalised words after a cue, so single names ("Drake") and
# lowercase names are missed, and capitalised phrases ("with Machine Learning
# Experts") are collected as if they were people.
_NAME = r"([A-Z][a-zA-Z'\.-]+(?:[ \t]+[A-Z][a-zA-Z'\.-]+)+)"
GUEST_PATTERNS = [
    re.compile(r"\b[Ww]ith\s+" + _NAME),
    re.compile(r"\b(?:ft\.?|feat\.?|featuring)\s+" + _NAME),
    re.compile(r"[—–|]\s*" + _NAME),
    re.compile(r"\s-\s+" + _NAME),
    re.compile(r"\b[Gg]uests?:?\s+" + _NAME),
]
_TRAILING_NOISE = re.compile(r"[\s\.'-]+$")


def extract_names(text: str) -> List[str]:
    names: List[str] = []
    for pattern in GUEST_PATTERNS:
        for match in pattern.finditer(text or ""):
            name = _TRAILING_NOISE.sub("", match.group(1))
            if len(name.split()) >= 2 and name not in names:
                names.append(name)
    return names


def extract_guests(videos: Iterable[VideoRecord]) -> List[GuestMention]:
    """Guest names ranked by how many videos mention them, then first seen."""
    found: Dict[str, GuestMention] = {}
    for video in videos:
        for name in extract_names(video.searchable_text()):
            mention = found.get(name)
            if mention is None:
                found[name] = GuestMention(name=name, count=1, video_ids=[video.video_id])
            elif video.video_id not in mention.video_ids:
                mention.count += 1
                mention.video_ids.append(video.video_id)
    return sorted(found.values(), key=lambda m: -m.count)


class YouTubeCatalog:
    """Read-only access to one channel's uploads."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.settings.http_timeout, transport=self._transport)

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.settings.youtube_api_url}/{path}"
        params = {**params, "key": self.settings.youtube_api_key}
        try:
            with self._client() as client:
                response = client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise CatalogAPIError(f"YouTube API call failed: {exc}") from exc
        if response.status_code >= 400:
            logger.warning("YouTube %s returned %s", path, response.status_code)
            raise CatalogAPIError(_api_error_message(response), status=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogAPIError("YouTube API returned invalid JSON") from exc

    def _require_channel(self) -> str:
        if not self.settings.channel_id:
            raise CatalogConfigError("YT_CHANNEL_ID is not configured")
        return self.settings.channel_id

    def latest_video(self) -> VideoRecord:
        channel_id = self._require_channel()
        if not self.settings.youtube_api_key:
            return self.feed_videos(limit=1)[0]

        data = self._get_json(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "order": "date",
                "maxResults": 1,
                "type": "video",
            },
        )
        items = data.get("items") or []
        if not items:
            raise CatalogEmptyError("No videos found for this channel")
        return video_from_search_item(items[0])

    def recent_videos(self, count: Optional[int] = None) -> List[VideoRecord]:
        """The ``count`` newest uploads with view statistics, newest first."""
        channel_id = self._require_channel()
        count = max(1, min(count or self.settings.recent_video_count, 50))
        if not self.settings.youtube_api_key:
            return self.feed_videos(limit=count)

        search = self._get_json(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "order": "date",
                "maxResults": count,
                "type": "video",
            },
        )
        ids = [
            (item.get("id") or {}).get("videoId")
            for item in search.get("items") or []
        ]
        ids = [video_id for video_id in ids if video_id]
        if not ids:
            raise CatalogEmptyError("No videos found for this channel")

        details = self._get_json(
            "videos",
            {"part": "snippet,statistics", "id": ",".join(ids), "maxResults": len(ids)},
        )
        by_id = {item.get("id"): video_from_videos_item(item) for item in details.get("items") or []}
        # videos.list does not promise the requested order
        videos = [by_id[video_id] for video_id in ids if video_id in by_id]
        if not videos:
            raise CatalogEmptyError("No video details returned")
        logger.info("Fetched %s recent videos for channel", len(videos))
        return videos

    def feed_videos(self, limit: int = 6) -> List[VideoRecord]:
        channel_id = self._require_channel()
        try:
            with self._client() as client:
                response = client.get(
                    self.settings.youtube_feed_url,
                    params={"channel_id": channel_id},
                    headers={"Accept": "application/atom+xml, application/xml, text/xml, */*"},
                )
        except httpx.HTTPError as exc:
            raise CatalogAPIError(f"Video feed request failed: {exc}") from exc
        if response.status_code >= 400:
            logger.warning("Video feed returned %s", response.status_code)
            raise CatalogAPIError(
                f"Video feed error {response.status_code}", status=response.status_code
            )
        videos = parse_feed(response.content, max_items=limit)
        if not videos:
            raise CatalogEmptyError("The channel feed has no videos")
        return videos
