"""Shared fixtures: a fake YouTube/Gemini upstream and a wired test client."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from agent.agent import build_agent
from app.main import app, get_agent
from config.settings import Settings


CHANNEL_ID = "UCshow123"

# Newest first, the way search.list(order=date) returns them
VIDEOS = [
    {
        "id": "vid00000001",
        "title": "Robots in the Kitchen with Jane Doe",
        "description": "We talk Robotics and home automation with Jane Doe, founder of a kitchen robot startup.",
        "published": "2024-06-01T10:00:00Z",
        "views": "1200",
    },
    {
        "id": "vid00000002",
        "title": "Prompt Engineering Deep Dive ft. Sam Altman",
        "description": "A long conversation about prompting large language models in practice.",
        "published": "2024-05-25T10:00:00Z",
        "views": "5400",
    },
    {
        "id": "vid00000003",
        "title": "Machine learning basics",
        "description": "An introduction to machine learning for complete beginners.",
        "published": "2024-05-18T10:00:00Z",
        "views": "5400",
    },
    {
        "id": "vid00000004",
        "title": "Weekly AI news — John Smith",
        "description": "Short recap",
        "published": "2024-05-11T10:00:00Z",
        "views": "300",
    },
    {
        "id": "vid00000005",
        "title": "Agents in production with Jane Doe",
        "description": "Jane Doe returns to talk about AI agents in production systems.",
        "published": "2024-05-04T10:00:00Z",
        "views": "900",
    },
    {
        "id": "vid00000006",
        "title": "Ask me anything",
        "description": "Listener questions answered live on the show.",
        "published": "2024-04-27T10:00:00Z",
        "views": None,
    },
    {
        "id": "vid00000007",
        "title": "Vision models explained",
        "description": "Computer vision from pixels to transformers, explained step by step.",
        "published": "2024-04-20T10:00:00Z",
        "views": "7000",
    },
]

FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015"
      xmlns:media="http://search.yahoo.com/mrss/"
      xmlns="http://www.w3.org/2005/Atom">
  <title>AI With Arun Show</title>
  <entry>
    <id>yt:video:feed0000001</id>
    <yt:videoId>feed0000001</yt:videoId>
    <title>Feed episode one with Jane Doe</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v=feed0000001"/>
    <published>2024-06-02T09:00:00+00:00</published>
    <media:group>
      <media:title>Feed episode one with Jane Doe</media:title>
      <media:thumbnail url="https://i1.ytimg.com/vi/feed0000001/hqdefault.jpg" width="480" height="360"/>
      <media:description>Robotics at home, explained by Jane Doe.</media:description>
      <media:community>
        <media:statistics views="4321"/>
      </media:community>
    </media:group>
  </entry>
  <entry>
    <id>yt:video:feed0000002</id>
    <yt:videoId>feed0000002</yt:videoId>
    <title>Feed episode two</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v=feed0000002"/>
    <published>2024-05-26T09:00:00+00:00</published>
  </entry>
</feed>
"""

GEMINI_OK = {
    "candidates": [
        {
            "content": {"parts": [{"text": "Here is a short summary."}], "role": "model"},
            "finishReason": "STOP",
        }
    ],
    "modelVersion": "gemini-2.5-flash",
}


def make_settings(**overrides):
    env = {
        "GEMINI_API_KEY": "gem-key-000",
        "YT_API_KEY": "yt-key-12345",
        "YT_CHANNEL_ID": CHANNEL_ID,
    }
    env.update(overrides)
    return Settings(environ={k: v for k, v in env.items() if v is not None})


def _snippet(video):
    return {
        "title": video["title"],
        "description": video["description"],
        "publishedAt": video["published"],
        "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video['id']}/hqdefault.jpg"}},
    }


class FakeUpstream:
    """Answers outbound httpx calls with canned catalog and Gemini data."""

    def __init__(self):
        self.requests = []
        self.videos = list(VIDEOS)
        self.youtube_status = 200
        self.youtube_error = {"error": {"code": 403, "message": "The request cannot be completed because you have exceeded your quota."}}
        self.gemini_status = 200
        self.gemini_body = GEMINI_OK
        self.feed_xml = FEED_XML

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def handler(self, request):
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "generativelanguage.googleapis.com":
            return httpx.Response(self.gemini_status, json=self.gemini_body)

        if host == "www.googleapis.com":
            if self.youtube_status != 200:
                return httpx.Response(self.youtube_status, json=self.youtube_error)
            if path.endswith("/search"):
                limit = int(request.url.params.get("maxResults", "5"))
                items = [
                    {"id": {"kind": "youtube#video", "videoId": v["id"]}, "snippet": _snippet(v)}
                    for v in self.videos[:limit]
                ]
                return httpx.Response(200, json={"items": items})
            if path.endswith("/videos"):
                wanted = request.url.params.get("id", "").split(",")
                by_id = {v["id"]: v for v in self.videos}
                items = []
                # deliberately reversed: callers must restore search order
                for video_id in reversed(wanted):
                    video = by_id[video_id]
                    stats = {"likeCount": "10"}
                    if video["views"] is not None:
                        stats["viewCount"] = video["views"]
                    items.append({"id": video_id, "snippet": _snippet(video), "statistics": stats})
                return httpx.Response(200, json={"items": items})

        if host == "www.youtube.com" and path == "/feeds/videos.xml":
            return httpx.Response(
                200, content=self.feed_xml.encode(), headers={"Content-Type": "application/atom+xml"}
            )

        return httpx.Response(404, json={"error": {"message": "not found"}})

    def calls_to(self, host):
        return [r for r in self.requests if r.url.host == host]

    @property
    def gemini_calls(self):
        return self.calls_to("generativelanguage.googleapis.com")

    @property
    def youtube_calls(self):
        return self.calls_to("www.googleapis.com")

    def gemini_prompt(self, index=-1):
        body = json.loads(self.gemini_calls[index].content)
        return body["contents"][0]["parts"][0]["text"]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def agent(settings, upstream):
    return build_agent(settings, transport=upstream.transport)


@pytest.fixture
def client(agent):
    app.dependency_overrides[get_agent] = lambda: agent
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def reply_text(body):
    return body["candidates"][0]["content"]["parts"][0]["text"]
