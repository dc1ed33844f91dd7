from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import httpx

from agent.core import intents
from agent.core.guardrail import check_topic, off_topic_message
from agent.core.memory import ContextRecord, SessionMemory
from agent.core.prompt import build_fallback_prompt, build_summary_prompt
from agent.tools.gemini import GeminiClient, wrap_text
from agent.tools.youtube_catalog import (
    CatalogAPIError,
    CatalogConfigError,
    CatalogError,
    VideoRecord,
    YouTubeCatalog,
    extract_guests,
    filter_videos,
    rank_by_views,
)
from config.settings import Settings, get_settings


logger = logging.getLogger(__name__)

POPULAR_LIMIT = 6
LISTING_LIMIT = 6
MIN_DESCRIPTION_CHARS = 20

NO_CONTEXT_MESSAGE = (
    "I don’t have an episode to talk about yet. Ask “What is the latest episode?”, "
    "“Show me the most popular videos”, “Any videos about robotics?” or "
    "“Who are the guests?” first, then ask what it was about."
)
MISSING_CATALOG_MESSAGE = (
    "Backend missing YT_API_KEY or YT_CHANNEL_ID. "
    "Open /api/debug/youtube to see what’s missing."
)
MISSING_GEMINI_MESSAGE = "Backend missing GEMINI_API_KEY. Add it to the environment then redeploy."
SHORT_DESCRIPTION_MESSAGE = "This video’s description is too short to summarize accurately."


@dataclass
class AgentReply:
    body: Dict[str, Any]
    status_code: int = 200
    intent: str = ""


class Route(NamedTuple):
    name: str
    match: Callable[[str], Any]
    handle: Callable[[Any, str, str], Optional[AgentReply]]


def _text_reply(text: str) -> AgentReply:
    return AgentReply(body=wrap_text(text))


def _format_views(video: VideoRecord) -> str:
    if video.view_count is None:
        return ""
    return f" ({video.view_count:,} views)"


def format_listing(videos: List[VideoRecord], with_views: bool = False) -> str:
    lines = []
    for idx, video in enumerate(videos, start=1):
        views = _format_views(video) if with_views else ""
        lines.append(f"{idx}. {video.title}{views}\n   {video.link}")
    return "\n".join(lines)


class ShowAgent:
    """Routes a prompt to the first matching intent handler.

    Routes are tried in a fixed order and the first predicate that matches
    wins. A handler may return ``None`` to decline (an index that does not
    resolve), in which case the remaining routes are tried; the last route
    always answers.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: YouTubeCatalog,
        gemini: GeminiClient,
        memory: SessionMemory,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.gemini = gemini
        self.memory = memory
        self.routes: List[Route] = [
            Route("latest", intents.is_latest_episode_question, self._latest),
            Route("popular", intents.is_popular_question, self._popular),
            Route("topic", intents.extract_topic, self._topic),
            Route("person", intents.extract_person, self._person),
            Route("guest_list", intents.is_guest_list_question, self._guest_list),
            Route("guests_by_topic", intents.extract_guest_topic, self._guests_by_topic),
            Route("has_appeared", intents.extract_appearance_name, self._has_appeared),
            Route("about", intents.is_about_question, self._about),
            Route("indexed", intents.index_reference, self._indexed),
            Route("fallback", lambda text: True, self._fallback),
        ]

    def classify(self, prompt: str) -> str:
        """Name of the first route whose predicate matches."""
        text = intents.normalize_prompt(prompt)
        for route in self.routes:
            if route.match(text):
                return route.name
        return "fallback"

    def respond(self, prompt: str, session_id: str) -> AgentReply:
        if self.settings.guardrails_enabled:
            decision = check_topic(prompt)
            if decision.reason == "blocked":
                logger.info("Guardrail blocked prompt: session=%s term=%r", session_id, decision.term)
                return self._guarded()

        text = intents.normalize_prompt(prompt)
        for route in self.routes:
            match = route.match(text)
            if not match:
                continue
            reply = route.handle(match, prompt, session_id)
            if reply is None:
                logger.info("Route %s declined: session=%s", route.name, session_id)
                continue
            reply.intent = reply.intent or route.name
            return reply
        raise RuntimeError("No route answered the prompt")

    # -- helpers --------------------------------------------------------

    def _guarded(self) -> AgentReply:
        return AgentReply(
            body={"guarded": True, "message": off_topic_message(self.settings.show_name)},
            intent="guarded",
        )

    def _catalog_failure(self, exc: CatalogError, what: str) -> AgentReply:
        if isinstance(exc, CatalogConfigError):
            return _text_reply(MISSING_CATALOG_MESSAGE)
        logger.warning("Catalog fetch failed for %s: %s", what, exc)
        if isinstance(exc, CatalogAPIError):
            return _text_reply(f"Couldn’t fetch {what}. {exc}")
        return _text_reply(f"Couldn’t fetch {what} right now.")

    def _recent(self) -> List[VideoRecord]:
        return self.catalog.recent_videos(self.settings.recent_video_count)

    def _remember(self, session_id: str, mode: str, videos: List[VideoRecord], query: Optional[str] = None) -> None:
        self.memory.set(session_id, ContextRecord(mode=mode, videos=videos, query=query))

    def _summarize(self, video: VideoRecord) -> AgentReply:
        if not self.gemini.configured:
            return _text_reply(MISSING_GEMINI_MESSAGE)
        description = (video.description or "").strip()
        if len(description) < MIN_DESCRIPTION_CHARS:
            return _text_reply(f"{SHORT_DESCRIPTION_MESSAGE}\n\n• Title: {video.title}\n• Watch: {video.link}")
        reply = self.gemini.generate(
            build_summary_prompt(video.title, video.published, video.link, description)
        )
        return AgentReply(body=reply.body, status_code=reply.status_code)

    # -- route handlers ---------------------------------------------------

    def _latest(self, match: Any, prompt: str, session_id: str) -> AgentReply:
        try:
            latest = self.catalog.latest_video()
        except CatalogError as exc:
            return self._catalog_failure(exc, "latest episode")

        self._remember(session_id, "latest", [latest])
        return _text_reply(
            f"🎙️ Latest {self.settings.show_name} episode:\n\n"
            f"• Title: {latest.title}\n"
            f"• Published: {latest.published}\n"
            f"• Watch: {latest.link}\n\n"
            "Ask: “What was this episode about?”"
        )

    def _popular(self, match: Any, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "popular videos")

        top = rank_by_views(videos, POPULAR_LIMIT)
        self._remember(session_id, "popular", top, prompt)
        return _text_reply(
            f"🔥 Most-viewed of the last {len(videos)} uploads:\n\n"
            f"{format_listing(top, with_views=True)}\n\n"
            "Ask: “Summarize #2” to hear about one of them."
        )

    def _topic(self, topic: str, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "videos")

        matches = filter_videos(videos, topic)[:LISTING_LIMIT]
        if not matches:
            return _text_reply(
                f"I couldn’t find any of the last {len(videos)} videos about “{topic}”. "
                "Try a broader topic."
            )
        self._remember(session_id, "topic", matches, topic)
        return _text_reply(
            f"🔎 Videos about “{topic}”:\n\n{format_listing(matches)}\n\n"
            "Ask: “Summarize #1” for a quick recap."
        )

    def _person(self, name: str, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "videos")

        matches = filter_videos(videos, name)[:LISTING_LIMIT]
        if not matches:
            return _text_reply(
                f"I couldn’t find {name.title()} in the last {len(videos)} videos."
            )
        self._remember(session_id, "person", matches, name)
        return _text_reply(
            f"🎤 Videos with {name.title()}:\n\n{format_listing(matches)}\n\n"
            "Ask: “Summarize #1” for a quick recap."
        )

    def _guest_list(self, match: Any, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "guests")
        return self._answer_guests(videos, session_id, prompt, f"the last {len(videos)} uploads")

    def _guests_by_topic(self, topic: str, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "guests")

        matches = filter_videos(videos, topic)
        if not matches:
            return _text_reply(
                f"I couldn’t find any of the last {len(videos)} videos about “{topic}”."
            )
        return self._answer_guests(matches, session_id, topic, f"videos about “{topic}”")

    def _answer_guests(self, videos: List[VideoRecord], session_id: str, query: str, scope: str) -> AgentReply:
        guests = extract_guests(videos)
        if not guests:
            return _text_reply(
                f"I couldn’t pick out guest names from {scope}. "
                "Guest names are read from video titles and descriptions."
            )

        mentioned = {video_id for guest in guests for video_id in guest.video_ids}
        episodes = [video for video in videos if video.video_id in mentioned][:LISTING_LIMIT]
        self._remember(session_id, "guests", episodes, query)

        names = "\n".join(
            f"• {guest.name}" + (f" ({guest.count} videos)" if guest.count > 1 else "")
            for guest in guests[:10]
        )
        return _text_reply(
            f"👥 Guests from {scope}:\n\n{names}\n\n"
            f"Episodes:\n{format_listing(episodes)}"
        )

    def _has_appeared(self, name: str, prompt: str, session_id: str) -> AgentReply:
        try:
            videos = self._recent()
        except CatalogError as exc:
            return self._catalog_failure(exc, "videos")

        matches = filter_videos(videos, name)[:LISTING_LIMIT]
        if not matches:
            return _text_reply(
                f"I couldn’t find {name.title()} in the last {len(videos)} uploads."
            )
        self._remember(session_id, "person", matches, name)
        count = "once" if len(matches) == 1 else f"in {len(matches)} videos"
        return _text_reply(
            f"Yes! {name.title()} shows up {count}:\n\n{format_listing(matches)}"
        )

    def _about(self, match: Any, prompt: str, session_id: str) -> AgentReply:
        context = self.memory.get(session_id)
        if context is None or not context.videos:
            return _text_reply(NO_CONTEXT_MESSAGE)
        if context.mode == "latest" or len(context.videos) == 1:
            return self._summarize(context.videos[0])
        return _text_reply(
            f"Which one?\n\n{format_listing(context.videos)}\n\n"
            "Ask: “Summarize #2” (or any number from the list)."
        )

    def _indexed(self, index: int, prompt: str, session_id: str) -> Optional[AgentReply]:
        context = self.memory.get(session_id)
        if context is None:
            return None
        video = context.pick(index)
        if video is None:
            return None
        return self._summarize(video)

    def _fallback(self, match: Any, prompt: str, session_id: str) -> AgentReply:
        if self.settings.guardrails_enabled and not check_topic(prompt).allowed:
            logger.info("Guardrail refused unrecognized prompt: session=%s", session_id)
            return self._guarded()
        if not self.gemini.configured:
            return _text_reply(MISSING_GEMINI_MESSAGE)
        reply = self.gemini.generate(build_fallback_prompt(prompt, self.settings.show_name))
        return AgentReply(body=reply.body, status_code=reply.status_code)


def build_agent(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
    memory: Optional[SessionMemory] = None,
) -> ShowAgent:
    settings = settings or get_settings()
    return ShowAgent(
        settings=settings,
        catalog=YouTubeCatalog(settings, transport=transport),
        gemini=GeminiClient(settings, transport=transport),
        memory=memory or SessionMemory(settings.max_sessions),
    )
