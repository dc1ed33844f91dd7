from __future__ import annotations

import re
from typing import NamedTuple, Optional


OFF_TOPIC_MESSAGE = (
    "I can only help with questions about {show_name}: its episodes, guests "
    "and the AI topics covered on the show. Try “What is the latest episode?” "
    "or “Show me the most popular videos.”"
)

# Substring matches against the padded, lowercased prompt. A leading space
# anchors an entry to the start of a word; a trailing one to its end.
BLOCKLIST = (
    " homework",
    " assignment",
    " essay",
    " exam answers",
    " medical",
    " diagnos",
    " symptom",
    " prescription",
    " legal advice",
    " lawyer",
    " lawsuit",
    " tax ",
    " investment advice",
    " stock tip",
    " gambling",
    " betting",
    " lottery",
    " dating advice",
    " weapon",
    " election",
)

ALLOWLIST = (
    "episode",
    "episde",
    "video",
    "upload",
    "show",
    "podcast",
    "arun",
    "guest",
    "interview",
    "channel",
    "youtube",
    "subscribe",
    " ai ",
    "artificial intelligence",
    "machine learning",
    "deep learning",
    "neural",
    "llm",
    "chatgpt",
    "gpt",
    "gemini",
    "openai",
    "prompt",
    "automation",
    "robot",
    "agent",
    "tech",
    "summar",
    "recap",
    "latest",
    "newest",
    "popular",
    "#",
)

_PUNCT = re.compile(r"[^\w#]+")


class GuardrailDecision(NamedTuple):
    allowed: bool
    reason: str
    term: Optional[str] = None


def normalize(prompt: str) -> str:
    collapsed = " ".join(_PUNCT.sub(" ", (prompt or "").lower()).split())
    return f" {collapsed} "


def blocked_term(prompt: str) -> Optional[str]:
    text = normalize(prompt)
    for term in BLOCKLIST:
        if term in text:
            return term
    return None


def allowed_term(prompt: str) -> Optional[str]:
    text = normalize(prompt)
    for term in ALLOWLIST:
        if term in text:
            return term
    return None


def check_topic(prompt: str) -> GuardrailDecision:
    """Blocklist first, then allowlist; anything unmatched is refused."""
    term = blocked_term(prompt)
    if term:
        return GuardrailDecision(False, "blocked", term.strip())
    term = allowed_term(prompt)
    if term:
        return GuardrailDecision(True, "allowed", term.strip())
    return GuardrailDecision(False, "unrecognized")


def off_topic_message(show_name: str) -> str:
    return OFF_TOPIC_MESSAGE.format(show_name=show_name)
