"""Keyword and regex predicates used by the prompt router.

Every function here takes the output of :func:`normalize_prompt` and returns
either a boolean or the extracted value (``None`` when there is no match), so
each intent can be tested on its own.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional


RECENCY_WORDS = (
    "latest",
    "newest",
    "most recent",
    "recent episode",
    "last",
    "new video",
    "new episode",
)
MEDIA_WORDS = ("episode", "episde", "video", "upload", "show", "podcast")

POPULAR_PHRASES = (
    "most popular",
    "popular videos",
    "popular episodes",
    "top videos",
    "top episodes",
    "most viewed",
    "most watched",
    "most views",
    "best videos",
    "best episodes",
    "highest viewed",
    "trending",
)

TOPIC_CUES = (
    "videos about",
    "videos on",
    "videos related to",
    "videos regarding",
    "videos around",
    "episodes about",
    "episodes on",
    "episodes related to",
    "episodes regarding",
    "content about",
    "content on",
    "anything about",
    "anything on",
)

PERSON_CUES = (
    "videos with",
    "video with",
    "episodes with",
    "episode with",
    "interview with",
    "interviews with",
    "featuring",
    "feat",
    "ft.",
    "ft ",
    "guest",
)

GUEST_LIST_PHRASES = (
    "who are the guests",
    "who were the guests",
    "who are your guests",
    "who have been the guests",
    "guest list",
    "list of guests",
    "list the guests",
    "all the guests",
    "all guests",
    "past guests",
    "recent guests",
    "previous guests",
)

ABOUT_PHRASES = (
    "what was this episode about",
    "what is this episode about",
    "what was it about",
    "what is it about",
    "what's it about",
    "what was that about",
    "what is that about",
    "tell me about this episode",
    "tell me more",
    "summarize it",
    "summarise it",
    "summarize this",
    "summarize that",
    "sum it up",
    "summary",
    "recap",
)

FILLER_WORDS = {
    "a", "an", "the", "this", "that", "these", "those", "it", "its", "your",
    "my", "our", "me", "you", "us", "them", "him", "her", "one", "some", "any",
    "show", "podcast", "channel", "episode", "episodes", "video", "videos",
    "upload", "uploads", "latest", "newest", "recent", "last", "please",
}

TWO_WORD_EXCLUDED = FILLER_WORDS | {
    "popular", "top", "new", "best", "all", "more", "other", "what", "which",
    "guest", "guests", "recommended", "favorite", "favourite", "most", "good",
}

_TOPIC_CUE_RE = re.compile(r"\b(?:about|on|related to|regarding|around)\s+")
_TWO_WORD_RE = re.compile(
    r"^(?:(?:any|find|list|show me|give me|got|are there(?: any)?|do you have(?: any)?)\s+)?"
    r"([a-z][a-z0-9+\-]*)\s+(?:videos|episodes)\b"
)
_PERSON_RE = re.compile(r"\b(?:with|featuring|feat\.?|ft\.?|guest(?:ed)?)\s+(.+)$")
_GUESTS_RE = re.compile(r"\bguests?\b")
_APPEARANCE_RES = (
    re.compile(r"\bhas\s+(.+?)\s+(?:ever\s+)?(?:been|appeared|come on|joined|featured|guested)\b"),
    re.compile(
        r"\b(?:was|is)\s+(.+?)\s+(?:ever\s+)?(?:on|in)\s+(?:the|your|this|an?)\s+"
        r"(?:show|podcast|channel|episode|video)\b"
    ),
    re.compile(r"\bdid\s+(.+?)\s+(?:ever\s+)?(?:appear|come on|join|guest|feature)\b"),
    re.compile(r"\bhave you\s+(?:ever\s+)?(?:had|interviewed|featured|hosted)\s+(.+?)(?:\s+on\b.*)?$"),
)
_INDEX_RES = (
    re.compile(r"#\s*(\d+)\b"),
    re.compile(r"\b(?:number|no\.)\s*(\d+)\b"),
    re.compile(
        r"\b(?:summarize|summarise|summary of|recap|tell me about|about|video|episode)\s+(\d+)\b"
    ),
)
_TRAILING_FILLER_RE = re.compile(
    r"(?:\s+(?:on|in|from)\s+(?:the|your|this)\s+(?:show|podcast|channel)"
    r"|\s+(?:videos?|episodes?|please|lately|recently))$"
)
_EDGE_PUNCT = " \t?!.,;:\"'“”‘’()"
_NAME_WORD_RE = re.compile(r"^[a-z][a-z.'\-]*$")


def normalize_prompt(prompt: str) -> str:
    return " ".join((prompt or "").lower().split())


def _has_any(text: str, words: Iterable[str]) -> bool:
    return any(word in text for word in words)


def _strip_trailing_filler(phrase: str) -> str:
    previous = None
    while previous != phrase:
        previous = phrase
        phrase = _TRAILING_FILLER_RE.sub("", phrase).strip(_EDGE_PUNCT)
    return phrase


def _has_index_reference(text: str) -> bool:
    return index_reference(text) is not None


def clean_phrase(phrase: str) -> Optional[str]:
    """Trim punctuation and filler; ``None`` if nothing meaningful is left."""
    phrase = _strip_trailing_filler(phrase.strip(_EDGE_PUNCT))
    if not phrase or _has_index_reference(phrase) or "#" in phrase:
        return None
    words = phrase.split()
    while words and words[0] in {"a", "an", "the"}:
        words = words[1:]
    if not words or all(word in FILLER_WORDS for word in words):
        return None
    return " ".join(words)


def is_latest_episode_question(text: str) -> bool:
    return _has_any(text, RECENCY_WORDS) and _has_any(text, MEDIA_WORDS)


def is_popular_question(text: str) -> bool:
    return _has_any(text, POPULAR_PHRASES)


def extract_topic_phrase(text: str) -> Optional[str]:
    """Phrase after the last usable about/on/related to/regarding/around."""
    for match in reversed(list(_TOPIC_CUE_RE.finditer(text))):
        topic = clean_phrase(text[match.end():])
        if topic:
            return topic
    return None


def extract_topic(text: str) -> Optional[str]:
    if _has_any(text, TOPIC_CUES) or _has_any(text, MEDIA_WORDS):
        topic = extract_topic_phrase(text)
        if topic:
            return topic
    match = _TWO_WORD_RE.search(text)
    if match and match.group(1) not in TWO_WORD_EXCLUDED:
        return match.group(1)
    return None


def clean_name(name: str) -> Optional[str]:
    name = _strip_trailing_filler(name.strip(_EDGE_PUNCT))
    words = name.split()
    if not words or len(words) > 4:
        return None
    if words[0] in FILLER_WORDS or words[0] in {"list", "lists", "of", "on", "in", "from", "about", "to"}:
        return None
    if not all(_NAME_WORD_RE.match(word) for word in words):
        return None
    return " ".join(words)


def extract_person(text: str) -> Optional[str]:
    if not _has_any(text, PERSON_CUES):
        return None
    match = _PERSON_RE.search(text)
    if not match:
        return None
    return clean_name(match.group(1))


def is_guest_list_question(text: str) -> bool:
    return _has_any(text, GUEST_LIST_PHRASES)


def extract_guest_topic(text: str) -> Optional[str]:
    if not _GUESTS_RE.search(text):
        return None
    return extract_topic_phrase(text)


def extract_appearance_name(text: str) -> Optional[str]:
    for pattern in _APPEARANCE_RES:
        match = pattern.search(text)
        if match:
            name = clean_name(match.group(1))
            if name:
                return name
    return None


def index_reference(text: str) -> Optional[int]:
    for pattern in _INDEX_RES:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def is_about_question(text: str) -> bool:
    return _has_any(text, ABOUT_PHRASES) and not _has_index_reference(text)
