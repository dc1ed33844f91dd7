from __future__ import annotations

from langchain_core.prompts import PromptTemplate


SYSTEM_PROMPT = (
    "You are the website assistant for {show_name}, a show about artificial "
    "intelligence, its tools and the people building them.\n"
    "Answer briefly and in plain language. Stay on the show and AI topics. "
    "If you do not know something about a specific episode, say so instead of guessing, "
    "and suggest asking for the latest episode or the most popular videos."
)

FALLBACK_TEMPLATE = PromptTemplate.from_template(
    SYSTEM_PROMPT + "\n\nUser question: {prompt}"
)

SUMMARY_TEMPLATE = PromptTemplate.from_template(
    "You are summarizing a YouTube episode.\n"
    "Use ONLY the description below. Do NOT add facts.\n"
    "If something isn’t in the description, say “Not specified in the description.”\n"
    "\n"
    "Title: {title}\n"
    "Published: {published}\n"
    "Link: {link}\n"
    "\n"
    "Description:\n"
    "{description}\n"
    "\n"
    "Return:\n"
    "1) 3–5 sentence summary\n"
    "2) 3 bullet key takeaways"
)


def build_fallback_prompt(prompt: str, show_name: str) -> str:
    return FALLBACK_TEMPLATE.format(prompt=prompt, show_name=show_name)


def build_summary_prompt(title: str, published: str, link: str, description: str) -> str:
    return SUMMARY_TEMPLATE.format(
        title=title, published=published, link=link, description=description
    )
