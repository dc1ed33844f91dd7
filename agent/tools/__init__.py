from agent.tools.gemini import GeminiClient, GeminiConfigError, GeminiReply, wrap_text
from agent.tools.youtube_catalog import (
    CatalogAPIError,
    CatalogConfigError,
    CatalogEmptyError,
    CatalogError,
    GuestMention,
    VideoRecord,
    YouTubeCatalog,
)

__all__ = [
    "CatalogAPIError",
    "CatalogConfigError",
    "CatalogEmptyError",
    "CatalogError",
    "GeminiClient",
    "GeminiConfigError",
    "GeminiReply",
    "GuestMention",
    "VideoRecord",
    "YouTubeCatalog",
    "wrap_text",
]
