from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from agent.agent import ShowAgent, build_agent
from agent.tools.youtube_catalog import CatalogConfigError, CatalogEmptyError, CatalogError
from config.settings import get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("showbot")

STATIC_DIR = Path(__file__).parent / "static"
FEED_LIMIT = 6


@asynccontextmanager
async def lifespan(app: FastAPI):
    current = get_settings()
    logger.info(
        "BOOT ENV CHECK: hasGemini=%s hasYT=%s hasChan=%s guardrails=%s ytEnvKeysPresent=%s",
        bool(current.gemini_api_key),
        bool(current.youtube_api_key),
        bool(current.channel_id),
        current.guardrails_enabled,
        [k for k in os.environ if "YT" in k.upper()],
    )
    yield


app = FastAPI(title="AI With Arun Show Chat Relay", version="1.0.0", lifespan=lifespan)

# The widget is embedded on the show's website, which lives on another origin
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Session-Id"],
)


class ChatRequest(BaseModel):
    prompt: str = Field("", description="User's latest message")
    client_id: Optional[str] = Field(
        None, description="Unique identifier for user/session (kept by the widget)"
    )


@lru_cache(maxsize=1)
def get_agent() -> ShowAgent:
    return build_agent()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


def resolve_session_id(req: ChatRequest, request: Request) -> str:
    if req.client_id and req.client_id.strip():
        return req.client_id.strip()
    header = request.headers.get("x-session-id")
    if header and header.strip():
        return header.strip()
    return request.client.host if request.client else "anonymous"


@app.post("/api/gemini")
def chat(req: ChatRequest, request: Request, agent: ShowAgent = Depends(get_agent)):
    prompt = (req.prompt or "").strip()
    if not prompt:
        return _error("Prompt is required.", 400)

    session_id = resolve_session_id(req, request)
    try:
        reply = agent.respond(prompt, session_id)
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return _error(str(e), 500)

    logger.info(
        "Chat handled: session=%s intent=%s status=%s prompt_len=%s",
        session_id,
        reply.intent,
        reply.status_code,
        len(prompt),
    )
    if reply.status_code >= 400:
        return JSONResponse(status_code=reply.status_code, content=reply.body)
    return reply.body


@app.get("/api/debug/youtube")
def debug_youtube(agent: ShowAgent = Depends(get_agent)):
    env_status = agent.settings.env_status()
    if not agent.settings.catalog_configured:
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "step": "env",
                "envStatus": env_status,
                "error": "Missing YT_CHANNEL_ID or YT_API_KEY. Set them in the service environment, then redeploy.",
            },
        )

    try:
        latest = agent.catalog.latest_video()
    except CatalogError as e:
        logger.warning("Debug catalog fetch failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "step": "youtube_fetch",
                "envStatus": env_status,
                "error": str(e),
                "status": getattr(e, "status", None),
            },
        )

    description = latest.description or ""
    return {
        "ok": True,
        "envStatus": env_status,
        "latest": {
            "title": latest.title,
            "published": latest.published,
            "link": latest.link,
            "descriptionPreview": description[:120] + "...",
        },
    }


@app.get("/api/videos/latest")
def latest_videos(agent: ShowAgent = Depends(get_agent)):
    try:
        videos = agent.catalog.feed_videos(limit=FEED_LIMIT)
    except CatalogConfigError as e:
        return _error(str(e), 400)
    except CatalogEmptyError:
        return {"videos": []}
    except CatalogError as e:
        logger.warning("Video feed fetch failed: %s", e)
        return _error(str(e), 502)

    items: List[Dict[str, Any]] = [
        {
            "title": video.title,
            "videoId": video.video_id,
            "link": video.link,
            "published": video.published,
            "thumbnail": video.thumbnail,
        }
        for video in videos
    ]
    return {"videos": items}


@app.get("/health")
def health():
    return {"status": "ok"}


# Mounted last so the API routes above take precedence
if STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="widget")
