# server.py: MathGPT, equation editor -> prompt -> completion -> typeset answer
# ============================================================
# pip install -e .
# uvicorn mathgpt.server:app --reload --host 0.0.0.0 --port 8000
#
# API:
# POST   /api/gpt3                         { prompt }   -> { promptReturn }
# POST   /api/session                                   -> snapshot + intents + demos
# GET    /api/session/{id}                              -> snapshot
# DELETE /api/session/{id}                              -> { closed }
# PUT    /api/session/{id}/expression      { latex }    -> snapshot
# PUT    /api/session/{id}/intent          { intent }   -> snapshot
# POST   /api/session/{id}/demo/{n}                     -> snapshot
# POST   /api/session/{id}/submit                       -> snapshot (loading)
# GET    /api/session/{id}/stream                       -> SSE (answer transitions)
# ============================================================

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from pydantic import ValidationError

from mathgpt import __version__
from mathgpt.answer import TERMINAL_TAGS
from mathgpt.client import ApiClient
from mathgpt.completion import CompletionError, CompletionNotConfigured, CompletionService
from mathgpt.config import settings
from mathgpt.logging_config import setup_logging
from mathgpt.prompts import DEMOS, Intent
from mathgpt.schemas import ApiReturn, ExpressionUpdate, IntentUpdate, PromptRequest, SubmitRequest
from mathgpt.sessions import PageSession, SessionRegistry

logger = logging.getLogger(__name__)

# ============================================================
# Utils
# ============================================================

def sse_pack(obj: Dict[str, Any]) -> str:
    return f"data: {json.dumps(obj, ensure_ascii=False)}\n\n"

def public_file(name: str) -> Path:
    return Path(settings.PUBLIC_DIR) / name

def completion_service(request: Request) -> CompletionService:
    service = getattr(request.app.state, "completion", None)
    if service is None:
        service = CompletionService.from_settings(settings)
        request.app.state.completion = service
    return service

def api_client(request: Request) -> ApiClient:
    client = getattr(request.app.state, "api_client", None)
    if client is None:
        if settings.API_BASE_URL:
            client = ApiClient(settings.API_BASE_URL)
        else:
            client = ApiClient("http://mathgpt.local/", transport=httpx.ASGITransport(app=request.app))
        request.app.state.api_client = client
    return client

def request_error(e: ValueError) -> Any:
    if isinstance(e, ValidationError):
        return json.loads(e.json())
    return f"body is not valid JSON: {e}"

async def session_or_404(request: Request, session_id: str) -> PageSession:
    session = await request.app.state.sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="session not found")
    return session

# ============================================================
# FastAPI app
# ============================================================

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE or None)

app = FastAPI(
    title="MathGPT",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.sessions = SessionRegistry(max_age_sec=settings.SESSION_MAX_AGE)

@app.get("/", response_class=HTMLResponse)
async def home():
    try:
        with open(public_file("index.html"), "r", encoding="utf-8") as f:
            return HTMLResponse(f.read())
    except FileNotFoundError:
        return HTMLResponse(
            f"<h2>index.html not found</h2><p>Looked in <b>{settings.PUBLIC_DIR}</b></p>",
            status_code=404,
        )

@app.get("/styles.css")
async def styles_css():
    try:
        with open(public_file("styles.css"), "rb") as f:
            return Response(f.read(), media_type="text/css; charset=utf-8")
    except FileNotFoundError:
        return Response("/* styles.css not found */", media_type="text/css; charset=utf-8", status_code=404)

@app.get("/script.js")
async def script_js():
    try:
        with open(public_file("script.js"), "rb") as f:
            return Response(f.read(), media_type="application/javascript; charset=utf-8")
    except FileNotFoundError:
        return Response("// script.js not found", media_type="application/javascript; charset=utf-8", status_code=404)

@app.get("/health")
async def health_check():
    return {"status": "ok", "version": __version__}

# ============================================================
# Completion endpoint
# ============================================================

@app.post("/api/gpt3", response_model=ApiReturn)
async def gpt3(request: Request):
    # the page posts without a Content-Type header; parse the body ourselves
    try:
        body = PromptRequest.model_validate(await request.json())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=request_error(e))
    service = completion_service(request)
    started = time.time()
    try:
        text = await service.complete(body.prompt)
    except CompletionNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))
    except CompletionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    logger.info("Completion: %d chars in %.2fs", len(text), time.time() - started)
    return ApiReturn(promptReturn=text)

# ============================================================
# Page sessions
# ============================================================

@app.post("/api/session")
async def open_session(request: Request):
    session = await request.app.state.sessions.create()
    snap = session.snapshot()
    snap["intents"] = Intent.labels()
    snap["demos"] = [{"latex": latex, "intent": intent.value} for latex, intent in DEMOS]
    return snap

@app.get("/api/session/{session_id}")
async def get_session(session_id: str, request: Request):
    session = await session_or_404(request, session_id)
    return session.snapshot()

@app.delete("/api/session/{session_id}")
async def close_session(session_id: str, request: Request):
    if not await request.app.state.sessions.close(session_id):
        raise HTTPException(status_code=404, detail="session not found")
    return {"closed": True}

@app.put("/api/session/{session_id}/expression")
async def edit_expression(session_id: str, body: ExpressionUpdate, request: Request):
    session = await session_or_404(request, session_id)
    session.edit(body.latex)
    return session.snapshot()

@app.put("/api/session/{session_id}/intent")
async def select_intent(session_id: str, body: IntentUpdate, request: Request):
    session = await session_or_404(request, session_id)
    try:
        session.select_intent(Intent.parse(body.intent))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.snapshot()

@app.post("/api/session/{session_id}/demo/{index}")
async def load_demo(session_id: str, index: int, request: Request):
    session = await session_or_404(request, session_id)
    try:
        session.load_demo(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return session.snapshot()

@app.post("/api/session/{session_id}/submit")
async def submit(session_id: str, request: Request, background: BackgroundTasks,
                 body: Optional[SubmitRequest] = None):
    session = await session_or_404(request, session_id)
    if body is not None:
        try:
            intent = Intent.parse(body.intent) if body.intent is not None else None
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        if body.latex is not None:
            session.edit(body.latex)
        if intent is not None:
            session.select_intent(intent)
    seq, prompt = session.begin_submission()
    snap = session.snapshot()
    background.add_task(session.finish, api_client(request), seq, prompt)
    return snap

@app.get("/api/session/{session_id}/stream")
async def stream_answer(session_id: str, request: Request):
    session = await session_or_404(request, session_id)
    registry: SessionRegistry = request.app.state.sessions

    async def event_gen():
        last_ping = time.time()
        while True:
            if time.time() - last_ping > 10:
                last_ping = time.time()
                yield ": ping\n\n"
            try:
                ev = await asyncio.wait_for(session.events.get(), timeout=1.0)
                yield sse_pack(ev)
                if ev["answer"]["tag"] in TERMINAL_TAGS:
                    break
            except asyncio.TimeoutError:
                if await registry.get(session_id) is None:
                    break
                continue
        yield ": done\n\n"

    return StreamingResponse(event_gen(), media_type="text/event-stream")
