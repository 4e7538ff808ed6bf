"""FastAPI web application for mangovoice."""

import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from mangovoice.database.database import SessionLocal, get_db, init_db
from mangovoice.database.repository import PatternSuggestionRepository, VoiceEventRepository
from mangovoice.engine.analytics import VoiceAnalyticsLogger
from mangovoice.engine.background import BackgroundExecutor
from mangovoice.engine.intent_router import IntentRouter
from mangovoice.engine.search_classifier import classify_search
from mangovoice.engine.self_healing import SelfHealingService
from mangovoice.integrations.openai_client import OpenAIClient
from mangovoice.models.command import HandlerOutcome, SearchType, VoiceSource
from mangovoice.models.constants import (
    DEFAULT_BACKGROUND_WORKERS,
    DEFAULT_DUPLICATE_WINDOW_SEC,
    DEFAULT_SCREEN,
)
from mangovoice.models.voice_event import (
    PatternSuggestion,
    RouterOutcome,
    SearchRequested,
    SelfHealingDecision,
    VoiceEvent,
)

logger = logging.getLogger(__name__)

_router: Optional[IntentRouter] = None


def build_router() -> IntentRouter:
    """Wire the production router from environment configuration."""
    workers = int(os.getenv("MANGOVOICE_BACKGROUND_WORKERS", str(DEFAULT_BACKGROUND_WORKERS)))
    window = float(os.getenv("MANGOVOICE_DUPLICATE_WINDOW_SEC", str(DEFAULT_DUPLICATE_WINDOW_SEC)))
    return IntentRouter(
        analytics=VoiceAnalyticsLogger(SessionLocal),
        self_healing=SelfHealingService(OpenAIClient(), session_factory=SessionLocal),
        executor=BackgroundExecutor(max_workers=workers),
        duplicate_window_sec=window,
    )


def get_router() -> IntentRouter:
    """Get the shared intent router (dependency for FastAPI)."""
    global _router
    if _router is None:
        _router = build_router()
    return _router


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    if _router is not None:
        _router.executor.shutdown(wait=False)
        if _router.analytics is not None:
            _router.analytics.executor.shutdown(wait=True)


# Initialize FastAPI app
app = FastAPI(
    title="mangovoice API",
    description="Turns spoken commands into movie searches and learns from the ones it gets wrong",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/response models
class VoiceHandleRequest(BaseModel):
    """Request to route one utterance."""
    utterance: str
    source: VoiceSource = VoiceSource.VOICE


class VoiceOutcomeRequest(BaseModel):
    """Report of what the search subsystem did with a dispatched command."""
    voice_event_id: str
    outcome: Optional[HandlerOutcome] = None
    result_count: Optional[int] = Field(None, ge=0)
    error: Optional[str] = None
    screen: str = DEFAULT_SCREEN
    movie_context: Optional[str] = None


class ClassifyRequest(BaseModel):
    """Request to classify a typed search query."""
    query: str


class ClassifyResponse(BaseModel):
    """Response for search classification."""
    query: str
    search_type: SearchType


class SearchRequestsResponse(BaseModel):
    """Response for draining buffered search requests."""
    count: int
    requests: List[SearchRequested]


class AttributionResponse(BaseModel):
    """Response for the current attribution slot."""
    attribution: Optional[str] = None


class VoiceEventListResponse(BaseModel):
    """Response for listing voice events."""
    events: List[VoiceEvent]
    total: int


class PatternSuggestionListResponse(BaseModel):
    """Response for listing pattern suggestions."""
    suggestions: List[PatternSuggestion]
    total: int


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.post("/voice/handle", response_model=RouterOutcome)
def handle_utterance(request: VoiceHandleRequest, router: IntentRouter = Depends(get_router)):
    """Route a voice transcript or typed query."""
    if not request.utterance or not request.utterance.strip():
        raise HTTPException(status_code=400, detail="Utterance must not be empty")
    return router.handle(request.utterance, source=request.source)


@app.post("/voice/outcome", response_model=SelfHealingDecision)
def report_outcome(request: VoiceOutcomeRequest, router: IntentRouter = Depends(get_router)):
    """Report the search result for a dispatched voice command."""
    try:
        return router.observe_outcome(
            request.voice_event_id,
            request.outcome,
            result_count=request.result_count,
            error=request.error,
            screen=request.screen,
            movie_context=request.movie_context,
        )
    except KeyError:
        raise HTTPException(
            status_code=404,
            detail=f"No pending voice command {request.voice_event_id}",
        )


@app.post("/search/classify", response_model=ClassifyResponse)
async def classify_query(request: ClassifyRequest):
    """Classify a search query as direct or semantic."""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query must not be empty")
    return ClassifyResponse(query=query, search_type=classify_search(query))


@app.get("/voice/search-requests", response_model=SearchRequestsResponse)
def drain_search_requests(router: IntentRouter = Depends(get_router)):
    """Drain search requests published while no subscriber was attached."""
    requests = router.search_channel.drain()
    return SearchRequestsResponse(count=len(requests), requests=requests)


@app.get("/voice/attribution", response_model=AttributionResponse)
def get_attribution(router: IntentRouter = Depends(get_router)):
    """Get the recommender stored for the next add-to-list flow."""
    return AttributionResponse(attribution=router.attribution_slot.get())


@app.get("/voice/events", response_model=VoiceEventListResponse)
def list_voice_events(limit: int = 50, db: Session = Depends(get_db)):
    """List recent voice events, newest first."""
    events = VoiceEventRepository(db).list_recent(limit=limit)
    return VoiceEventListResponse(events=events, total=len(events))


@app.get("/voice/events/{voice_event_id}", response_model=VoiceEvent)
def get_voice_event(voice_event_id: str, db: Session = Depends(get_db)):
    """Get a single voice event."""
    voice_event = VoiceEventRepository(db).get(voice_event_id)
    if voice_event is None:
        raise HTTPException(status_code=404, detail=f"Voice event {voice_event_id} not found")
    return voice_event


@app.get("/voice/pattern-suggestions", response_model=PatternSuggestionListResponse)
def list_pattern_suggestions(status: Optional[str] = None, limit: int = 50, db: Session = Depends(get_db)):
    """List parser pattern suggestions.

    Without a status, the most recent suggestions come first. With a status
    (e.g. pending for the review queue), only matching ones, oldest first.
    """
    repository = PatternSuggestionRepository(db)
    if status:
        suggestions = repository.list_by_status(status, limit=limit)
    else:
        suggestions = repository.list_recent(limit=limit)
    return PatternSuggestionListResponse(suggestions=suggestions, total=len(suggestions))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
