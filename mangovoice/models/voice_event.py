"""Routing, self-healing and analytics data models for mangovoice."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from mangovoice.models.command import Command, HandlerOutcome, SearchType, VoiceSource


class RouterStatus(str, Enum):
    """Terminal status of routing one utterance."""
    DISPATCHED = "dispatched"
    REJECTED = "rejected"


class RouterOutcome(BaseModel):
    """Result of IntentRouter.handle()."""

    status: RouterStatus
    target_phrase: Optional[str] = None
    normalized_attribution: Optional[str] = None
    search_type: Optional[SearchType] = None
    voice_event_id: Optional[str] = Field(None, description="Id used to report the search outcome later")
    reason: Optional[str] = Field(None, description="Why the utterance was rejected")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def dispatched(self) -> bool:
        return self.status == RouterStatus.DISPATCHED


class SearchRequested(BaseModel):
    """Outbound event consumed by the external search subsystem."""

    target_phrase: str
    normalized_attribution: Optional[str] = None
    search_type: SearchType
    utterance: str
    source: VoiceSource = VoiceSource.VOICE
    voice_event_id: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class SelfHealingDecision(BaseModel):
    """Whether a completed command looked like a misfire, plus its context."""

    should_escalate: bool
    utterance: str
    command: Command
    outcome: HandlerOutcome = HandlerOutcome.UNSET
    screen: str = "Unknown"
    movie_context: Optional[str] = None
    voice_event_id: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class SelfHealingAnalysis(BaseModel):
    """Secondary interpretation of a failed utterance, as returned by the LLM."""

    intent: str = "unknown"
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    suggested_patterns: List[str] = Field(default_factory=list)


class VoiceEvent(BaseModel):
    """Analytics record for one voice interaction."""

    id: str = Field(..., description="Unique voice event identifier (UUID v4)")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    utterance: str
    source: VoiceSource = VoiceSource.VOICE
    command_type: str = Field(..., description="recommender_search | movie_search | unknown")
    command_attribution: Optional[str] = None
    command_target: Optional[str] = None
    final_command_type: str
    normalized_attribution: Optional[str] = None
    search_type: Optional[SearchType] = None
    router_status: RouterStatus
    handler_result: Optional[HandlerOutcome] = None
    result_count: Optional[int] = None
    error_message: Optional[str] = None
    self_healing_triggered: bool = False
    secondary_intent: Optional[str] = None
    secondary_confidence: Optional[float] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class PatternSuggestion(BaseModel):
    """Parser pattern proposed by the secondary interpreter for later review."""

    id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    utterance: str
    original_command_type: Optional[str] = None
    suggested_intent: Optional[str] = None
    suggested_pattern: Optional[str] = None
    confidence: Optional[float] = None
    source: str = "llm"
    status: str = "pending"
    voice_event_id: Optional[str] = None
