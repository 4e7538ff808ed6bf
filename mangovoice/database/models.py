"""SQLAlchemy database models for mangovoice."""

from datetime import datetime
import uuid
from typing import Type, TypeVar, Union
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from mangovoice.database.database import Base
from mangovoice.models.command import HandlerOutcome, SearchType, VoiceSource
from mangovoice.models.voice_event import PatternSuggestion, RouterStatus, VoiceEvent

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T, None]):
    """Convert enum to string value (handles enum, string and None)."""
    if enum_obj is None:
        return None
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class VoiceEventDB(Base):
    """Database model for VoiceEvent."""

    __tablename__ = "voice_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    utterance = Column(String, nullable=False)
    source = Column(String, nullable=False, default="voice")

    # Command as extracted by the deterministic parser
    command_type = Column(String, nullable=False)
    command_attribution = Column(String, nullable=True)
    command_target = Column(String, nullable=True)

    # Routing
    final_command_type = Column(String, nullable=False)
    normalized_attribution = Column(String, nullable=True)
    search_type = Column(String, nullable=True)
    router_status = Column(String, nullable=False)

    # Outcome (filled in after the search completes)
    handler_result = Column(String, nullable=True)
    result_count = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)

    # Self-healing
    self_healing_triggered = Column(Boolean, nullable=False, default=False)
    secondary_intent = Column(String, nullable=True)
    secondary_confidence = Column(Float, nullable=True)

    def to_pydantic(self) -> VoiceEvent:
        """Convert database model to Pydantic model."""
        handler_result = None
        if self.handler_result:
            handler_result = value_to_enum(self.handler_result, HandlerOutcome, HandlerOutcome.UNSET)
        search_type = None
        if self.search_type:
            search_type = value_to_enum(self.search_type, SearchType, SearchType.DIRECT)
        return VoiceEvent(
            id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            utterance=self.utterance,
            source=value_to_enum(self.source, VoiceSource, VoiceSource.OTHER),
            command_type=self.command_type,
            command_attribution=self.command_attribution,
            command_target=self.command_target,
            final_command_type=self.final_command_type,
            normalized_attribution=self.normalized_attribution,
            search_type=search_type,
            router_status=value_to_enum(self.router_status, RouterStatus, RouterStatus.REJECTED),
            handler_result=handler_result,
            result_count=self.result_count,
            error_message=self.error_message,
            self_healing_triggered=bool(self.self_healing_triggered),
            secondary_intent=self.secondary_intent,
            secondary_confidence=self.secondary_confidence,
        )

    @classmethod
    def from_pydantic(cls, event: VoiceEvent) -> "VoiceEventDB":
        """Create database model from Pydantic model."""
        return cls(
            id=event.id,
            created_at=event.created_at,
            updated_at=event.updated_at,
            utterance=event.utterance,
            source=enum_to_value(event.source),
            command_type=event.command_type,
            command_attribution=event.command_attribution,
            command_target=event.command_target,
            final_command_type=event.final_command_type,
            normalized_attribution=event.normalized_attribution,
            search_type=enum_to_value(event.search_type),
            router_status=enum_to_value(event.router_status),
            handler_result=enum_to_value(event.handler_result),
            result_count=event.result_count,
            error_message=event.error_message,
            self_healing_triggered=event.self_healing_triggered,
            secondary_intent=event.secondary_intent,
            secondary_confidence=event.secondary_confidence,
        )


class PatternSuggestionDB(Base):
    """Database model for PatternSuggestion."""

    __tablename__ = "voice_pattern_suggestions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    utterance = Column(String, nullable=False)
    original_command_type = Column(String, nullable=True)
    suggested_intent = Column(String, nullable=True)
    suggested_pattern = Column(String, nullable=True)
    confidence = Column(Float, nullable=True)
    source = Column(String, nullable=False, default="llm")
    status = Column(String, nullable=False, default="pending", index=True)
    # Not a foreign key: the suggestion may be written before its voice event row
    voice_event_id = Column(String, nullable=True, index=True)

    def to_pydantic(self) -> PatternSuggestion:
        """Convert database model to Pydantic model."""
        return PatternSuggestion(
            id=self.id,
            created_at=self.created_at,
            utterance=self.utterance,
            original_command_type=self.original_command_type,
            suggested_intent=self.suggested_intent,
            suggested_pattern=self.suggested_pattern,
            confidence=self.confidence,
            source=self.source,
            status=self.status,
            voice_event_id=self.voice_event_id,
        )

    @classmethod
    def from_pydantic(cls, suggestion: PatternSuggestion) -> "PatternSuggestionDB":
        """Create database model from Pydantic model."""
        return cls(
            id=suggestion.id,
            created_at=suggestion.created_at,
            utterance=suggestion.utterance,
            original_command_type=suggestion.original_command_type,
            suggested_intent=suggestion.suggested_intent,
            suggested_pattern=suggestion.suggested_pattern,
            confidence=suggestion.confidence,
            source=suggestion.source,
            status=suggestion.status,
            voice_event_id=suggestion.voice_event_id,
        )
