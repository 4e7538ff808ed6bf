"""Repository layer for database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from mangovoice.models.command import HandlerOutcome
from mangovoice.models.voice_event import PatternSuggestion, VoiceEvent
from mangovoice.database.models import PatternSuggestionDB, VoiceEventDB, enum_to_value

logger = logging.getLogger(__name__)


class VoiceEventRepository:
    """Repository for VoiceEvent database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, voice_event: VoiceEvent) -> VoiceEvent:
        """Create a new voice event."""
        try:
            event_db = VoiceEventDB.from_pydantic(voice_event)
            self.db.add(event_db)
            self.db.commit()
            self.db.refresh(event_db)
            logger.debug(f"Created voice event {voice_event.id}: {voice_event.utterance[:50]}")
            return event_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create voice event {voice_event.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, voice_event_id: str) -> Optional[VoiceEvent]:
        """Get voice event by ID."""
        event_db = self.db.query(VoiceEventDB).filter(VoiceEventDB.id == voice_event_id).first()
        return event_db.to_pydantic() if event_db else None

    def list_recent(self, limit: int = 50) -> List[VoiceEvent]:
        """Get the most recent voice events (newest first)."""
        events_db = self.db.query(VoiceEventDB).order_by(desc(VoiceEventDB.created_at)).limit(limit).all()
        return [event_db.to_pydantic() for event_db in events_db]

    def update_result(
        self,
        voice_event_id: str,
        handler_result: HandlerOutcome,
        *,
        result_count: Optional[int] = None,
        error_message: Optional[str] = None,
        self_healing_triggered: Optional[bool] = None,
    ) -> Optional[VoiceEvent]:
        """Record the observed outcome of a voice event.

        Returns the updated event, or None if it does not exist.
        """
        event_db = self.db.query(VoiceEventDB).filter(VoiceEventDB.id == voice_event_id).first()
        if not event_db:
            logger.warning(f"Voice event {voice_event_id} not found. Outcome not recorded.")
            return None
        try:
            event_db.handler_result = enum_to_value(handler_result)
            if result_count is not None:
                event_db.result_count = result_count
            if error_message is not None:
                event_db.error_message = error_message
            if self_healing_triggered is not None:
                event_db.self_healing_triggered = self_healing_triggered
            event_db.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(event_db)
            return event_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update voice event {voice_event_id}: {type(e).__name__}: {str(e)}")
            raise

    def record_secondary_result(
        self,
        voice_event_id: str,
        secondary_intent: Optional[str],
        secondary_confidence: Optional[float],
    ) -> Optional[VoiceEvent]:
        """Attach the secondary interpreter's result to a voice event."""
        event_db = self.db.query(VoiceEventDB).filter(VoiceEventDB.id == voice_event_id).first()
        if not event_db:
            logger.warning(f"Voice event {voice_event_id} not found. Secondary result not recorded.")
            return None
        try:
            event_db.self_healing_triggered = True
            event_db.secondary_intent = secondary_intent
            event_db.secondary_confidence = secondary_confidence
            event_db.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(event_db)
            return event_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update voice event {voice_event_id}: {type(e).__name__}: {str(e)}")
            raise


class PatternSuggestionRepository:
    """Repository for PatternSuggestion database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, suggestion: PatternSuggestion) -> PatternSuggestion:
        """Create a new pattern suggestion."""
        try:
            suggestion_db = PatternSuggestionDB.from_pydantic(suggestion)
            self.db.add(suggestion_db)
            self.db.commit()
            self.db.refresh(suggestion_db)
            logger.debug(f"Created pattern suggestion {suggestion.id}: {suggestion.suggested_intent}")
            return suggestion_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create pattern suggestion {suggestion.id}: {type(e).__name__}: {str(e)}")
            raise

    def list_recent(self, limit: int = 50) -> List[PatternSuggestion]:
        """Get the most recent pattern suggestions (newest first)."""
        rows = self.db.query(PatternSuggestionDB).order_by(desc(PatternSuggestionDB.created_at)).limit(limit).all()
        return [row.to_pydantic() for row in rows]

    def list_by_status(self, status: str, limit: Optional[int] = None) -> List[PatternSuggestion]:
        """Get suggestions with the given review status (oldest first)."""
        query = self.db.query(PatternSuggestionDB).filter(
            PatternSuggestionDB.status == status,
        ).order_by(PatternSuggestionDB.created_at)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_pydantic() for row in query.all()]

    def list_pending(self) -> List[PatternSuggestion]:
        """Get suggestions still awaiting review (oldest first)."""
        return self.list_by_status("pending")
