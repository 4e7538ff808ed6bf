"""Voice interaction analytics.

Every routed utterance is recorded (what was said, what the parser made of
it, where it was sent) and later updated with the observed outcome and any
self-healing result. Recording is fire-and-forget: failures are logged and
never reach the user-facing flow.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from mangovoice.database.repository import VoiceEventRepository
from mangovoice.engine.background import BackgroundExecutor
from mangovoice.models.command import HandlerOutcome
from mangovoice.models.voice_event import SelfHealingAnalysis, VoiceEvent

logger = logging.getLogger(__name__)


class VoiceAnalyticsLogger:
    """Writes voice events through a serial best-effort queue.

    A single worker keeps writes for one event in submission order (create
    before outcome update before secondary result).
    """

    def __init__(self, session_factory: Callable[[], Session], executor=None):
        self.session_factory = session_factory
        self.executor = executor or BackgroundExecutor(max_workers=1, thread_name_prefix="mangovoice-analytics")

    def log_event(self, voice_event: VoiceEvent) -> None:
        self.executor.submit(self._write_event, voice_event, description="log voice event")

    def log_outcome(
        self,
        voice_event_id: str,
        outcome: HandlerOutcome,
        *,
        result_count: Optional[int] = None,
        error_message: Optional[str] = None,
        self_healing_triggered: bool = False,
    ) -> None:
        self.executor.submit(
            self._write_outcome,
            voice_event_id,
            outcome,
            result_count,
            error_message,
            self_healing_triggered,
            description="log voice outcome",
        )

    def log_secondary_result(self, voice_event_id: str, analysis: Optional[SelfHealingAnalysis]) -> None:
        self.executor.submit(
            self._write_secondary_result,
            voice_event_id,
            analysis,
            description="log self-healing result",
        )

    def _write_event(self, voice_event: VoiceEvent) -> None:
        db = self.session_factory()
        try:
            VoiceEventRepository(db).create(voice_event)
        except Exception as e:
            logger.warning(f"Failed to log voice event: {type(e).__name__}")
        finally:
            db.close()

    def _write_outcome(
        self,
        voice_event_id: str,
        outcome: HandlerOutcome,
        result_count: Optional[int],
        error_message: Optional[str],
        self_healing_triggered: bool,
    ) -> None:
        db = self.session_factory()
        try:
            VoiceEventRepository(db).update_result(
                voice_event_id,
                outcome,
                result_count=result_count,
                error_message=error_message,
                self_healing_triggered=self_healing_triggered,
            )
        except Exception as e:
            logger.warning(f"Failed to log voice outcome: {type(e).__name__}")
        finally:
            db.close()

    def _write_secondary_result(self, voice_event_id: str, analysis: Optional[SelfHealingAnalysis]) -> None:
        db = self.session_factory()
        try:
            VoiceEventRepository(db).record_secondary_result(
                voice_event_id,
                analysis.intent if analysis else None,
                analysis.confidence if analysis else None,
            )
        except Exception as e:
            logger.warning(f"Failed to log self-healing result: {type(e).__name__}")
        finally:
            db.close()
