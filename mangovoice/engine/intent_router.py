"""Intent routing for voice and typed utterances.

This module is the single entrypoint for utterances. For the voice channel:
1. Extract a Command (deterministic, no network)
2. Invalid -> speak an apology, return REJECTED (no synchronous retry)
3. Valid -> normalize attribution into the attribution slot, speak a short
   acknowledgment (fire-and-forget), publish exactly one SearchRequested
4. Later, observe_outcome() evaluates the self-healing trigger once the
   search result is known

Typed search only needs the search-intent classifier.
"""

import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from mangovoice.engine.analytics import VoiceAnalyticsLogger
from mangovoice.engine.background import BackgroundExecutor
from mangovoice.engine.events import AttributionSlot, SearchChannel
from mangovoice.engine.search_classifier import SearchIntentClassifier
from mangovoice.engine.self_healing import SelfHealingService, evaluate_self_healing
from mangovoice.engine.speech import LoggingSpeaker, Speaker
from mangovoice.models.command import Command, HandlerOutcome, SearchType, VoiceSource
from mangovoice.models.constants import (
    ACKNOWLEDGMENT_TEXT,
    AMBIGUOUS_RESULT_COUNT,
    APOLOGY_TEXT,
    DEFAULT_SCREEN,
    MAX_PENDING_OUTCOMES,
)
from mangovoice.models.voice_event import (
    RouterOutcome,
    RouterStatus,
    SearchRequested,
    SelfHealingDecision,
    VoiceEvent,
)
from mangovoice.parsing.command_extractor import CommandExtractor
from mangovoice.parsing.recommender_normalizer import RecommenderNormalizer

logger = logging.getLogger(__name__)


def outcome_from_search_result(result_count: Optional[int], error: Optional[str] = None) -> HandlerOutcome:
    """Map a completed search to a HandlerOutcome."""
    if error:
        return HandlerOutcome.NETWORK_ERROR
    if result_count is None:
        return HandlerOutcome.UNSET
    if result_count <= 0:
        return HandlerOutcome.NO_RESULTS
    if result_count >= AMBIGUOUS_RESULT_COUNT:
        return HandlerOutcome.AMBIGUOUS
    return HandlerOutcome.SUCCESS


class DuplicateTranscriptFilter:
    """Rejects an identical transcript seen again within a short window.

    Speech recognizers often deliver the same final transcript twice.
    """

    def __init__(self, window_sec: float, clock: Callable[[], float] = time.monotonic):
        self.window_sec = window_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._seen: Dict[str, float] = {}

    def is_duplicate(self, utterance: str) -> bool:
        if self.window_sec <= 0:
            return False
        key = utterance.strip().lower()
        now = self._clock()
        with self._lock:
            # Expire old entries
            self._seen = {k: t for k, t in self._seen.items() if now - t < self.window_sec}
            if key in self._seen:
                return True
            self._seen[key] = now
            return False


class IntentRouter:
    """Orchestrates extraction, normalization, acknowledgment and dispatch."""

    def __init__(
        self,
        *,
        search_channel: Optional[SearchChannel] = None,
        attribution_slot: Optional[AttributionSlot] = None,
        speaker: Optional[Speaker] = None,
        extractor: Optional[CommandExtractor] = None,
        normalizer: Optional[RecommenderNormalizer] = None,
        classifier: Optional[SearchIntentClassifier] = None,
        analytics: Optional[VoiceAnalyticsLogger] = None,
        self_healing: Optional[SelfHealingService] = None,
        executor=None,
        duplicate_window_sec: float = 0.0,
        max_pending: int = MAX_PENDING_OUTCOMES,
    ):
        self.search_channel = search_channel or SearchChannel()
        self.attribution_slot = attribution_slot or AttributionSlot()
        self.speaker = speaker or LoggingSpeaker()
        self.extractor = extractor or CommandExtractor()
        self.normalizer = normalizer or RecommenderNormalizer()
        self.classifier = classifier or SearchIntentClassifier()
        self.analytics = analytics
        self.self_healing = self_healing
        self.executor = executor or BackgroundExecutor()
        self._duplicates = DuplicateTranscriptFilter(duplicate_window_sec)

        self._pending_lock = threading.Lock()
        self.max_pending = max_pending
        self._pending: "OrderedDict[str, Tuple[str, Command]]" = OrderedDict()

    # ------------------------------------------------------------------
    # Utterance path
    # ------------------------------------------------------------------

    def handle(self, utterance: str, source: VoiceSource = VoiceSource.VOICE) -> RouterOutcome:
        """Route one utterance.

        Args:
            utterance: Transcribed or typed text
            source: VOICE runs the full extraction + self-healing path;
                other sources only classify the query

        Returns:
            RouterOutcome (DISPATCHED or REJECTED)
        """
        source = VoiceSource(source)
        if source != VoiceSource.VOICE:
            return self._handle_typed_query(utterance, source)

        text = utterance or ""
        logger.info(f"Processing transcript: {text[:80]!r}")

        if self._duplicates.is_duplicate(text):
            logger.warning(f"Skipping duplicate transcript: {text[:80]!r}")
            return RouterOutcome(status=RouterStatus.REJECTED, reason="duplicate")

        command = self.extractor.extract(text)
        voice_event_id = str(uuid.uuid4())

        if not command.is_valid:
            return self._reject_unparsed(text, command, voice_event_id)

        normalized = None
        if command.attribution:
            normalized = self.normalizer.normalize(command.attribution)
            logger.debug(f"Stored recommender {normalized!r} for the add-to-list flow")
        self.attribution_slot.set(normalized)

        search_type = self.classifier.classify(command.target_phrase)

        # Acknowledge first; never waited on by dispatch
        self.executor.submit(self.speaker.speak, ACKNOWLEDGMENT_TEXT, description="speak acknowledgment")

        # Registered before publish so a synchronous subscriber can report back
        self._register_pending(voice_event_id, text, command)

        self._log_event(
            voice_event_id,
            text,
            source,
            command,
            status=RouterStatus.DISPATCHED,
            normalized=normalized,
            search_type=search_type,
        )

        self.search_channel.publish(
            SearchRequested(
                target_phrase=command.target_phrase,
                normalized_attribution=normalized,
                search_type=search_type,
                utterance=text,
                source=source,
                voice_event_id=voice_event_id,
            )
        )
        logger.info(f"Dispatched {search_type.value} search for {command.target_phrase!r}")

        return RouterOutcome(
            status=RouterStatus.DISPATCHED,
            target_phrase=command.target_phrase,
            normalized_attribution=normalized,
            search_type=search_type,
            voice_event_id=voice_event_id,
        )

    def _reject_unparsed(self, text: str, command: Command, voice_event_id: str) -> RouterOutcome:
        logger.info(f"No command extracted from transcript: {text[:80]!r}")
        self.executor.submit(self.speaker.speak, APOLOGY_TEXT, description="speak apology")
        self._log_event(voice_event_id, text, VoiceSource.VOICE, command, status=RouterStatus.REJECTED)

        # The outcome of a parse failure is known right away
        self.executor.submit(
            self._observe,
            voice_event_id,
            text,
            command,
            HandlerOutcome.PARSE_ERROR,
            None,
            None,
            DEFAULT_SCREEN,
            None,
            description="observe parse error",
        )
        return RouterOutcome(
            status=RouterStatus.REJECTED,
            voice_event_id=voice_event_id,
            reason="parse_error",
        )

    def _handle_typed_query(self, query: str, source: VoiceSource) -> RouterOutcome:
        text = (query or "").strip()
        if not text:
            return RouterOutcome(status=RouterStatus.REJECTED, reason="empty_query")

        search_type = self.classifier.classify(text)
        self.search_channel.publish(
            SearchRequested(
                target_phrase=text,
                search_type=search_type,
                utterance=query,
                source=source,
            )
        )
        logger.debug(f"Typed query {text[:80]!r} routed to {search_type.value} search")
        return RouterOutcome(status=RouterStatus.DISPATCHED, target_phrase=text, search_type=search_type)

    # ------------------------------------------------------------------
    # Outcome observation path
    # ------------------------------------------------------------------

    def observe_outcome(
        self,
        voice_event_id: str,
        outcome: Optional[HandlerOutcome] = None,
        *,
        result_count: Optional[int] = None,
        error: Optional[str] = None,
        screen: str = DEFAULT_SCREEN,
        movie_context: Optional[str] = None,
    ) -> SelfHealingDecision:
        """Report what happened to a dispatched command.

        Either pass the outcome directly or let it be derived from the
        search result. Raises KeyError for an unknown or already observed
        voice event id.
        """
        with self._pending_lock:
            pending = self._pending.pop(voice_event_id, None)
        if pending is None:
            raise KeyError(voice_event_id)

        utterance, command = pending
        if outcome is None:
            outcome = outcome_from_search_result(result_count, error)
        return self._observe(
            voice_event_id,
            utterance,
            command,
            HandlerOutcome(outcome),
            result_count,
            error,
            screen,
            movie_context,
        )

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def _register_pending(self, voice_event_id: str, text: str, command: Command) -> None:
        with self._pending_lock:
            self._pending[voice_event_id] = (text, command)
            while len(self._pending) > self.max_pending:
                dropped_id, (dropped_text, _) = self._pending.popitem(last=False)
                logger.warning(f"Dropping unreported voice command {dropped_id}: {dropped_text[:50]!r}")

    def _observe(
        self,
        voice_event_id: str,
        utterance: str,
        command: Command,
        outcome: HandlerOutcome,
        result_count: Optional[int],
        error: Optional[str],
        screen: str,
        movie_context: Optional[str],
    ) -> SelfHealingDecision:
        decision = evaluate_self_healing(
            utterance,
            command,
            outcome,
            screen=screen,
            movie_context=movie_context,
            voice_event_id=voice_event_id,
        )

        if self.analytics is not None:
            self.analytics.log_outcome(
                voice_event_id,
                outcome,
                result_count=result_count,
                error_message=error,
                self_healing_triggered=decision.should_escalate,
            )

        if decision.should_escalate and self.self_healing is not None:
            self.executor.submit(self._remediate, decision, description="self-healing remediation")

        return decision

    def _remediate(self, decision: SelfHealingDecision) -> None:
        analysis = self.self_healing.handle_failed_command(decision)
        if self.analytics is not None and decision.voice_event_id:
            self.analytics.log_secondary_result(decision.voice_event_id, analysis)

    def _log_event(
        self,
        voice_event_id: str,
        utterance: str,
        source: VoiceSource,
        command: Command,
        *,
        status: RouterStatus,
        normalized: Optional[str] = None,
        search_type: Optional[SearchType] = None,
    ) -> None:
        if self.analytics is None:
            return
        try:
            voice_event = VoiceEvent(
                id=voice_event_id,
                utterance=utterance,
                source=source,
                command_type=command.command_type,
                command_attribution=command.attribution,
                command_target=command.target_phrase,
                final_command_type=command.command_type,
                normalized_attribution=normalized,
                search_type=search_type,
                router_status=status,
            )
            self.analytics.log_event(voice_event)
        except Exception as e:
            logger.warning(f"Failed to queue voice event: {type(e).__name__}")
