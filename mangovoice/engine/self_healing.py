"""Self-healing trigger and remediation for voice commands.

The trigger is a pure predicate evaluated once a command's outcome is known.
It decides whether the interaction looked like a misfire:
1. NO_RESULTS and the utterance contains action words
2. OR a plain movie search (no attribution) whose utterance contains action words
3. OR PARSE_ERROR and the utterance contains action words

Action words signal the user most likely wanted a watchlist change that the
search-style parse read as a title search.

Remediation (asking the LLM what the user meant and logging a parser pattern
suggestion) runs only on the background executor and never raises into the
router.
"""

import logging
import re
import uuid
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from mangovoice.database.repository import PatternSuggestionRepository
from mangovoice.integrations.openai_client import OpenAIClient
from mangovoice.models.command import Command, HandlerOutcome
from mangovoice.models.constants import ACTION_WORDS, DEFAULT_SCREEN
from mangovoice.models.voice_event import PatternSuggestion, SelfHealingAnalysis, SelfHealingDecision

logger = logging.getLogger(__name__)

# Word-prefix match: inflections ("watching", "added", "saved") count,
# words that merely contain an action word ("Pirates") do not.
_ACTION_WORD_RE = re.compile(
    r"(?<![\w'])(?:" + "|".join(re.escape(w) for w in ACTION_WORDS) + r")",
    re.I,
)


def _fold_apostrophes(text: str) -> str:
    return text.replace("’", "'").replace("‘", "'")


def has_action_words(utterance: str) -> bool:
    """Check whether any word in an utterance starts with an action word."""
    return _ACTION_WORD_RE.search(_fold_apostrophes(utterance or "")) is not None


def should_escalate(utterance: str, command: Command, outcome: HandlerOutcome) -> bool:
    """Decide whether a handled command should be escalated to self-healing.

    Pure and total: never raises, always returns a bool.
    """
    if not has_action_words(utterance):
        return False

    if outcome == HandlerOutcome.NO_RESULTS:
        return True

    if command.is_valid and not command.attribution:
        return True

    if outcome == HandlerOutcome.PARSE_ERROR:
        return True

    return False


def evaluate_self_healing(
    utterance: str,
    command: Command,
    outcome: HandlerOutcome,
    *,
    screen: str = DEFAULT_SCREEN,
    movie_context: Optional[str] = None,
    voice_event_id: Optional[str] = None,
) -> SelfHealingDecision:
    """Evaluate the trigger and package the decision with its context."""
    escalate = should_escalate(utterance, command, outcome)
    if escalate:
        logger.debug(f"Self-healing triggered for {utterance[:80]!r} ({command.command_type}, {outcome})")
    return SelfHealingDecision(
        should_escalate=escalate,
        utterance=utterance,
        command=command,
        outcome=outcome,
        screen=screen or DEFAULT_SCREEN,
        movie_context=movie_context,
        voice_event_id=voice_event_id,
    )


def build_context(screen: str, movie_context: Optional[str]) -> str:
    """Describe where the user was when the command failed."""
    context = f"They were on the {screen or DEFAULT_SCREEN} screen."
    if movie_context:
        context += f" They were viewing the movie '{movie_context}'."
    return context


def join_patterns(patterns: List[str]) -> Optional[str]:
    cleaned = [p.strip() for p in patterns if p and p.strip()]
    if not cleaned:
        return None
    return ", ".join(cleaned)


class SelfHealingService:
    """Remediation collaborator invoked when the trigger fires."""

    def __init__(
        self,
        openai_client: Optional[OpenAIClient] = None,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.openai_client = openai_client or OpenAIClient()
        self.session_factory = session_factory

    def handle_failed_command(self, decision: SelfHealingDecision) -> Optional[SelfHealingAnalysis]:
        """Analyze a failed utterance and log a pattern suggestion.

        Returns the analysis, or None if the LLM was unavailable. A minimal
        suggestion is still stored when analysis fails.
        """
        if not decision.should_escalate:
            return None

        context = build_context(decision.screen, decision.movie_context)
        logger.info(f"Analyzing failed utterance {decision.utterance[:80]!r} ({context})")

        analysis = self.openai_client.analyze_failed_utterance(decision.utterance, context)
        if analysis is None:
            logger.warning("Self-healing analysis unavailable. Logging minimal pattern suggestion.")
        else:
            logger.info(
                f"Self-healing analysis: intent={analysis.intent} confidence={analysis.confidence}"
            )

        self._log_pattern_suggestion(decision, analysis)
        return analysis

    def _log_pattern_suggestion(
        self,
        decision: SelfHealingDecision,
        analysis: Optional[SelfHealingAnalysis],
    ) -> None:
        if self.session_factory is None:
            logger.debug("No session factory configured. Skipping pattern suggestion log.")
            return

        suggestion = PatternSuggestion(
            id=str(uuid.uuid4()),
            utterance=decision.utterance,
            original_command_type=decision.command.command_type,
            suggested_intent=analysis.intent if analysis else None,
            suggested_pattern=join_patterns(analysis.suggested_patterns) if analysis else None,
            confidence=analysis.confidence if analysis else None,
            voice_event_id=decision.voice_event_id,
        )

        db = self.session_factory()
        try:
            PatternSuggestionRepository(db).create(suggestion)
        except Exception as e:
            logger.error(f"Failed to log pattern suggestion: {type(e).__name__}")
        finally:
            db.close()
