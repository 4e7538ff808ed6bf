"""Voice routing engine for mangovoice."""

from mangovoice.engine.search_classifier import classify_search, SearchIntentClassifier
from mangovoice.engine.self_healing import should_escalate, evaluate_self_healing, SelfHealingService
from mangovoice.engine.events import SearchChannel, AttributionSlot
from mangovoice.engine.intent_router import IntentRouter, outcome_from_search_result

__all__ = [
    "classify_search",
    "SearchIntentClassifier",
    "should_escalate",
    "evaluate_self_healing",
    "SelfHealingService",
    "SearchChannel",
    "AttributionSlot",
    "IntentRouter",
    "outcome_from_search_result",
]
