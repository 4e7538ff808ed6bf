"""Data models for mangovoice."""

from mangovoice.models.command import Command, HandlerOutcome, SearchType, VoiceSource
from mangovoice.models.voice_event import (
    PatternSuggestion,
    RouterOutcome,
    RouterStatus,
    SearchRequested,
    SelfHealingAnalysis,
    SelfHealingDecision,
    VoiceEvent,
)

__all__ = [
    "Command",
    "HandlerOutcome",
    "SearchType",
    "VoiceSource",
    "PatternSuggestion",
    "RouterOutcome",
    "RouterStatus",
    "SearchRequested",
    "SelfHealingAnalysis",
    "SelfHealingDecision",
    "VoiceEvent",
]
