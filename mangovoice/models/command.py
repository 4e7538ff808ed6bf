"""Command data model for mangovoice."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class HandlerOutcome(str, Enum):
    """What happened after a command was dispatched."""
    SUCCESS = "success"
    NO_RESULTS = "no_results"
    AMBIGUOUS = "ambiguous"  # 10+ results
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"
    UNSET = "unset"


class SearchType(str, Enum):
    """How a search phrase should be resolved."""
    DIRECT = "direct"
    SEMANTIC = "semantic"


class VoiceSource(str, Enum):
    """Where an utterance came from."""
    VOICE = "voice"  # Talk-to-Mango channel, always escalation-eligible
    SEARCH_BAR = "search_bar"
    OTHER = "other"


class Command(BaseModel):
    """Structured result of extracting a search target from an utterance.

    Validity is derived: a command is valid iff ``target_phrase`` is present
    and non-empty after cleanup.
    """

    raw_text: str = Field(..., description="Original utterance, unmodified")
    attribution: Optional[str] = Field(None, description="Recommender name before normalization")
    target_phrase: Optional[str] = Field(None, description="Cleaned search target")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def is_valid(self) -> bool:
        return bool(self.target_phrase)

    @property
    def command_type(self) -> str:
        """Analytics name for the command shape."""
        if not self.is_valid:
            return "unknown"
        if self.attribution:
            return "recommender_search"
        return "movie_search"
