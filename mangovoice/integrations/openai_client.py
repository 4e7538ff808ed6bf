"""OpenAI API integration for mangovoice.

This module provides the secondary interpreter used by self-healing: given a
voice utterance the deterministic parser mishandled, ask the model what the
user most likely meant and which parser patterns would have caught it.
"""

import os
import json
import logging
from typing import Optional
from openai import OpenAI, APIError
from dotenv import load_dotenv

from mangovoice.models.constants import DEFAULT_OPENAI_MODEL, DEFAULT_OPENAI_TIMEOUT_SEC
from mangovoice.models.voice_event import SelfHealingAnalysis

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_MODEL = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)

KNOWN_INTENTS = (
    "markWatched",
    "markUnwatched",
    "addToWatchlist",
    "removeFromWatchlist",
    "search",
    "unknown",
)

# Self-healing analysis prompt template
SELF_HEALING_PROMPT_TEMPLATE = """You are analyzing a failed voice command in a movie recommendation app called "Mango".

A user said: "{utterance}"
Context: {context}

This was not understood by the voice parser. What did the user likely mean?

Respond with ONLY a single JSON object, no prose, using this exact format:
{{
  "intent": "markWatched" | "markUnwatched" | "addToWatchlist" | "removeFromWatchlist" | "search" | "unknown",
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation",
  "suggested_patterns": ["pattern1", "pattern2"]
}}

Intent rules:
- "markWatched": User wants to mark a movie as watched (e.g., "mark as watched", "I watched this", "seen it")
- "markUnwatched": User wants to mark a movie as unwatched (e.g., "mark as unwatched", "haven't seen", "not watched")
- "addToWatchlist": User wants to add a movie to a watchlist (e.g., "add to list", "save this", "put in my list")
- "removeFromWatchlist": User wants to remove a movie from a watchlist (e.g., "remove from list", "take out")
- "search": User wants to search for a movie (e.g., "find", "look for", "search for")
- "unknown": Cannot determine intent

Suggested patterns should be lowercase phrases that would help the parser recognize this intent in the future."""


def _strip_code_fences(content: str) -> str:
    """Handle responses wrapped in markdown code blocks."""
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_analysis(content: str) -> Optional[SelfHealingAnalysis]:
    """Parse the model's JSON reply into a SelfHealingAnalysis.

    Returns None if the reply is not valid JSON. Unknown intents map to
    "unknown" and out-of-range confidences to 0.0.
    """
    try:
        result = json.loads(_strip_code_fences(content.strip()))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse OpenAI JSON response: {e}. Response: {content[:100]}")
        return None

    if not isinstance(result, dict):
        logger.warning("OpenAI response was not a JSON object")
        return None

    intent = str(result.get("intent") or "unknown")
    if intent not in KNOWN_INTENTS:
        logger.warning(f"Invalid intent '{intent}' from OpenAI. Using unknown.")
        intent = "unknown"

    try:
        confidence = float(result.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    if confidence < 0.0 or confidence > 1.0:
        logger.warning(f"Invalid confidence value {confidence} from OpenAI. Using 0.0.")
        confidence = 0.0

    patterns = result.get("suggested_patterns") or []
    if isinstance(patterns, str):
        patterns = [patterns]
    patterns = [str(p).strip().lower() for p in patterns if str(p).strip()]

    return SelfHealingAnalysis(
        intent=intent,
        confidence=confidence,
        reasoning=str(result.get("reasoning") or ""),
        suggested_patterns=patterns,
    )


class OpenAIClient:
    """Client for OpenAI API integration."""

    def __init__(self, api_key: Optional[str] = None):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.

        Note:
            If no API key is available the client still initializes, and every
            analysis returns None. This allows graceful degradation.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.client = None

        if self.api_key:
            timeout = float(os.getenv("OPENAI_TIMEOUT_SEC", str(DEFAULT_OPENAI_TIMEOUT_SEC)))
            self.client = OpenAI(api_key=self.api_key, timeout=timeout)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Self-healing analysis will not be available.")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def analyze_failed_utterance(self, utterance: str, context: str) -> Optional[SelfHealingAnalysis]:
        """Ask the model what a mishandled utterance meant.

        Args:
            utterance: Original voice transcript
            context: Where the user was (screen, movie in view)

        Returns:
            SelfHealingAnalysis, or None if:
            - API key is not configured
            - Utterance is empty
            - API call fails
            - Response parsing fails
        """
        if not self.client:
            logger.debug("OpenAI client not initialized. Skipping self-healing analysis.")
            return None

        if not utterance or not utterance.strip():
            logger.debug("Empty utterance provided. Skipping self-healing analysis.")
            return None

        try:
            prompt = SELF_HEALING_PROMPT_TEMPLATE.format(utterance=utterance, context=context)

            response = self.client.chat.completions.create(
                model=OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": f'Analyze this failed command: "{utterance}"'},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
                max_tokens=300,
            )

            content = (response.choices[0].message.content or "").strip()
            analysis = parse_analysis(content)
            if analysis is not None:
                logger.debug(f"OpenAI analysis: {analysis.intent} ({analysis.confidence})")
            return analysis

        except APIError as e:
            # Rate limits, quota issues, invalid key, etc.
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded. Please wait before retrying.")
            else:
                logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")

            # Don't log full error message as it might contain sensitive info
            return None
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {type(e).__name__}")
            return None
