"""Deterministic command extractor for voice utterances.

This module converts a casual spoken utterance into a structured Command
(optional recommender attribution + search target).
It must be deterministic: same input -> same output. It never raises; an
utterance nothing can be extracted from yields an invalid Command.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mangovoice.models.command import Command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandTemplate:
    name: str
    pattern: re.Pattern
    attribution_group: int
    target_group: int

    def match(self, text: str) -> Optional[Tuple[str, str]]:
        m = self.pattern.match(text)
        if not m:
            return None
        return (m.group(self.attribution_group).strip(), m.group(self.target_group).strip())


def _template(name: str, verb: str, *, reverse: bool = False) -> CommandTemplate:
    pattern = re.compile(r"^(.+?)\s+" + verb + r"\s+(.+)$", re.I | re.S)
    if reverse:
        return CommandTemplate(name, pattern, attribution_group=2, target_group=1)
    return CommandTemplate(name, pattern, attribution_group=1, target_group=2)


# Priority order: the first template to match wins, later ones are never tried.
COMMAND_TEMPLATES: List[CommandTemplate] = [
    _template("recommends", r"recommends"),
    _template("suggested", r"suggested"),
    _template("said_to_watch", r"said\s+to\s+watch"),
    _template("likes", r"likes"),
    _template("liked", r"liked"),
    # "<movie> recommended by <name>"
    _template("recommended_by", r"recommended\s+by", reverse=True),
]

_ADD_RE = re.compile(r"\badd\b(.*)$", re.I | re.S)

_FILLER_PHRASES: List[re.Pattern] = [
    re.compile(r"the movie", re.I),
    re.compile(r"to my watchlist", re.I),
]


def clean_target(text: str) -> str:
    """Strip filler phrases from an extracted target and trim it.

    Filler removal repeats until the text stops changing, so cleaning an
    already-clean string is a no-op.
    """
    cleaned = text
    while True:
        previous = cleaned
        for pat in _FILLER_PHRASES:
            cleaned = pat.sub("", cleaned)
        if cleaned == previous:
            break
    return cleaned.strip()


def _match_templates(text: str) -> Optional[Tuple[str, str, str]]:
    for template in COMMAND_TEMPLATES:
        matched = template.match(text)
        if matched:
            attribution, target = matched
            return (template.name, attribution, target)
    return None


def extract_command(utterance: str) -> Command:
    """Extract a Command from an utterance.

    Tries the ordered attribution templates first, then falls back to the
    generic "add <movie>" pattern (no attribution).
    """
    text = utterance or ""
    attribution: Optional[str] = None
    target: Optional[str] = None

    templated = _match_templates(text)
    if templated:
        name, attribution, target = templated
        logger.debug(f"Template '{name}' matched: attribution={attribution!r} target={target!r}")
    else:
        m = _ADD_RE.search(text)
        if m:
            target = m.group(1)
            logger.debug(f"Generic 'add' pattern matched: target={target!r}")

    if target is not None:
        target = clean_target(target) or None

    if target is None:
        logger.debug(f"No target extracted from utterance: {text[:80]!r}")

    return Command(raw_text=utterance or "", attribution=attribution or None, target_phrase=target)


class CommandExtractor:
    """Stateless wrapper so the extractor can be injected into the router."""

    def extract(self, utterance: str) -> Command:
        return extract_command(utterance)
