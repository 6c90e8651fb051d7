"""Rule-based enhancement pass over parser output.

Fills fields the basic parser left empty using keyword heuristics over the raw
input. It never overwrites a value the parser set, except that a MEDIUM
priority counts as "default" and may be raised or lowered.
"""

import dataclasses
import logging
import math
import re
from datetime import datetime
from typing import Optional

from .config import ConfigModel
from .parser import NaturalLanguageParser
from .task import ParsedTask, Priority

logger = logging.getLogger(__name__)

HIGH_PRIORITY_INDICATORS = ("urgent", "asap", "important", "critical", "high priority")
LOW_PRIORITY_INDICATORS = ("not urgent", "can wait", "low priority", "whenever", "someday")

DURATION_PATTERN = re.compile(r"(\d+)\s*(hours?|hrs?|minutes?|mins?)\b", re.IGNORECASE)


class TaskEnhancer:
    """Second heuristic pass that only fills gaps."""

    def __init__(self, config: Optional[ConfigModel] = None):
        self.config = config or ConfigModel()

    @property
    def category_keywords(self):
        return tuple(word.lower() for word in self.config.category_keywords)

    def enhance(self, raw: str, basic: ParsedTask) -> ParsedTask:
        raw = raw or ""
        lowered = raw.lower()
        updates = {}

        if basic.estimated_pomodoros is None:
            pomodoros = self._pomodoros_from_duration(raw)
            if pomodoros is not None:
                updates["estimated_pomodoros"] = pomodoros

        priority = basic.priority
        if priority in (None, Priority.MEDIUM):
            keyword_priority = self._priority_from_keywords(lowered)
            if keyword_priority is not None:
                priority = keyword_priority
        if priority in (None, Priority.MEDIUM) and any(tag.lower() == "urgent" for tag in basic.tags):
            priority = Priority.HIGH
        if priority is None:
            priority = Priority.MEDIUM
        if priority != basic.priority:
            updates["priority"] = priority

        if basic.category is None:
            category = self._category_from_tags(basic) or self._category_from_keywords(lowered)
            if category is not None:
                updates["category"] = category

        if updates:
            logger.debug(f"Enhanced fields: {updates}")
        return dataclasses.replace(basic, **updates)

    def _pomodoros_from_duration(self, raw: str) -> Optional[int]:
        match = DURATION_PATTERN.search(raw)
        if not match:
            return None
        amount = int(match.group(1))
        minutes = amount * 60 if match.group(2).lower().startswith("h") else amount
        return math.ceil(minutes / self.config.pomodoro_minutes)

    @staticmethod
    def _priority_from_keywords(lowered: str) -> Optional[Priority]:
        if any(word in lowered for word in HIGH_PRIORITY_INDICATORS):
            return Priority.HIGH
        if any(word in lowered for word in LOW_PRIORITY_INDICATORS):
            return Priority.LOW
        return None

    def _category_from_tags(self, task: ParsedTask) -> Optional[str]:
        keywords = self.category_keywords
        for tag in task.tags:
            if tag.lower() in keywords:
                return tag.lower()
        return None

    def _category_from_keywords(self, lowered: str) -> Optional[str]:
        for word in self.category_keywords:
            if word in lowered:
                return word
        return None


def enhance(raw: str, basic: ParsedTask, config: Optional[ConfigModel] = None) -> ParsedTask:
    """Fill gaps in ``basic`` from keywords found in ``raw``."""
    return TaskEnhancer(config).enhance(raw, basic)


def parse_enhanced(raw: str, now: Optional[datetime] = None,
                   config: Optional[ConfigModel] = None) -> ParsedTask:
    """Parse with ASAP recognised as a priority marker, then enhance."""
    config = dataclasses.replace(config or ConfigModel(), recognize_asap=True)
    basic, _ = NaturalLanguageParser(config).parse(raw, now)
    return TaskEnhancer(config).enhance(raw, basic)
