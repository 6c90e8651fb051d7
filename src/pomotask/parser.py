"""Natural language task parser for pomotask.

Extraction happens in two passes. Rule passes find candidate spans in the
original text (priority, due date, clock time, tags, effort, category,
recurrence, in that order); a span is accepted only when it does not overlap
a span accepted by an earlier pass. Accepted spans are then cut out of the
text in position order to build the title.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fuzzywuzzy import fuzz, process

from .config import ConfigModel
from .task import MarkerConvention, ParsedTask, Priority, RecurrenceType
from .utils.datetime import (
    Clock,
    WEEKDAYS,
    at_date,
    end_of_day,
    next_weekday,
    now_local,
    parse_iso_date,
    relocalize,
    set_time_of_day,
    weekday_number,
)

logger = logging.getLogger(__name__)

_WEEKDAY_ALT = "|".join(WEEKDAYS)

PRIORITY_KEYWORDS = {
    "high": Priority.HIGH,
    "important": Priority.HIGH,
    "urgent": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "low": Priority.LOW,
}

RECURRENCE_UNITS = {
    "day": RecurrenceType.DAILY,
    "week": RecurrenceType.WEEKLY,
    "month": RecurrenceType.MONTHLY,
    "year": RecurrenceType.YEARLY,
}

# A marker must not be glued to a word or to another marker ("C#", "a@b.com").
_MARKER_START = r"(?<![\w#@~])"

PATTERNS = {
    "priority": re.compile(_MARKER_START + r"#(" + "|".join(PRIORITY_KEYWORDS) + r")(?!\w)", re.IGNORECASE),
    "asap": re.compile(r"\basap\b", re.IGNORECASE),
    "time": re.compile(
        r"\bat\s+(?:(\d{1,2}):(\d{2})(?:\s*([ap]m))?|(\d{1,2})\s*([ap]m))\b",
        re.IGNORECASE,
    ),
    "tag": re.compile(_MARKER_START + r"#(\w+)"),
    "tag_or_at": re.compile(_MARKER_START + r"[#@](\w+)"),
    "effort": re.compile(
        _MARKER_START + r"~(\d+)(?:\s*pomodoros?)?(?!\w)|\b(\d+)\s*pomodoros?\b",
        re.IGNORECASE,
    ),
    "category": re.compile(_MARKER_START + r"@(\w+)"),
    "iso_date": re.compile(r"\b(?:by|on)\s+(\d{4}-\d{2}-\d{2})\b", re.IGNORECASE),
}

# Words behind a marker ("#today", "@friday") belong to the marker.
_WORD_START = r"(?<![#@])\b"

# Due-date rules in precedence order; a later rule overrides an earlier one.
DATE_RULES = [
    ("today", re.compile(_WORD_START + r"(?:by\s+)?today\b", re.IGNORECASE)),
    ("tomorrow", re.compile(_WORD_START + r"(?:by\s+)?tomorrow\b", re.IGNORECASE)),
    ("next_week", re.compile(_WORD_START + r"(?:by\s+)?next\s+week\b", re.IGNORECASE)),
    ("next_weekday", re.compile(_WORD_START + r"(?:by\s+)?next\s+(" + _WEEKDAY_ALT + r")\b", re.IGNORECASE)),
    # "every friday" is matched here only so the recurrence pass can claim it.
    ("weekday", re.compile(
        _WORD_START + r"(every\s+)?(?:(?:by|on)\s+)?(?:this\s+)?(" + _WEEKDAY_ALT + r")\b", re.IGNORECASE)),
    # Bare "3/4" reads as a fraction, so month/day needs a by/on prefix.
    ("month_day", re.compile(_WORD_START + r"(?:by|on)\s+(\d{1,2})[/-](\d{1,2})(?![\d/-])", re.IGNORECASE)),
    ("iso", PATTERNS["iso_date"]),
]

RECURRENCE_RULES = [
    (re.compile(r"\bevery\s+(\d+)\s+(day|week|month|year)s?\b", re.IGNORECASE), None),
    (re.compile(r"\bevery\s+(day|week|month|year)\b", re.IGNORECASE), None),
    (re.compile(r"\bevery\s+(?:[12]\d|3[01]|[1-9])(?:st|nd|rd|th)\b", re.IGNORECASE), RecurrenceType.MONTHLY),
    (re.compile(r"\bevery\s+(?:morning|evening)\b", re.IGNORECASE), RecurrenceType.DAILY),
    (re.compile(r"\bevery\s+(?:" + _WEEKDAY_ALT + r")\b", re.IGNORECASE), RecurrenceType.WEEKLY),
]


@dataclass(frozen=True)
class Extraction:
    """One accepted span of the input and the field value it carries."""
    start: int
    end: int
    kind: str
    value: Any

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and self.start < end


@dataclass
class ParseError:
    """Represents a parsing problem with suggestions."""
    message: str
    position: Optional[int] = None
    suggestions: List[str] = field(default_factory=list)
    severity: str = "error"  # error, warning, info


def _clock_time(match: "re.Match") -> Optional[Tuple[int, int]]:
    """Validate an ``at ...`` match and return a 24h (hour, minute)."""
    if match.group(1) is not None:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    else:
        hour, minute, meridiem = int(match.group(4)), 0, match.group(5)

    if minute > 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour, minute


class NaturalLanguageParser:
    """Turns one line of free text into a ParsedTask."""

    def __init__(self, config: Optional[ConfigModel] = None, clock: Optional[Clock] = None):
        self.config = config or ConfigModel()
        self.clock = clock or now_local

    @property
    def convention(self) -> MarkerConvention:
        return self.config.marker_convention

    def parse(self, input_text: Optional[str], now: Optional[datetime] = None) -> Tuple[ParsedTask, List[ParseError]]:
        """Parse input into a ParsedTask plus non-fatal diagnostics."""
        text = input_text or ""
        now = now or self.clock()
        errors: List[ParseError] = []

        if not text.strip():
            errors.append(ParseError("Empty task text", suggestions=["Add a task description"],
                                     severity="warning"))
            return self._finish({}, [], "", now), errors

        errors.extend(self._invalid_dates(text))

        fields: Dict[str, Any] = {}
        tags: List[str] = []
        title = text
        # Cutting spans out can bring new phrases together ("every #x day"),
        # so re-run on the title until nothing more is found.
        while True:
            extractions = self._extract(title, now)
            if not extractions:
                break
            round_fields, round_tags = self._collect(extractions)
            for key, value in round_fields.items():
                fields.setdefault(key, value)
            tags.extend(round_tags)
            title = self._strip(title, extractions)

        if not title and text.strip():
            errors.append(ParseError(
                "No task description found after parsing metadata",
                suggestions=["Ensure task has descriptive text along with metadata"],
                severity="warning",
            ))

        return self._finish(fields, tags, title, now), errors

    def _extract(self, text: str, now: datetime) -> List[Extraction]:
        """Run every rule pass once and return the accepted spans."""
        accepted: List[Extraction] = []

        def claim(match: "re.Match", kind: str, value: Any) -> bool:
            start, end = match.span()
            if any(e.overlaps(start, end) for e in accepted):
                return False
            accepted.append(Extraction(start, end, kind, value))
            logger.debug(f"Matched {kind}={value!r} from {match.group(0)!r}")
            return True

        for match in PATTERNS["priority"].finditer(text):
            claim(match, "priority", PRIORITY_KEYWORDS[match.group(1).lower()])
        if self.config.recognize_asap:
            for match in PATTERNS["asap"].finditer(text):
                claim(match, "priority", Priority.HIGH)

        for name, pattern in DATE_RULES:
            for match in pattern.finditer(text):
                due = self._resolve_date(name, match, now)
                if due is not None:
                    claim(match, "due_date", relocalize(due, now))

        for match in PATTERNS["time"].finditer(text):
            clock_time = _clock_time(match)
            if clock_time is not None:
                claim(match, "time", clock_time)

        tag_pattern = PATTERNS["tag_or_at"] if self.convention == MarkerConvention.TAGS else PATTERNS["tag"]
        for match in tag_pattern.finditer(text):
            claim(match, "tag", match.group(1))

        for match in PATTERNS["effort"].finditer(text):
            claim(match, "effort", int(match.group(1) or match.group(2)))

        if self.convention == MarkerConvention.CATEGORY:
            for match in PATTERNS["category"].finditer(text):
                claim(match, "category", match.group(1))

        for pattern, fixed_type in RECURRENCE_RULES:
            for match in pattern.finditer(text):
                rule = self._resolve_recurrence(match, fixed_type)
                if rule is not None:
                    claim(match, "recurrence", rule)

        return accepted

    def _resolve_date(self, name: str, match: "re.Match", now: datetime) -> Optional[datetime]:
        if name == "today":
            return end_of_day(now)
        if name == "tomorrow":
            return end_of_day(now + timedelta(days=1))
        if name == "next_week":
            return end_of_day(now + timedelta(days=7))
        if name == "next_weekday":
            return end_of_day(next_weekday(now, weekday_number(match.group(1))))
        if name == "weekday":
            if match.group(1):
                return None
            return end_of_day(next_weekday(now, weekday_number(match.group(2))))
        if name == "month_day":
            return self._upcoming_month_day(int(match.group(1)), int(match.group(2)), now)
        if name == "iso":
            day = parse_iso_date(match.group(1))
            return at_date(now, day) if day else None
        return None

    @staticmethod
    def _upcoming_month_day(month: int, day: int, now: datetime) -> Optional[datetime]:
        """Resolve month/day to this year, or next year once it has passed."""
        try:
            target = date(now.year, month, day)
            if target < now.date():
                target = target.replace(year=now.year + 1)
        except ValueError:
            return None
        return at_date(now, target)

    def _resolve_recurrence(self, match: "re.Match",
                            fixed_type: Optional[RecurrenceType]) -> Optional[Tuple[RecurrenceType, int]]:
        if fixed_type is not None:
            return fixed_type, 1
        groups = match.groups()
        if len(groups) == 2:
            interval = int(groups[0])
            if interval < 1:
                return None
            return RECURRENCE_UNITS[groups[1].lower()], interval
        return RECURRENCE_UNITS[groups[0].lower()], 1

    def _collect(self, extractions: Iterable[Extraction]) -> Tuple[Dict[str, Any], List[str]]:
        """Fold accepted spans into field values."""
        ordered = sorted(extractions, key=lambda e: e.start)
        fields: Dict[str, Any] = {}
        tags: List[str] = []

        for ext in ordered:
            if ext.kind == "tag":
                tags.append(ext.value)
            elif ext.kind in ("priority", "effort", "recurrence"):
                fields.setdefault(ext.kind, ext.value)
            elif ext.kind == "category":
                fields["category"] = ext.value

        # Dates: later rule wins, within a rule the later occurrence wins.
        # Extractions were appended rule by rule, so insertion order is rule order.
        for ext in extractions:
            if ext.kind == "due_date":
                fields["due_date"] = ext.value
        for ext in extractions:
            if ext.kind == "time":
                fields["time"] = ext.value

        return fields, tags

    @staticmethod
    def _strip(text: str, extractions: Iterable[Extraction]) -> str:
        """Remove accepted spans and normalise whitespace."""
        pieces = []
        pos = 0
        for ext in sorted(extractions, key=lambda e: e.start):
            pieces.append(text[pos:ext.start])
            pos = ext.end
        pieces.append(text[pos:])
        return " ".join(" ".join(pieces).split())

    def _finish(self, fields: Dict[str, Any], tags: List[str], title: str, now: datetime) -> ParsedTask:
        due_date = fields.get("due_date")
        clock_time = fields.get("time")
        if clock_time is not None:
            base = due_date if due_date is not None else now
            due_date = relocalize(set_time_of_day(base, *clock_time), now)

        priority = fields.get("priority")
        if priority is None and self.convention == MarkerConvention.TAGS:
            priority = Priority.MEDIUM

        recurrence = fields.get("recurrence")
        return ParsedTask(
            title=title,
            priority=priority,
            due_date=due_date,
            estimated_pomodoros=fields.get("effort"),
            tags=tuple(tags),
            category=fields.get("category"),
            is_recurring=True if recurrence else None,
            recurring_type=recurrence[0] if recurrence else None,
            recurring_interval=recurrence[1] if recurrence else None,
        )

    def _invalid_dates(self, text: str) -> List[ParseError]:
        errors = []
        for match in PATTERNS["iso_date"].finditer(text):
            if parse_iso_date(match.group(1)) is None:
                errors.append(ParseError(
                    f"Invalid date: {match.group(1)}",
                    position=match.start(1),
                    suggestions=["Use a calendar date in YYYY-MM-DD form"],
                ))
        return errors

    def suggest_corrections(self, input_text: str,
                            available_categories: Optional[List[str]] = None,
                            available_tags: Optional[List[str]] = None) -> List[str]:
        """Suggest fixes for markers that look like typos."""
        suggestions = []
        text = input_text or ""
        priority_words = list(PRIORITY_KEYWORDS)

        tag_pattern = PATTERNS["tag_or_at"] if self.convention == MarkerConvention.TAGS else PATTERNS["tag"]
        for match in tag_pattern.finditer(text):
            marker, tag = match.group(0)[0], match.group(1)
            if tag.lower() in PRIORITY_KEYWORDS:
                continue
            if marker == "#":
                close = process.extractBests(tag.lower(), priority_words, scorer=fuzz.ratio,
                                             score_cutoff=70, limit=1)
                if close:
                    suggestions.append(f"Did you mean #{close[0][0]} instead of #{tag}?")
                    continue
            if available_tags and tag not in available_tags:
                close = process.extractBests(tag, available_tags, scorer=fuzz.ratio,
                                             score_cutoff=70, limit=2)
                if close:
                    suggestions.append(f"Did you mean {marker}{close[0][0]} instead of {marker}{tag}?")

        if self.convention == MarkerConvention.CATEGORY:
            categories = available_categories or self.config.default_categories
            for category in PATTERNS["category"].findall(text):
                if category in categories:
                    continue
                close = process.extractBests(category, categories, scorer=fuzz.ratio,
                                             score_cutoff=70, limit=2)
                if close:
                    suggestions.append(f"Did you mean @{close[0][0]} instead of @{category}?")

        return suggestions


def parse(input_text: Optional[str], now: Optional[datetime] = None,
          config: Optional[ConfigModel] = None) -> ParsedTask:
    """Parse one line of free text into a ParsedTask.

    ``now`` pins the reference time for relative dates; when omitted the
    current local time is used.
    """
    parsed, _ = NaturalLanguageParser(config).parse(input_text, now)
    return parsed


def parse_task_input(input_text: Optional[str], config: Optional[ConfigModel] = None,
                     now: Optional[datetime] = None,
                     known_categories: Optional[List[str]] = None,
                     known_tags: Optional[List[str]] = None) -> Tuple[ParsedTask, List[ParseError], List[str]]:
    """Main function to parse task input with diagnostics and suggestions."""
    parser = NaturalLanguageParser(config)
    parsed, errors = parser.parse(input_text, now)
    suggestions = parser.suggest_corrections(input_text, known_categories, known_tags)
    return parsed, errors, suggestions
