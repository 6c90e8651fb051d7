"""Parsed task data model for pomotask."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from datetime import datetime
from enum import Enum


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrenceType(Enum):
    """Units a recurring task repeats in."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class MarkerConvention(Enum):
    """How ``@word`` markers are read.

    CATEGORY: ``@word`` is the category, ``#word`` is a tag.
    TAGS: ``@word`` and ``#word`` are both tags and there is no category.
    """
    CATEGORY = "category"
    TAGS = "tags"


# Wire names used by to_dict/from_dict, keyed by dataclass field.
_WIRE_NAMES = {
    "title": "title",
    "priority": "priority",
    "due_date": "dueDate",
    "estimated_pomodoros": "estimatedPomodoros",
    "tags": "tags",
    "category": "category",
    "is_recurring": "isRecurring",
    "recurring_type": "recurringType",
    "recurring_interval": "recurringInterval",
}


@dataclass(frozen=True)
class ParsedTask:
    """Structured task extracted from one line of free text."""

    title: str = ""
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    estimated_pomodoros: Optional[int] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    category: Optional[str] = None

    # Recurrence
    is_recurring: Optional[bool] = None
    recurring_type: Optional[RecurrenceType] = None
    recurring_interval: Optional[int] = None

    def __post_init__(self):
        # Accept any iterable of tags but always store a tuple
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags or ()))

    @property
    def has_metadata(self) -> bool:
        """True when any field besides the title was extracted."""
        return any([
            self.priority is not None,
            self.due_date is not None,
            self.estimated_pomodoros is not None,
            bool(self.tags),
            self.category is not None,
            bool(self.is_recurring),
        ])

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict, omitting unset fields."""
        data: Dict[str, Any] = {"title": self.title}
        if self.priority is not None:
            data["priority"] = self.priority.value
        if self.due_date is not None:
            data["dueDate"] = self.due_date.isoformat()
        if self.estimated_pomodoros is not None:
            data["estimatedPomodoros"] = self.estimated_pomodoros
        if self.tags:
            data["tags"] = list(self.tags)
        if self.category is not None:
            data["category"] = self.category
        if self.is_recurring:
            data["isRecurring"] = True
            if self.recurring_type is not None:
                data["recurringType"] = self.recurring_type.value
            if self.recurring_interval is not None:
                data["recurringInterval"] = self.recurring_interval
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParsedTask":
        """Build a ParsedTask from camelCase or snake_case keys.

        Unknown keys are ignored. Raises ValueError for values that cannot be
        converted (bad priority, recurrence type or date).
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected a mapping, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for attr, wire in _WIRE_NAMES.items():
            if wire in data:
                values[attr] = data[wire]
            elif attr in data:
                values[attr] = data[attr]

        title = values.get("title")
        values["title"] = "" if title is None else str(title)

        # Whitespace-only optional values count as unset
        for attr, value in list(values.items()):
            if attr != "title" and isinstance(value, str) and not value.strip():
                values[attr] = None

        priority = values.get("priority")
        if priority is not None and not isinstance(priority, Priority):
            try:
                values["priority"] = Priority(str(priority).lower())
            except ValueError:
                raise ValueError(f"Invalid priority: {priority}")

        due_date = values.get("due_date")
        if isinstance(due_date, str):
            try:
                values["due_date"] = datetime.fromisoformat(due_date)
            except ValueError:
                raise ValueError(f"Invalid due date: {due_date}")

        recurring_type = values.get("recurring_type")
        if recurring_type is not None and not isinstance(recurring_type, RecurrenceType):
            try:
                values["recurring_type"] = RecurrenceType(str(recurring_type).lower())
            except ValueError:
                raise ValueError(f"Invalid recurrence type: {recurring_type}")

        for int_field in ("estimated_pomodoros", "recurring_interval"):
            if values.get(int_field) is not None:
                try:
                    values[int_field] = int(values[int_field])
                except (TypeError, ValueError):
                    raise ValueError(f"Invalid {_WIRE_NAMES[int_field]}: {values[int_field]}")

        tags = values.get("tags")
        if tags is None:
            values["tags"] = ()
        elif isinstance(tags, str):
            values["tags"] = (tags,)
        else:
            values["tags"] = tuple(str(tag) for tag in tags)

        return cls(**values)
