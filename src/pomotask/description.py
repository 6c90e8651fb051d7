"""Render a parsed task back into a human-readable description."""

from typing import Any, List, Mapping, Optional, Union

from .config import ConfigModel
from .recurring import RecurrenceRule
from .task import ParsedTask
from .utils.datetime import is_end_of_day

DEFAULT_DATE_FORMAT = ConfigModel.date_format
DEFAULT_TIME_FORMAT = ConfigModel.time_format


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def format_due_date(due_date, date_format: Optional[str] = None,
                    time_format: Optional[str] = None) -> str:
    """Long human date; the time is only shown when it is not end of day."""
    text = due_date.strftime(date_format or DEFAULT_DATE_FORMAT)
    if not is_end_of_day(due_date):
        text += " at " + due_date.strftime(time_format or DEFAULT_TIME_FORMAT)
    return text


def describe(task: Union[ParsedTask, Mapping[str, Any]],
             date_format: Optional[str] = None,
             time_format: Optional[str] = None) -> str:
    """Render one line per populated field, in a fixed order.

    Fields that are unset or blank produce no line at all. Mappings are
    accepted in the shape produced by ``ParsedTask.to_dict``.
    """
    if not isinstance(task, ParsedTask):
        task = ParsedTask.from_dict(task)

    lines: List[str] = []

    if not _blank(task.title):
        lines.append(f"Task: {task.title.strip()}")

    if task.priority is not None:
        lines.append(f"Priority: {task.priority.value.capitalize()}")

    if task.due_date is not None:
        lines.append(f"Due Date: {format_due_date(task.due_date, date_format, time_format)}")

    if task.estimated_pomodoros is not None:
        lines.append(f"Estimated Pomodoros: {task.estimated_pomodoros}")

    if not _blank(task.category):
        lines.append(f"Category: {task.category.strip()}")

    tags = [tag.strip() for tag in task.tags if not _blank(tag)]
    if tags:
        lines.append(f"Tags: {', '.join(tags)}")

    rule = RecurrenceRule.from_task(task)
    if rule is not None:
        line = f"Recurring: {rule.type.value}"
        if rule.interval > 1:
            line += f" ({rule.describe()})"
        lines.append(line)

    return "\n".join(lines)
