"""
Recurrence rules for parsed tasks

Computes the next due date of a recurring task from its (type, interval)
rule. Month and year steps clamp to the last day of the target month, so
January 31st plus one month is the last day of February.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .task import ParsedTask, RecurrenceType
from .utils.datetime import add_months, relocalize, start_of_day

UNIT_NAMES = {
    RecurrenceType.DAILY: "day",
    RecurrenceType.WEEKLY: "week",
    RecurrenceType.MONTHLY: "month",
    RecurrenceType.YEARLY: "year",
}


@dataclass(frozen=True)
class RecurrenceRule:
    """Repeat every ``interval`` units of ``type``"""
    type: RecurrenceType
    interval: int = 1

    def __post_init__(self):
        if self.interval < 1:
            raise ValueError(f"Recurrence interval must be at least 1, got {self.interval}")

    @classmethod
    def from_task(cls, task: ParsedTask) -> Optional["RecurrenceRule"]:
        """Rule carried by a parsed task, or None if it does not recur"""
        if not task.is_recurring or task.recurring_type is None:
            return None
        return cls(task.recurring_type, max(task.recurring_interval or 1, 1))

    def next_occurrence(self, after: datetime) -> datetime:
        """Calculate the occurrence one interval after ``after``"""
        if self.type == RecurrenceType.DAILY:
            following = after + timedelta(days=self.interval)
        elif self.type == RecurrenceType.WEEKLY:
            following = after + timedelta(weeks=self.interval)
        elif self.type == RecurrenceType.MONTHLY:
            following = add_months(after, self.interval)
        else:
            following = add_months(after, 12 * self.interval)
        return relocalize(following, after)

    def describe(self) -> str:
        """'every 2 weeks' style text; 'weekly' for an interval of one"""
        if self.interval == 1:
            return self.type.value
        return f"every {self.interval} {UNIT_NAMES[self.type]}s"


def next_due_date(task: ParsedTask, now: datetime) -> Optional[datetime]:
    """Next due date of a recurring task.

    Steps from the task's own due date, or from the start of ``now``'s day
    when the task has none. Returns None for tasks that do not recur.
    """
    rule = RecurrenceRule.from_task(task)
    if rule is None:
        return None
    base = task.due_date if task.due_date is not None else start_of_day(now)
    return rule.next_occurrence(base)
