"""pomotask - turn one line of free text into a structured Pomodoro task."""

__version__ = "0.1.0"
__author__ = "pomotask Team"

from .task import ParsedTask, Priority, RecurrenceType, MarkerConvention
from .config import ConfigModel
from .parser import NaturalLanguageParser, ParseError, parse, parse_task_input
from .description import describe
from .enhance import TaskEnhancer, enhance, parse_enhanced
from .recurring import RecurrenceRule, next_due_date

__all__ = [
    "ParsedTask",
    "Priority",
    "RecurrenceType",
    "MarkerConvention",
    "ConfigModel",
    "NaturalLanguageParser",
    "ParseError",
    "parse",
    "parse_task_input",
    "describe",
    "TaskEnhancer",
    "enhance",
    "parse_enhanced",
    "RecurrenceRule",
    "next_due_date",
    "__version__",
]
