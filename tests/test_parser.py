"""Tests for natural language parser."""

from datetime import datetime, timedelta, timezone

import pytest

from pomotask.config import ConfigModel
from pomotask.parser import NaturalLanguageParser, parse, parse_task_input
from pomotask.task import MarkerConvention, ParsedTask, Priority, RecurrenceType

# A Wednesday
NOW = datetime(2026, 10, 14, 9, 30)


def end_of(year, month, day):
    return datetime(year, month, day, 23, 59, 59, 999000)


class TestBasicParsing:
    """Titles, priorities and effort markers."""

    def test_plain_title(self):
        """Text without markers is only a title."""
        parsed = parse("Complete project report", now=NOW)

        assert parsed == ParsedTask(title="Complete project report")
        assert not parsed.has_metadata

    def test_priority_marker(self):
        """#high sets the priority and leaves no stray '#'."""
        parsed = parse("Complete project report #high", now=NOW)

        assert parsed.title == "Complete project report"
        assert parsed.priority == Priority.HIGH
        assert parsed.tags == ()

    @pytest.mark.parametrize("marker,expected", [
        ("#important", Priority.HIGH),
        ("#urgent", Priority.HIGH),
        ("#medium", Priority.MEDIUM),
        ("#low", Priority.LOW),
        ("#HIGH", Priority.HIGH),
    ])
    def test_priority_keywords(self, marker, expected):
        """Every priority keyword is recognised, case-insensitively."""
        parsed = parse(f"Review code {marker}", now=NOW)

        assert parsed.title == "Review code"
        assert parsed.priority == expected

    def test_first_priority_marker_wins(self):
        """All priority markers are removed; the first decides."""
        parsed = parse("Tidy desk #low #high", now=NOW)

        assert parsed.title == "Tidy desk"
        assert parsed.priority == Priority.LOW

    def test_priority_keyword_prefix_is_a_tag(self):
        """Only the exact keywords are priorities."""
        parsed = parse("Read #highway code", now=NOW)

        assert parsed.priority is None
        assert parsed.tags == ("highway",)
        assert parsed.title == "Read code"

    def test_effort_marker(self):
        """~3 sets the pomodoro estimate."""
        parsed = parse("Complete project report ~3", now=NOW)

        assert parsed.title == "Complete project report"
        assert parsed.estimated_pomodoros == 3

    @pytest.mark.parametrize("text", [
        "Write docs ~2 pomodoros",
        "Write docs 2 pomodoros",
        "Write docs ~2pomodoro",
    ])
    def test_effort_pomodoro_forms(self, text):
        """Pomodoro counts can be spelled out."""
        parsed = parse(text, now=NOW)

        assert parsed.title == "Write docs"
        assert parsed.estimated_pomodoros == 2

    def test_asap_needs_enhanced_variant(self):
        """ASAP is only a priority marker when recognize_asap is on."""
        plain = parse("Fix prod ASAP", now=NOW)
        enhanced = parse("Fix prod ASAP", now=NOW, config=ConfigModel(recognize_asap=True))

        assert plain.title == "Fix prod ASAP"
        assert plain.priority is None
        assert enhanced.title == "Fix prod"
        assert enhanced.priority == Priority.HIGH


class TestDueDates:
    """Relative and absolute due dates."""

    def setup_method(self):
        self.parser = NaturalLanguageParser(clock=lambda: NOW)

    def test_by_tomorrow(self):
        """'by tomorrow' is the next day at end of day."""
        parsed, errors = self.parser.parse("Complete project report by tomorrow")

        assert parsed.title == "Complete project report"
        assert parsed.due_date == end_of(2026, 10, 15)
        assert errors == []

    def test_today(self):
        parsed, _ = self.parser.parse("Submit form today")

        assert parsed.title == "Submit form"
        assert parsed.due_date == end_of(2026, 10, 14)

    def test_next_week(self):
        parsed, _ = self.parser.parse("Prepare presentation next week")

        assert parsed.title == "Prepare presentation"
        assert parsed.due_date == end_of(2026, 10, 21)

    @pytest.mark.parametrize("text,expected", [
        ("Standup next Friday", end_of(2026, 10, 16)),
        ("Standup next monday", end_of(2026, 10, 19)),
        ("Standup next Wednesday", end_of(2026, 10, 21)),
        ("Standup by next Tuesday", end_of(2026, 10, 20)),
    ])
    def test_next_weekday(self, text, expected):
        """Next weekday is strictly after today; same weekday means a week out."""
        parsed, _ = self.parser.parse(text)

        assert parsed.title == "Standup"
        assert parsed.due_date == expected

    @pytest.mark.parametrize("text,expected", [
        ("Standup Friday", end_of(2026, 10, 16)),
        ("Standup by Friday", end_of(2026, 10, 16)),
        ("Standup on monday", end_of(2026, 10, 19)),
        ("Standup this Saturday", end_of(2026, 10, 17)),
        ("Standup on Wednesday", end_of(2026, 10, 21)),
    ])
    def test_bare_weekday(self, text, expected):
        """A weekday on its own is its next occurrence after today."""
        parsed, _ = self.parser.parse(text)

        assert parsed.title == "Standup"
        assert parsed.due_date == expected

    def test_weekday_with_clock_time(self):
        parsed, _ = self.parser.parse("Complete project report by Friday at 3pm")

        assert parsed.title == "Complete project report"
        assert parsed.due_date == datetime(2026, 10, 16, 15, 0)

    def test_marked_day_names_are_tags(self):
        parsed, _ = self.parser.parse("Plan #friday drinks #today")

        assert parsed.title == "Plan drinks"
        assert parsed.tags == ("friday", "today")
        assert parsed.due_date is None

    def test_every_weekday_is_recurrence_not_due_date(self):
        parsed, _ = self.parser.parse("Team meeting every Friday")

        assert parsed.title == "Team meeting"
        assert parsed.due_date is None
        assert parsed.recurring_type == RecurrenceType.WEEKLY

    @pytest.mark.parametrize("text,expected", [
        ("Dentist on 10/23", end_of(2026, 10, 23)),
        ("Dentist by 12-01", end_of(2026, 12, 1)),
        ("Dentist on 10/14", end_of(2026, 10, 14)),
        ("Dentist on 3/5", end_of(2027, 3, 5)),
    ])
    def test_month_day(self, text, expected):
        """Month/day dates already past roll over to next year."""
        parsed, _ = self.parser.parse(text)

        assert parsed.title == "Dentist"
        assert parsed.due_date == expected

    @pytest.mark.parametrize("text", ["Read 3/4 of the book", "Dentist on 13/40", "Dentist on 2/30"])
    def test_month_day_needs_prefix_and_valid_date(self, text):
        parsed, _ = self.parser.parse(text)

        assert parsed.title == text
        assert parsed.due_date is None

    def test_iso_date(self):
        parsed, _ = self.parser.parse("Pay bills on 2026-11-01")

        assert parsed.title == "Pay bills"
        assert parsed.due_date == end_of(2026, 11, 1)

    def test_iso_date_with_by(self):
        parsed, _ = self.parser.parse("File taxes by 2027-04-15")

        assert parsed.title == "File taxes"
        assert parsed.due_date == end_of(2027, 4, 15)

    def test_invalid_iso_date_is_left_alone(self):
        """Non-calendar dates are not extracted and are reported."""
        parsed, errors = self.parser.parse("Pay bills on 2026-02-30")

        assert parsed.title == "Pay bills on 2026-02-30"
        assert parsed.due_date is None
        assert len(errors) == 1
        assert "Invalid date: 2026-02-30" in errors[0].message
        assert errors[0].position == len("Pay bills on ")

    def test_clock_time_overrides_time_of_day(self):
        """'at 3pm' sets the time on the date already found."""
        parsed, _ = self.parser.parse("Call John tomorrow at 3pm")

        assert parsed.title == "Call John"
        assert parsed.due_date == datetime(2026, 10, 15, 15, 0)

    @pytest.mark.parametrize("text,hour,minute", [
        ("Team sync today at 14:30", 14, 30),
        ("Team sync today at 2:30pm", 14, 30),
        ("Team sync today at 12am", 0, 0),
        ("Team sync today at 12:15 PM", 12, 15),
        ("Team sync today at 9:05 am", 9, 5),
    ])
    def test_clock_time_forms(self, text, hour, minute):
        parsed, _ = self.parser.parse(text)

        assert parsed.title == "Team sync"
        assert parsed.due_date == datetime(2026, 10, 14, hour, minute)

    def test_clock_time_without_date_means_today(self):
        parsed, _ = self.parser.parse("Call mom at 6:15pm")

        assert parsed.title == "Call mom"
        assert parsed.due_date == datetime(2026, 10, 14, 18, 15)

    @pytest.mark.parametrize("text", ["Meet at 25:00", "Meet at 13pm", "Meet at 10:75", "Meet at 10 people"])
    def test_invalid_clock_time_is_left_alone(self, text):
        parsed, _ = self.parser.parse(text)

        assert parsed.title == text
        assert parsed.due_date is None

    def test_later_date_rule_wins(self):
        """With two date phrases both are removed and the later rule wins."""
        parsed, _ = self.parser.parse("Ship it today or tomorrow")

        assert parsed.title == "Ship it or"
        assert parsed.due_date == end_of(2026, 10, 15)

    def test_now_argument_overrides_clock(self):
        parsed, _ = self.parser.parse("Pay rent tomorrow", datetime(2027, 1, 31, 8, 0))

        assert parsed.due_date == end_of(2027, 2, 1)

    def test_timezone_of_now_is_kept(self):
        aware_now = datetime(2026, 10, 14, 9, 30, tzinfo=timezone.utc)
        parsed = parse("Send invoice today", now=aware_now)

        assert parsed.due_date == datetime(2026, 10, 14, 23, 59, 59, 999000, tzinfo=timezone.utc)

    def test_default_clock_is_used(self):
        """Without an injected time the current local date is used."""
        parsed = parse("Water plants today")

        assert parsed.due_date is not None
        assert parsed.due_date.date() == datetime.now().date()
        assert parsed.due_date.hour == 23 and parsed.due_date.minute == 59

    def test_local_offset_follows_dst_change(self, eastern_time):
        """A due date past the DST switch gets that day's local offset."""
        now = datetime(2026, 10, 31, 12, 0).astimezone()
        assert now.utcoffset() == timedelta(hours=-4)

        tomorrow = parse("Clean gutters tomorrow", now=now).due_date
        timed = parse("Clean gutters tomorrow at 9am", now=now).due_date

        assert tomorrow.replace(tzinfo=None) == end_of(2026, 11, 1)
        assert tomorrow.utcoffset() == timedelta(hours=-5)
        assert timed.replace(tzinfo=None) == datetime(2026, 11, 1, 9, 0)
        assert timed.utcoffset() == timedelta(hours=-5)

    def test_fixed_zone_is_not_relocalized(self, eastern_time):
        """A non-local zone pinned by the caller is kept as given."""
        now = datetime(2026, 10, 31, 12, 0, tzinfo=timezone.utc)

        parsed = parse("Clean gutters tomorrow", now=now)

        assert parsed.due_date == datetime(2026, 11, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)


class TestTagsAndCategories:
    """Tag and category markers under both conventions."""

    def test_hash_tags_in_order(self):
        parsed = parse("Study math #study #math", now=NOW)

        assert parsed.title == "Study math"
        assert parsed.tags == ("study", "math")

    def test_numeric_tag(self):
        parsed = parse("Review PR #123 from GitHub", now=NOW)

        assert parsed.title == "Review PR from GitHub"
        assert parsed.tags == ("123",)

    def test_category_marker_last_wins(self):
        """Under the category convention '@' sets the category."""
        parsed = parse("Complete project report @work @report", now=NOW)

        assert parsed.title == "Complete project report"
        assert parsed.category == "report"
        assert parsed.tags == ()
        assert parsed.priority is None

    def test_tags_convention(self):
        """Under the tags convention '@' is a tag source and priority defaults to medium."""
        config = ConfigModel(marker_convention=MarkerConvention.TAGS)
        parsed = parse("Complete project report @work @report", now=NOW, config=config)

        assert parsed.title == "Complete project report"
        assert parsed.tags == ("work", "report")
        assert parsed.category is None
        assert parsed.priority == Priority.MEDIUM

    def test_tags_convention_mixes_markers_in_order(self):
        config = ConfigModel(marker_convention="tags")
        parsed = parse("Plan trip #travel @family #high", now=NOW, config=config)

        assert parsed.tags == ("travel", "family")
        assert parsed.priority == Priority.HIGH
        assert parsed.title == "Plan trip"

    @pytest.mark.parametrize("text", [
        "Learn C# basics",
        "Fix issue # later",
        "Meet @ noon",
        "Email bob@example.com about invoice",
        "Quick fix ~ soon",
    ])
    def test_partial_markers_stay_in_title(self, text):
        parsed = parse(text, now=NOW)

        assert parsed.title == text
        assert parsed.tags == ()
        assert parsed.category is None
        assert parsed.estimated_pomodoros is None


class TestRecurrence:
    """Recurring phrases."""

    @pytest.mark.parametrize("text,title,rtype,interval", [
        ("Meditate every day", "Meditate", RecurrenceType.DAILY, 1),
        ("Water plants every 2 days", "Water plants", RecurrenceType.DAILY, 2),
        ("Team meeting every week", "Team meeting", RecurrenceType.WEEKLY, 1),
        ("Backup every 3 weeks", "Backup", RecurrenceType.WEEKLY, 3),
        ("Pay rent every month", "Pay rent", RecurrenceType.MONTHLY, 1),
        ("Service car every 6 months", "Service car", RecurrenceType.MONTHLY, 6),
        ("Renew passport every year", "Renew passport", RecurrenceType.YEARLY, 1),
        ("Check smoke alarms every 2 years", "Check smoke alarms", RecurrenceType.YEARLY, 2),
        ("Go for a run every morning", "Go for a run", RecurrenceType.DAILY, 1),
        ("Team meeting every Monday", "Team meeting", RecurrenceType.WEEKLY, 1),
        ("Pay rent every 1st", "Pay rent", RecurrenceType.MONTHLY, 1),
        ("Invoice clients every 15th", "Invoice clients", RecurrenceType.MONTHLY, 1),
    ])
    def test_recurrence_phrases(self, text, title, rtype, interval):
        parsed = parse(text, now=NOW)

        assert parsed.title == title
        assert parsed.is_recurring is True
        assert parsed.recurring_type == rtype
        assert parsed.recurring_interval == interval

    def test_every_day_is_not_a_due_date(self):
        """'every day' must not be read as 'today'."""
        parsed = parse("Meditate every day", now=NOW)

        assert parsed.due_date is None

    def test_zero_interval_is_ignored(self):
        parsed = parse("Do nothing every 0 days", now=NOW)

        assert parsed.title == "Do nothing every 0 days"
        assert parsed.is_recurring is None
        assert parsed.recurring_type is None

    def test_not_recurring_by_default(self):
        parsed = parse("Buy milk", now=NOW)

        assert parsed.is_recurring is None
        assert parsed.recurring_type is None
        assert parsed.recurring_interval is None


class TestEdgeCases:
    """Empty input, marker-only input and idempotence."""

    def test_empty_input(self):
        parsed = parse("", now=NOW)

        assert parsed.title == ""
        assert parsed.priority is None
        assert parsed.due_date is None
        assert parsed.tags == ()
        assert parsed.estimated_pomodoros is None

    def test_empty_input_tags_convention(self):
        parsed = parse("", now=NOW, config=ConfigModel(marker_convention=MarkerConvention.TAGS))

        assert parsed.title == ""
        assert parsed.priority == Priority.MEDIUM

    def test_none_input(self):
        assert parse(None, now=NOW).title == ""

    def test_markers_only(self):
        parsed = parse("#high ~2 @work", now=NOW)

        assert parsed.title == ""
        assert parsed.priority == Priority.HIGH
        assert parsed.estimated_pomodoros == 2
        assert parsed.category == "work"

    def test_whitespace_is_collapsed(self):
        parsed = parse("  Call   John  #high   tomorrow  ", now=NOW)

        assert parsed.title == "Call John"

    def test_joined_phrase_after_removal(self):
        """Removing a marker can join a phrase; it is extracted too."""
        parsed = parse("Sync every #team day", now=NOW)

        assert parsed.title == "Sync"
        assert parsed.tags == ("team",)
        assert parsed.recurring_type == RecurrenceType.DAILY

    @pytest.mark.parametrize("text", [
        "Complete project report",
        "Call John tomorrow at 3pm #high ~3 @work",
        "Finish the quarterly financial report by next Friday #high ~4 @finance",
        "Water plants every 2 days #garden",
        "Sync every #team day",
        "Pay bills on 2026-02-30",
        "Complete project report by Friday at 3pm",
        "Dentist on 10/23 every 31st",
        "Learn C# basics with bob@example.com",
        "#high ~2 @work",
    ])
    def test_title_is_fully_cleaned(self, text):
        """Parsing the cleaned title again extracts nothing."""
        title = parse(text, now=NOW).title
        again = parse(title, now=NOW)

        assert again.title == title
        assert not again.has_metadata

    def test_composite(self):
        parsed = parse("Finish the quarterly financial report by next Friday #high ~4 @finance", now=NOW)

        assert parsed.title == "Finish the quarterly financial report"
        assert parsed.priority == Priority.HIGH
        assert parsed.estimated_pomodoros == 4
        assert parsed.category == "finance"
        assert parsed.due_date == end_of(2026, 10, 16)

    def test_everything_at_once(self):
        parsed = parse("Call John tomorrow at 3pm #high ~3 @work #client every week", now=NOW)

        assert parsed.title == "Call John"
        assert parsed.due_date == datetime(2026, 10, 15, 15, 0)
        assert parsed.priority == Priority.HIGH
        assert parsed.estimated_pomodoros == 3
        assert parsed.category == "work"
        assert parsed.tags == ("client",)
        assert parsed.recurring_type == RecurrenceType.WEEKLY


class TestParseTaskInput:
    """Diagnostics and suggestions."""

    def test_clean_input(self):
        parsed, errors, suggestions = parse_task_input("Buy groceries", now=NOW)

        assert parsed.title == "Buy groceries"
        assert errors == []
        assert suggestions == []

    def test_empty_text_warning(self):
        parsed, errors, _ = parse_task_input("   ", now=NOW)

        assert parsed.title == ""
        assert len(errors) == 1
        assert "Empty task text" in errors[0].message
        assert errors[0].severity == "warning"

    def test_metadata_only_warning(self):
        parsed, errors, _ = parse_task_input("#high @work", now=NOW)

        assert parsed.title == ""
        assert len(errors) == 1
        assert "No task description found" in errors[0].message

    def test_priority_typo_suggestion(self):
        _, _, suggestions = parse_task_input("Finish slides #hig", now=NOW)

        assert "Did you mean #high instead of #hig?" in suggestions

    def test_category_typo_suggestion(self):
        _, _, suggestions = parse_task_input("Book dentist @helth", now=NOW)

        assert "Did you mean @health instead of @helth?" in suggestions

    def test_known_category_has_no_suggestion(self):
        _, _, suggestions = parse_task_input("Book dentist @health", now=NOW)

        assert suggestions == []

    def test_tag_typo_suggestion(self):
        _, _, suggestions = parse_task_input("Write summary #repot", now=NOW, known_tags=["report", "draft"])

        assert "Did you mean #report instead of #repot?" in suggestions

    def test_parser_never_raises(self):
        """Odd input produces a task, never an exception."""
        for text in ["#", "@", "~", "at", "every", "on 9999-99-99", "next", "\n\t", "🍅 ~2"]:
            parsed, _, _ = parse_task_input(text, now=NOW)
            assert isinstance(parsed, ParsedTask)
