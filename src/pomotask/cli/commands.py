"""Command-line interface for pomotask."""

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import Config, ConfigModel, default_config_path, get_config, save_config
from ..description import describe, format_due_date
from ..enhance import TaskEnhancer
from ..parser import NaturalLanguageParser, ParseError
from ..recurring import RecurrenceRule, next_due_date
from ..task import MarkerConvention, ParsedTask
from ..utils.datetime import now_local, parse_now


def get_console() -> Console:
    """Console honouring the configured colour preference."""
    return Console(no_color=not get_config().use_color, highlight=False)


def _now_option(ctx, param, value):
    try:
        return parse_now(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not an ISO-8601 timestamp")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _config_for(convention: str = None, enhance: bool = False) -> ConfigModel:
    config = get_config()
    changes = {}
    if convention:
        changes["marker_convention"] = MarkerConvention(convention)
    if enhance:
        changes["recognize_asap"] = True
    return dataclasses.replace(config, **changes) if changes else config


def _print_diagnostics(console: Console, errors: List[ParseError], suggestions: List[str]) -> None:
    for error in errors:
        style = "red" if error.severity == "error" else "yellow"
        console.print(f"[{style}]{error.severity.capitalize()}: {escape(error.message)}[/{style}]")
        for hint in error.suggestions:
            console.print(f"  [dim]{hint}[/dim]")
    for suggestion in suggestions:
        console.print(f"[cyan]Suggestion: {suggestion}[/cyan]")


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config_path, verbose):
    """pomotask - turn free text into structured Pomodoro tasks."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['config_path'] = Path(config_path) if config_path else None
    _configure_logging(verbose)

    Config.reload(ctx.obj['config_path'])


@cli.command()
@click.argument("words", nargs=-1, required=True)
@click.option("--now", callback=_now_option, help="Reference time for relative dates (ISO-8601)")
@click.option("--convention", type=click.Choice([c.value for c in MarkerConvention]),
              help="How @word markers are read")
@click.option("--enhance", is_flag=True, help="Apply the keyword enhancement pass")
@click.option("--json", "as_json", is_flag=True, help="Print the parsed task as JSON")
def parse(words, now, convention, enhance, as_json):
    """Parse a task written in natural language.

    Examples:
      pomotask parse "Call John tomorrow at 3pm #high ~3 @work"
      pomotask parse "Water plants every 2 days"
      pomotask parse --enhance "Write report in 2 hours ASAP"
    """
    text = " ".join(words)
    config = _config_for(convention, enhance)
    parser = NaturalLanguageParser(config)

    parsed, errors = parser.parse(text, now)
    suggestions = parser.suggest_corrections(text, config.known_categories or None)
    if enhance:
        parsed = TaskEnhancer(config).enhance(text, parsed)

    if as_json:
        click.echo(json.dumps(parsed.to_dict(), indent=2))
        return

    console = get_console()
    description = describe(parsed, config.date_format, config.time_format)
    body = escape(description) if description else "[dim](empty task)[/dim]"
    console.print(Panel(body, title="Parsed Task", expand=False))
    _print_diagnostics(console, errors, suggestions)


@cli.command(name="describe")
@click.argument("source", type=click.File("r"), default="-")
def describe_command(source):
    """Describe a task given as JSON (as printed by `parse --json`)."""
    console = get_console()
    config = get_config()
    try:
        task = ParsedTask.from_dict(json.load(source))
    except ValueError as e:
        console.print(f"[red]Invalid task: {escape(str(e))}[/red]")
        sys.exit(1)

    click.echo(describe(task, config.date_format, config.time_format))


@cli.command(name="next")
@click.argument("words", nargs=-1, required=True)
@click.option("--now", callback=_now_option, help="Reference time for relative dates (ISO-8601)")
@click.option("--count", "-n", default=1, show_default=True, type=click.IntRange(1, 52),
              help="Number of upcoming occurrences to list")
def next_command(words, now, count):
    """Show upcoming occurrences of a recurring task."""
    console = get_console()
    config = get_config()
    now = now or now_local()
    parsed, _ = NaturalLanguageParser(config).parse(" ".join(words), now)

    rule = RecurrenceRule.from_task(parsed)
    if rule is None:
        console.print("[yellow]Task does not recur[/yellow]")
        sys.exit(1)

    table = Table(title=escape(f"{parsed.title or 'Task'} ({rule.describe()})"))
    table.add_column("#", justify="right")
    table.add_column("Due")

    # A task with its own due date starts the list there.
    due = parsed.due_date if parsed.due_date is not None else next_due_date(parsed, now)
    for index in range(1, count + 1):
        table.add_row(str(index), format_due_date(due, config.date_format, config.time_format))
        due = rule.next_occurrence(due)

    console.print(table)


@cli.group(name="config")
def config_group():
    """Show or create the configuration file."""


@config_group.command(name="show")
def config_show():
    """Print the active configuration as YAML."""
    click.echo(get_config().to_yaml(), nl=False)


@config_group.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_init(ctx, force):
    """Write a default configuration file."""
    console = get_console()
    path = ctx.obj.get('config_path') or default_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {path} (use --force to overwrite)[/yellow]")
        sys.exit(1)

    written = save_config(ConfigModel(), path)
    Config.reload(written)
    console.print(f"[green]Configuration written to {written}[/green]")


def main(*args, **kwargs):
    """Run the pomotask command group."""
    return cli(*args, **kwargs)


if __name__ == "__main__":
    main()
