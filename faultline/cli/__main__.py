"""Faultline CLI - Main Entry Point.

Commands:
    render - Render a serialized exception record
    dump   - Describe a JSON or YAML document with the value inspector
"""

import sys
from typing import Any, Optional

import click
import yaml

from .. import __version__
from . import __cli_name__
from ..debug.inspector import DEFAULT_MAX_DEPTH, ValueInspector
from ..faults.flatten import FlattenException
from ..renderers import create_renderer


def _error(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)


def _record_problem(data: dict) -> Optional[str]:
    """Describe the first field of a record (or its chain) from_dict cannot take."""
    link: Any = data
    seen: set[int] = set()
    while isinstance(link, dict):
        if id(link) in seen:
            return "'previous' chain must not loop"
        seen.add(id(link))
        for key in ("message", "file", "class"):
            value = link.get(key)
            if value is not None and not isinstance(value, str):
                return f"'{key}' must be a string"
        for key in ("code", "line", "status_code"):
            value = link.get(key)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                return f"'{key}' must be an integer"
        headers = link.get("headers")
        if headers is not None and not isinstance(headers, dict):
            return "'headers' must be a mapping"
        trace = link.get("trace")
        if trace is not None:
            if not isinstance(trace, list) or not all(isinstance(frame, dict) for frame in trace):
                return "'trace' must be a list of mappings"
            if any(frame.get("args") is not None and not isinstance(frame["args"], list) for frame in trace):
                return "trace 'args' must be a list"
        link = link.get("previous")
    return None


def _load_document(stream) -> Any:
    """Parse a JSON or YAML document (JSON is read as YAML)."""
    try:
        return yaml.safe_load(stream)
    except yaml.YAMLError as e:
        _error(f"Could not parse {stream.name}: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
def cli():
    """Inspect and render faults captured by faultline."""


@cli.command()
@click.argument("record", type=click.File("r"))
@click.option(
    "--format", "fmt",
    type=click.Choice(["plain", "cli", "html", "json"]),
    default="cli",
    show_default=True,
    help="Output format",
)
@click.option("--debug", is_flag=True, help="Include trace, context and previous exceptions")
@click.option("--color/--no-color", "color", default=None, help="Force terminal colors on or off")
def render(record, fmt: str, debug: bool, color: Optional[bool]):
    """
    Render a serialized exception RECORD.

    RECORD is a JSON or YAML file holding FlattenException.to_dict()
    output, or - for stdin.

    Examples:
      faultline render crash.json
      faultline render crash.json --format html --debug > crash.html
    """
    data = _load_document(record)
    if not isinstance(data, dict):
        _error("Exception record must be a mapping")
        sys.exit(1)

    problem = _record_problem(data)
    if problem is not None:
        _error(f"Exception record is invalid: {problem}")
        sys.exit(1)

    exception = FlattenException.from_dict(data)
    renderer = create_renderer(fmt, debug=debug, colors=color)
    click.echo(renderer.render(exception), nl=fmt == "json")


@cli.command()
@click.argument("file", type=click.File("r"))
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Nesting depth before output is truncated",
)
def dump(file, max_depth: int):
    """
    Describe the contents of a JSON or YAML FILE.

    Examples:
      faultline dump settings.yaml
      faultline dump payload.json --max-depth 3
    """
    data = _load_document(file)
    click.echo(ValueInspector(max_depth=max_depth).format(data))


def main():
    """Entry point for `faultline` command."""
    cli(obj={})


if __name__ == "__main__":
    main()
