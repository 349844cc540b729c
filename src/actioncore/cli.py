"""
actioncore CLI - run actions and inspect the retry reporting gate.

Commands:
    actioncore run            Run an action class and print its result as JSON
    actioncore should-report  Evaluate the retry reporting gate

Usage::

    actioncore run myapp.actions:Greet -i name=World
    actioncore run myapp.actions:Greet -i name=World --strict
    actioncore should-report --mode first_and_exhausted --attempt 3 --max-retries 5
"""

from __future__ import annotations

import importlib
import json
import logging
from typing import Any, Dict, Tuple

import click

from actioncore import __version__
from actioncore.action import Action
from actioncore.config import get_config
from actioncore.retry.gate import should_report
from actioncore.types import ReportingMode

logger = logging.getLogger(__name__)


def _load_action(target: str) -> type:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter("expected 'package.module:ClassName'", param_hint="TARGET")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name}: {exc}", param_hint="TARGET")

    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="TARGET")
    if not (isinstance(obj, type) and issubclass(obj, Action)):
        raise click.BadParameter(f"{target} is not an Action subclass", param_hint="TARGET")
    return obj


def _parse_inputs(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs; values are JSON when they parse as JSON."""
    inputs: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--input")
        try:
            inputs[key] = json.loads(raw)
        except json.JSONDecodeError:
            inputs[key] = raw
    return inputs


@click.group()
@click.version_option(version=__version__)
def main():
    """actioncore - contract-checked actions with uniform outcomes."""
    pass


@main.command("run")
@click.argument("target")
@click.option("--input", "-i", "inputs", multiple=True, help="Input as key=value (repeatable)")
@click.option("--strict", is_flag=True, help="Raise (exit 1) unless the result is ok")
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    envvar="ACTIONCORE_LOG_FORMAT",
    default=None,
    help="Lifecycle log format",
)
def run_cmd(target: str, inputs: Tuple[str, ...], strict: bool, log_format: str):
    """Run TARGET (package.module:ClassName) and print the result."""
    if log_format:
        get_config(log_format=log_format)

    action_class = _load_action(target)
    kwargs = _parse_inputs(inputs)

    if strict:
        try:
            result = action_class.run_strict(**kwargs)
        except Exception as exc:
            click.echo(f"{type(exc).__name__}: {exc}", err=True)
            raise SystemExit(1)
    else:
        result = action_class.run(**kwargs)

    click.echo(json.dumps(result.as_dict(), indent=2, default=str))
    if not result.ok:
        raise SystemExit(1)


@main.command("should-report")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ReportingMode]),
    default=None,
    help="Reporting mode (defaults to ACTIONCORE_ASYNC_EXCEPTION_REPORTING)",
)
@click.option("--attempt", type=click.IntRange(min=1), required=True, help="1-based attempt")
@click.option("--max-retries", type=click.IntRange(min=0), required=True, help="Retries allowed")
def should_report_cmd(mode: str, attempt: int, max_retries: int):
    """Print whether an exception on this attempt would be reported."""
    decision = should_report(mode, attempt, max_retries)
    effective = mode or get_config().async_exception_reporting.value
    click.echo(
        json.dumps(
            {
                "mode": effective,
                "attempt": attempt,
                "max_retries": max_retries,
                "report": decision,
            }
        )
    )


if __name__ == "__main__":
    main()
