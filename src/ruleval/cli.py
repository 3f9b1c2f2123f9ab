"""Command-line interface for ruleval.

This module provides the CLI commands for evaluating and checking
expressions.
"""

import json
from pathlib import Path
from typing import Any, NoReturn

import click

from ruleval.core.config import Settings, get_settings
from ruleval.core.logging import LoggingContext, configure_logging, get_logger
from ruleval.core.rules import RuleSyntaxError, RuleValidator, registry, run


@click.group()
@click.version_option(version="0.1.0", prog_name="ruleval")
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug mode (implies --log-level DEBUG)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides RULEVAL_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_level: str | None) -> None:
    """ruleval - evaluate rule expressions against structured data."""
    settings = get_settings()

    # Apply CLI overrides
    updates: dict[str, Any] = {}
    if debug:
        updates["debug"] = True
        updates["log_level"] = log_level or "DEBUG"
    elif log_level:
        updates["log_level"] = log_level
    if updates:
        settings = settings.model_copy(update=updates)

    configure_logging(settings)
    ctx.obj = settings


def _load_environment(env_json: str | None, env_file: str | None) -> dict[str, Any]:
    """Merge bindings from --env-file and --env; --env wins on conflicts."""
    environment: dict[str, Any] = {}
    sources = []
    if env_file is not None:
        sources.append((f"--env-file {env_file}", Path(env_file).read_text(encoding="utf-8")))
    if env_json is not None:
        sources.append(("--env", env_json))

    for label, text in sources:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint=label) from e
        if not isinstance(data, dict):
            raise click.BadParameter("must be a JSON object", param_hint=label)
        environment.update(data)

    return environment


@cli.command("eval")
@click.argument("expression")
@click.option(
    "--env",
    "env_json",
    type=str,
    default=None,
    help="Environment bindings as a JSON object",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to a JSON file holding environment bindings",
)
@click.pass_obj
def eval_command(
    settings: Settings, expression: str, env_json: str | None, env_file: str | None
) -> None:
    """Evaluate EXPRESSION and print the result as JSON."""
    environment = _load_environment(env_json, env_file)

    with LoggingContext(command="eval"):
        result = run(expression, environment, settings)

    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        raise SystemExit(1)

    click.echo(json.dumps(result.value.to_python()))


@cli.command()
@click.argument("expression")
@click.pass_obj
def check(settings: Settings, expression: str) -> None:
    """Check that EXPRESSION parses and only calls known functions."""
    logger = get_logger(__name__)
    validator = RuleValidator(max_depth=settings.max_nesting_depth)

    try:
        validator.validate(expression)
    except RuleSyntaxError as e:
        click.echo(f"Error: {e}", err=True)
        logger.info("Expression rejected", expression=expression, error=str(e))
        raise SystemExit(1)

    click.echo("OK")


@cli.command()
def functions() -> None:
    """List the built-in functions and their arity."""
    for function in registry:
        summary = (function.callback.__doc__ or "").strip().splitlines()
        click.echo(f"{function.name:<16}{function.arity():<8}{summary[0] if summary else ''}")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `ruleval` command is run
    or when using `python -m ruleval`.
    """
    cli()


if __name__ == "__main__":
    main()
