"""Command-line entry point for the token risk engine."""

import json
import sys
from typing import Optional

import click

from token_risk.analyzer import RiskAnalyzer
from token_risk.config import get_settings
from token_risk.errors import ConfigurationError, InvalidInputError
from token_risk.logging_config import configure_logging
from token_risk.scoring.archetype import TokenArchetype
from token_risk.scoring.weights import PROFILES

EXIT_INVALID_INPUT = 2


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level (defaults to TOKEN_RISK_LOG_LEVEL or INFO)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str] = None):
    """Score blockchain token risk from normalized token data."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    configure_logging(log_level or settings.logging.LOG_LEVEL, settings.logging.LOG_JSON)
    ctx.obj = settings


@cli.command()
@click.argument("token_file", type=click.File("r"))
@click.option(
    "--profile",
    type=click.Choice([a.value for a in TokenArchetype], case_sensitive=False),
    help="Force a weight profile instead of classifying the token",
)
@click.pass_obj
def analyze(settings, token_file, profile: Optional[str] = None):
    """Analyze the token described by TOKEN_FILE (JSON, '-' for stdin)."""
    try:
        payload = json.load(token_file)
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON: {e}", err=True)
        sys.exit(EXIT_INVALID_INPUT)

    analyzer = RiskAnalyzer(settings=settings)
    try:
        result = analyzer.analyze_risk(payload, profile=profile)
    except InvalidInputError as e:
        click.echo(json.dumps(e.to_dict(), indent=2), err=True)
        sys.exit(EXIT_INVALID_INPUT)

    click.echo(result.model_dump_json(indent=2))


@cli.command()
def profiles():
    """Print the weight profiles as JSON."""
    data = {archetype.value: profile.to_dict() for archetype, profile in PROFILES.items()}
    click.echo(json.dumps(data, indent=2))


def main():
    """Run the token risk CLI."""
    cli()


if __name__ == "__main__":
    main()
