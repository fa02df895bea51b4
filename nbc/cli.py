"""CLI entry point for the nbc tool."""

import asyncio
import dataclasses
import logging
import sys

import click

from nbc.aggregator import aggregate
from nbc.config import ConfigError, NbcConfig, load_config, validate
from nbc.frontier import CrawlAbortedError, crawl
from nbc.geoip import classify
from nbc.output import render

logger = logging.getLogger(__name__)

FORMATS = ("table", "json")

EXIT_CONFIG_ERROR = 1
EXIT_CRAWL_ABORTED = 2


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to YAML config file (default: ~/.nbc/config.yaml).",
)
@click.option(
    "--seed",
    "-s",
    "seeds",
    multiple=True,
    help="Seed peer address; repeat for several (overrides config).",
)
@click.option(
    "--concurrency",
    type=int,
    default=None,
    help="Maximum number of peers queried at once.",
)
@click.option(
    "--retries",
    type=int,
    default=None,
    help="Extra tries per endpoint after a failed request.",
)
@click.option(
    "--timeout",
    "request_timeout",
    type=float,
    default=None,
    help="Per-request timeout in seconds.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    default="table",
    type=click.Choice(FORMATS, case_sensitive=False),
    show_default=True,
    help="Output format.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    config_path: str | None,
    seeds: tuple[str, ...],
    concurrency: int | None,
    retries: int | None,
    request_timeout: float | None,
    output_format: str,
    verbose: bool,
) -> None:
    """Crawl a peer-to-peer network's neighbor listings and report its peers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        cfg = load_config(config_path)
        cfg = _apply_overrides(
            cfg,
            seeds=list(seeds) or None,
            concurrency=concurrency,
            retries=retries,
            request_timeout=request_timeout,
        )
    except (ConfigError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    logger.debug("Config loaded: %s", cfg)

    try:
        result = asyncio.run(crawl(cfg))
    except CrawlAbortedError as exc:
        logger.exception("Crawl aborted")
        click.echo(f"Crawl aborted: {exc}", err=True)
        sys.exit(EXIT_CRAWL_ABORTED)

    peers = classify(result, cfg)
    report = aggregate(peers, result)
    render(report, output_format.lower())


def _apply_overrides(cfg: NbcConfig, **overrides: object) -> NbcConfig:
    """Replace config fields with CLI values that were actually given."""
    given = {name: value for name, value in overrides.items() if value is not None}
    if not given:
        return cfg
    return validate(dataclasses.replace(cfg, **given))
