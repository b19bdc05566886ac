"""Command line entry points."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from boostedge.aliases.compiler import (
    DEFAULT_MASTER_PATH,
    DEFAULT_OVERLAY_DIR,
    DEFAULT_SYNONYMS_PATH,
    AliasCompileReport,
    compile_aliases,
    load_sources,
)
from boostedge.aliases.index import AliasIndex
from boostedge.common.config import AppConfig, load_config
from boostedge.common.logging import get_logger, setup_logging
from boostedge.common.time_utils import format_iso, utc_now
from boostedge.exchange.client import BetfairClient
from boostedge.offers.models import ClassifiedOffer
from boostedge.pipeline.engine import OfferEngine, OfferOutcome, select_published
from boostedge.pipeline.skiplog import SkipLog

logger = get_logger(__name__)

LINT_FAILED_EXIT_CODE = 2


def read_offers(path: str | Path) -> list[ClassifiedOffer]:
    """Read classified offers from ``{"offers": [...]}`` JSON.

    A bare list of offer objects is also accepted.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    records = data.get("offers", []) if isinstance(data, dict) else data
    return [ClassifiedOffer.from_dict(record) for record in records]


def summarize(
    outcomes: list[OfferOutcome],
    published: list[OfferOutcome],
    skip_log: SkipLog,
    enforce: bool,
) -> dict[str, Any]:
    return {
        "offers": len(outcomes),
        "decomposed": sum(1 for o in outcomes if o.composite is not None),
        "priced": sum(1 for o in outcomes if o.priced),
        "publishable": sum(1 for o in outcomes if o.publishable),
        "written": len(published),
        "enforced": enforce,
        "skips": skip_log.counts(),
        "skip_log": str(skip_log.path),
    }


async def run_batch(
    config: AppConfig,
    offers: list[ClassifiedOffer],
    skip_log: SkipLog,
) -> list[OfferOutcome]:
    """Resolve and price a batch of offers against the exchange."""
    alias_index = AliasIndex.from_config(config.aliases)
    logger.info("alias_index_loaded", keys=len(alias_index), bookmaker=config.aliases.bookmaker)

    async with BetfairClient(config.exchange) as client:
        engine = OfferEngine(client, alias_index, config, skip_log=skip_log)
        return await engine.resolve_batch(offers)


def run_resolve(
    config_path: str,
    input_path: str,
    output_path: str | None,
    enforce: bool,
) -> int:
    """Run the resolve pipeline.

    Returns:
        Exit code.
    """
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)
    logger.info("config_loaded", config_path=config_path, environment=config.environment)

    offers = read_offers(input_path)
    skip_log = SkipLog(config.pipeline.skip_log_path)
    outcomes = asyncio.run(run_batch(config, offers, skip_log))
    published = select_published(outcomes, enforce, skip_log)

    summary = summarize(outcomes, published, skip_log, enforce)
    if output_path:
        payload = {
            "generated_at": format_iso(utc_now()),
            "summary": summary,
            "offers": [outcome.to_dict() for outcome in published],
        }
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    for outcome in published:
        rating = outcome.decision.rating if outcome.decision else None
        fair = f"{outcome.fair_odds:.2f}" if outcome.fair_odds else "-"
        rated = f"{rating:.3f}" if rating else "-"
        click.echo(f"{outcome.title} | fair={fair} | rating={rated}")
    click.echo(json.dumps(summary, indent=2))
    return 0


def format_report(report: AliasCompileReport) -> list[str]:
    lines = [f"entries: {len(report.entries)}  shadowed: {report.shadowed}"]
    for conflict in report.conflicts:
        lines.append(
            f"CONFLICT [{conflict.tier}] '{conflict.key}' -> {', '.join(conflict.ids)}"
        )
    for orphan in report.orphans:
        lines.append(f"ORPHAN {orphan.source}: '{orphan.alias}' -> {orphan.canonical_id}")
    for banned in report.banned:
        lines.append(f"BANNED {banned.source}: '{banned.alias}'")
    return lines


@click.group()
def cli() -> None:
    """Resolve and price bookmaker price boosts."""


@cli.command("resolve")
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--in",
    "input_path",
    required=True,
    type=click.Path(exists=True),
    help="Classified offers JSON",
)
@click.option("--out", "output_path", type=click.Path(), help="Priced offers JSON output")
@click.option("--enforce", is_flag=True, help="Drop offers failing the value filters")
def resolve(config_path: str, input_path: str, output_path: str | None, enforce: bool) -> None:
    """Resolve offers to exchange markets and price them."""
    sys.exit(run_resolve(config_path, input_path, output_path, enforce))


@cli.command("aliases-lint")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to configuration file (alias paths are read from it)",
)
@click.option("--bookmaker", help="Lint only this bookmaker's overlay")
@click.option("--synonyms/--no-synonyms", default=None, help="Include the synonyms file")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def aliases_lint(
    config_path: str | None,
    bookmaker: str | None,
    synonyms: bool | None,
    as_json: bool,
) -> None:
    """Compile alias sources and report conflicts, orphans and banned keys."""
    config = load_config(config_path) if config_path else AppConfig()
    setup_logging(config.logging)
    aliases = config.aliases
    include_synonyms = aliases.include_synonyms if synonyms is None else synonyms

    sources = load_sources(
        master_path=aliases.master_path or DEFAULT_MASTER_PATH,
        overlay_dir=aliases.overlay_dir or DEFAULT_OVERLAY_DIR,
        synonyms_path=(aliases.synonyms_path or DEFAULT_SYNONYMS_PATH) if include_synonyms else None,
        bookmaker=bookmaker or aliases.bookmaker,
    )
    report = compile_aliases(sources, include_synonyms=include_synonyms)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        for line in format_report(report):
            click.echo(line)
        click.echo("OK" if report.ok else "FAILED")

    if not report.ok:
        sys.exit(LINT_FAILED_EXIT_CODE)


if __name__ == "__main__":
    cli()
