"""``news-briefing-seed``: load a JSON content pack into an empty corpus."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from news_briefing.config import Settings
from news_briefing.db.session import create_engine, create_schema, create_session_factory
from news_briefing.logging import configure_logging, get_logger
from news_briefing.services.content_loader import (
    DEFAULT_PACK_NAME,
    ContentError,
    ContentLoader,
    ContentPack,
    LoadReport,
    load_default_pack,
    parse_pack_json,
)


def read_pack(pack_path: Path | None) -> ContentPack:
    if pack_path is None:
        return load_default_pack()
    return parse_pack_json(pack_path.read_text(encoding="utf-8"), origin=str(pack_path))


async def _seed(settings: Settings, pack: ContentPack, *, create_tables: bool) -> LoadReport:
    engine = create_engine(settings.database_url)
    try:
        if create_tables:
            await create_schema(engine)
        return await ContentLoader(create_session_factory(engine)).load(pack)
    finally:
        await engine.dispose()


@click.command()
@click.argument(
    "pack_path",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--create-schema", "create_tables", is_flag=True, help="Create missing tables before loading.")
def cli(pack_path: Path | None, create_tables: bool) -> None:
    """Load PACK_PATH (the bundled pack when omitted) unless the database already holds topics."""
    try:
        settings = Settings()
    except ValidationError as exc:
        click.echo("Invalid configuration:", err=True)
        click.echo(str(exc), err=True)
        sys.exit(2)

    configure_logging(settings.log_level, json_logs=settings.log_json)
    log = get_logger(__name__)
    origin = str(pack_path) if pack_path is not None else DEFAULT_PACK_NAME

    try:
        pack = read_pack(pack_path)
        report = asyncio.run(_seed(settings, pack, create_tables=create_tables))
    except ContentError as exc:
        log.error("content.rejected", path=origin, error=str(exc))
        click.echo(f"Content pack rejected: {exc}", err=True)
        sys.exit(1)

    if report.skipped:
        click.echo("Database already seeded, skipping.")
    else:
        click.echo(
            f"Loaded {report.topics} topics, {report.articles} articles, "
            f"{report.claims} claims ({report.conflict_pairs} conflicting pairs) from {origin}."
        )


def main() -> None:
    cli()
