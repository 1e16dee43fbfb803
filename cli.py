#!/usr/bin/env python3
"""
Command-line interface for the Travelogues catalog
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from config.settings import TraveloguesConfig
from travelogues.database import DatabaseConnectionError, DatabaseManager, DataValidationError


def _database_path(database):
    return Path(database) if database else TraveloguesConfig().database_path


@click.group()
@click.option('--verbose', is_flag=True, help='Log debug messages')
def cli(verbose):
    """Travelogues catalog CLI"""
    settings = TraveloguesConfig()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
@click.option('--host', default=None, help='Interface to bind (default: from settings)')
@click.option('--port', default=None, type=int, help='Port to listen on (default: from settings)')
@click.option('--reload/--no-reload', default=False, help='Reload on code changes (default: False)')
def serve(host, port, reload):
    """Run the API server"""
    import api_server

    api_server.run(host=host, port=port, reload=reload)


@cli.command('init-db')
@click.option('--database', type=click.Path(dir_okay=False), default=None, help='Database file (default: from settings)')
def init_db(database):
    """Create the catalog tables and full-text indexes"""
    db_path = _database_path(database)

    async def run_init():
        db_path.parent.mkdir(parents=True, exist_ok=True)
        async with DatabaseManager(db_path) as db:
            await db.create_schema()

    try:
        asyncio.run(run_init())
    except DatabaseConnectionError as e:
        click.echo(f"❌ Could not create schema: {e}", err=True)
        sys.exit(1)
    click.echo(f"✅ Schema ready in {db_path}")


@cli.command('load-json')
@click.argument('dataset_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--database', type=click.Path(dir_okay=False), default=None, help='Database file (default: from settings)')
def load_json(dataset_file, database):
    """Import publications, travelers and contributions from a JSON file"""
    db_path = _database_path(database)

    with open(dataset_file, 'r', encoding='utf-8') as f:
        try:
            dataset = json.load(f)
        except json.JSONDecodeError as e:
            click.echo(f"❌ {dataset_file} is not valid JSON: {e}", err=True)
            sys.exit(1)

    async def run_load():
        db_path.parent.mkdir(parents=True, exist_ok=True)
        async with DatabaseManager(db_path) as db:
            await db.create_schema()
            return await db.import_dataset(dataset)

    try:
        imported = asyncio.run(run_load())
    except (DatabaseConnectionError, DataValidationError) as e:
        click.echo(f"❌ Import failed: {e}", err=True)
        sys.exit(1)

    for table, count in imported.items():
        click.echo(f"✅ {table}: {count}")
    click.echo(f"🎉 Imported {dataset_file} into {db_path}")


@cli.command()
@click.option('--database', type=click.Path(dir_okay=False), default=None, help='Database file (default: from settings)')
def stats(database):
    """Show row counts of the catalog tables"""
    db_path = _database_path(database)
    if not db_path.exists():
        click.echo(f"❌ Database not found: {db_path}", err=True)
        sys.exit(1)

    async def run_stats():
        async with DatabaseManager(db_path, read_only=True) as db:
            return await db.get_counts()

    try:
        counts = asyncio.run(run_stats())
    except DatabaseConnectionError as e:
        click.echo(f"❌ Could not read {db_path}: {e}", err=True)
        sys.exit(1)

    click.echo(f"📊 {db_path}")
    for table, count in counts.items():
        click.echo(f"   {table}: {count:,}")


@cli.command()
def info():
    """Show the effective configuration"""
    settings = TraveloguesConfig()

    click.echo("📚 Travelogues Catalog")
    click.echo("=" * 40)
    click.echo(f"Database: {settings.database_path}{'' if settings.database_exists else ' (missing)'}")
    click.echo(f"Server: http://{settings.host}:{settings.port}")
    click.echo(f"Log level: {settings.log_level}")
    click.echo(f"CORS origins: {', '.join(settings.cors_origins)}")
    click.echo(f"Default page size: {settings.default_page_size}")


if __name__ == '__main__':
    cli()
