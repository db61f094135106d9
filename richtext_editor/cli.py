# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Command line tools for the editor's conversions

Each command reads a file (or stdin with "-") and writes the result to
stdout, or to a file for ``export``.
"""

import logging

import click

from .constants import EXPORT_FILENAME
from .model.export import export_as_file
from .model.sanitizer import SanitizationError, sanitize
from .model.text_convert import html_to_text, text_to_html

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level")
def cli(log_level: str):
    """Rich Text Editor utilities"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@cli.command("sanitize")
@click.argument("source", type=click.File("r", encoding="utf-8"))
def sanitize_command(source):
    """Clean word-processor clipboard HTML"""
    try:
        click.echo(sanitize(source.read()))
    except SanitizationError as e:
        raise click.ClickException(str(e))


@cli.command("to-text")
@click.argument("source", type=click.File("r", encoding="utf-8"))
def to_text(source):
    """Render HTML as plain text"""
    click.echo(html_to_text(source.read()))


@cli.command("to-html")
@click.argument("source", type=click.File("r", encoding="utf-8"))
def to_html(source):
    """Convert plain text into paragraph HTML"""
    click.echo(text_to_html(source.read()))


@cli.command("export")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--output-dir", default=".", help="Directory to write the exported file to")
@click.option("--filename", default=EXPORT_FILENAME, help="Name of the exported file")
def export(source, output_dir: str, filename: str):
    """Wrap an HTML fragment in a standalone UTF-8 page"""
    path = export_as_file(source.read(), filename).save(output_dir)
    click.echo(path)


if __name__ == "__main__":
    cli()
