"""CLI entry point. Both `querywarden` and `qwarden` resolve here."""

from __future__ import annotations

import click

from querywarden.cli.connect import connect
from querywarden.cli.query import query
from querywarden.cli.schema import schema
from querywarden.cli.validate import validate


@click.group()
@click.version_option(package_name="querywarden")
def main() -> None:
    """querywarden: SQL safety classification and row-limit rewriting."""


main.add_command(connect)
main.add_command(validate)
main.add_command(query)
main.add_command(schema)
