#!/usr/bin/env python3
"""Command-line interface for gogroup using Click."""

from importlib import metadata
import logging
from typing import Iterable
from typing import Optional
from typing import Tuple
import sys

import click
from gogroup import core
from gogroup.config import read_config
from gogroup.config import read_config_file
from gogroup.parser import ParseError
from gogroup.rules import ConfigError
from gogroup.rules import Grouper

STATUS_ERROR = 1
STATUS_HELP = 2
STATUS_INVALID_FILE = 3

ORDER_HELP = """Import groups, in order. One comma-separated argument or
repeated options: std (standard library), prefix=PREFIX (paths starting with
PREFIX), regexp=REGEXP (paths matching REGEXP), other (anything else), named
(aliased imports). Default: std,other."""

try:
    VERSION = f"gogroup {metadata.version('gogroup')}"
except metadata.PackageNotFoundError:
    VERSION = "gogroup"


def load_settings(config_path: Optional[str]) -> dict:
    """Read the settings file given on the command line, or the project's."""
    try:
        return read_config_file(config_path) if config_path else read_config(".")
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc


def build_grouper(orders: Iterable[str], settings: dict) -> Grouper:
    """Build the grouper, preferring orders given on the command line."""
    specs = list(orders) or settings.get("order", [])
    try:
        return Grouper.from_spec(specs) if specs else Grouper()
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc


def build_processor(orders: Iterable[str], sort_by_name: Optional[bool], check_spacing: bool,
                    config_path: Optional[str]) -> core.Processor:
    """Build the processor shared by every file of the run.

    Options given on the command line win over the configuration file.
    """
    settings = load_settings(config_path)
    grouper = build_grouper(orders, settings)
    if sort_by_name is None:
        sort_by_name = settings.get("sort_by_name", False)
    return core.Processor(grouper, sort_by_name=sort_by_name, check_spacing=check_spacing)


def _handle_files(paths: Tuple[str, ...], processor: core.Processor, apply_changes: bool,
                  keep_going: bool) -> int:
    """Check or fix Go files.

    Returns:
        0 if every file is fine (or was fixed), 1 if a file could not be
        read or parsed, 3 if a file failed validation.
    """
    exit_code = 0
    for file_path in core.expand_paths(paths):
        try:
            modified, error = core.process_file(str(file_path), processor, apply=apply_changes)
        except (OSError, UnicodeDecodeError, ParseError) as exc:
            logging.error("%s", exc)
            if not keep_going:
                return STATUS_ERROR
            exit_code = STATUS_ERROR
            continue

        if error is not None:
            click.echo(error.format(str(file_path)))
            if exit_code != STATUS_ERROR:
                exit_code = STATUS_INVALID_FILE
        elif modified:
            logging.info("Fixed %s", file_path)
        else:
            logging.debug("%s is fine", file_path)

    return exit_code


def order_options(func):
    """Options of every command that reads an import order."""
    func = click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                        help="Read settings from this file instead of ./pyproject.toml, "
                             "./setup.cfg or ./tox.ini.")(func)
    func = click.option("--order", "orders", multiple=True, metavar="SPEC[,SPEC...]",
                        help=ORDER_HELP)(func)
    return func


def processor_options(func):
    """Options of the commands that check or fix files."""
    func = click.option("--check-spacing", is_flag=True,
                        help="Also require one blank line between groups and none inside a group.")(func)
    func = click.option("--sort-by-name/--no-sort-by-name", default=None,
                        help="Sort imports of a group by alias or package name instead of path.")(func)
    return order_options(func)


def _run(paths: Tuple[str, ...], orders: Tuple[str, ...], sort_by_name: Optional[bool],
         check_spacing: bool, config_path: Optional[str], keep_going: bool, apply_changes: bool) -> None:
    if not paths:
        raise click.UsageError("No file provided.")
    processor = build_processor(orders, sort_by_name, check_spacing, config_path)
    sys.exit(_handle_files(paths, processor, apply_changes, keep_going))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Increase verbosity.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.version_option(version=VERSION, prog_name="gogroup CLI")
def cli(verbose: bool, quiet: bool) -> None:
    """Enforce import grouping in Go source files.

    Exits with status 3 if import grouping is violated.
    """
    # Configure logging only once
    if not logging.getLogger().handlers:
        if quiet:
            logging.basicConfig(level=logging.ERROR, format="%(message)s")
        else:
            logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


@cli.command(help="Report files whose imports are not grouped and ordered.")
@click.argument("paths", nargs=-1, type=click.Path(file_okay=True, dir_okay=True))
@processor_options
@click.option("--keep-going", is_flag=True, help="Continue with the next file after a read or parse error.")
def check(paths: Tuple[str, ...], orders: Tuple[str, ...], sort_by_name: Optional[bool],
          check_spacing: bool, config_path: Optional[str], keep_going: bool) -> None:
    _run(paths, orders, sort_by_name, check_spacing, config_path, keep_going, apply_changes=False)


@cli.command(help="Rewrite files with the correct import grouping.")
@click.argument("paths", nargs=-1, type=click.Path(file_okay=True, dir_okay=True))
@processor_options
@click.option("--keep-going", is_flag=True, help="Continue with the next file after a read or parse error.")
def fix(paths: Tuple[str, ...], orders: Tuple[str, ...], sort_by_name: Optional[bool],
        check_spacing: bool, config_path: Optional[str], keep_going: bool) -> None:
    _run(paths, orders, sort_by_name, check_spacing, config_path, keep_going, apply_changes=True)


@cli.command(help="Print the effective import order.")
@order_options
def order(orders: Tuple[str, ...], config_path: Optional[str]) -> None:
    click.echo(build_grouper(orders, load_settings(config_path)).render())


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    cli()
