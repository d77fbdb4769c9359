"""
confsync — CLI entrypoint.

Usage:
    confsync --help
    confsync                      # write any missing config files
    confsync myrepo --replace     # regenerate one repository's files
    confsync --replace --system   # regenerate everything
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from confsync import __version__
from confsync.core.models.target import Outcome, OutcomeAction
from confsync.core.observability.logging_config import setup_logging

MANUAL = """\
NAME
    confsync - write the Apache configuration for a repository installation

SYNOPSIS
    confsync [OPTIONS] [REPOSITORY_ID]

DESCRIPTION
    Writes the Apache configuration files for the installation described
    by site.yml, plus one file per repository found under the archives
    directory (and an SSL variant for repositories with a securehost).

    Files that already exist are left alone. With --replace, existing
    per-repository files are regenerated; the previous version is first
    saved beside it as NAME.backup.TIMESTAMP. The system-level files
    (apache.conf, apache_ssl.conf) are only regenerated when --system
    is given as well.

    If a repository still has a hand-written cfg/apache.conf and no
    generated file exists yet, the generated file simply includes the
    old one.

    REPOSITORY_ID limits the run to that repository's files. The
    system-level files are always checked.

    When any file was written, Apache must be restarted.

FILES
    site.yml                          installation settings
    <archives>/<id>/cfg/repository.yml  per-repository settings
    <conf_dir>/apache.conf            include from the main Apache config
    <conf_dir>/apache_ssl.conf        include inside the SSL VirtualHost
    <conf_dir>/apache/<id>.conf
    <conf_dir>/apache_ssl/<id>.conf

ENVIRONMENT
    CONFSYNC_LOG_LEVEL, CONFSYNC_LOG_FILE, CONFSYNC_LOG_FILE_LEVEL

EXIT STATUS
    0 on success, 1 on a configuration or filesystem error,
    2 on a usage error.
"""

RESTART_MESSAGE = "You must restart Apache for any changes to take effect!"
NO_CHANGES_MESSAGE = "No files were changed."


def _show_manual(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(MANUAL)
    ctx.exit()


class OutcomeReporter:
    """Prints one line per file touched, as it happens."""

    def __init__(self, verbosity: int = 0, quiet: bool = False):
        self.verbosity = verbosity
        self.quiet = quiet

    def __call__(self, outcome: Outcome) -> None:
        if self.quiet:
            return
        if outcome.action is OutcomeAction.REPLACED:
            click.echo(f"Saved previous config to {outcome.backup_path}")
            click.echo(f"Wrote {outcome.path}")
        elif outcome.via_legacy:
            click.echo(f"Wrote {outcome.path} (includes legacy config)")
        elif outcome.action is OutcomeAction.CREATED:
            click.echo(f"Wrote {outcome.path}")
        elif self.verbosity >= 2:
            click.echo(f"Skipped {outcome.path} (already exists)")


@click.command()
@click.argument("repository_id", required=False)
@click.option("--replace", is_flag=True, help="Replace existing per-repository files.")
@click.option(
    "--system",
    is_flag=True,
    help="With --replace, also replace the system-level files.",
)
@click.option("--quiet", "-q", is_flag=True, help="Only print the final result.")
@click.option("--verbose", "-v", count=True, help="More output; repeat for more.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to site.yml (default: auto-detect).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--man",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_show_manual,
    help="Show the full manual and exit.",
)
@click.version_option(version=__version__, prog_name="confsync")
def cli(
    repository_id: str | None,
    replace: bool,
    system: bool,
    quiet: bool,
    verbose: int,
    config_path: str | None,
    as_json: bool,
) -> None:
    """confsync — write the Apache configuration for a repository installation.

    Creates missing files; with --replace, regenerates existing ones after
    saving a backup. REPOSITORY_ID limits the run to one repository.
    """
    setup_logging(verbosity=verbose, quiet=quiet)

    from confsync.core.use_cases.generate import run_generate

    reporter = None if as_json else OutcomeReporter(verbosity=verbose, quiet=quiet)
    result = run_generate(
        config_path=Path(config_path) if config_path else None,
        repository_id=repository_id,
        replace=replace,
        system=system,
        on_outcome=reporter,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    summary = result.summary
    assert summary is not None  # guaranteed when ok

    if not quiet:
        for line in result.instructions:
            click.echo()
            click.echo(line)
        if verbose >= 1:
            for hint in result.hints:
                click.echo()
                click.secho(f"ℹ {hint}", fg="cyan")
        click.echo()

    if summary.restart_required:
        click.secho(RESTART_MESSAGE, fg="yellow", bold=True)
    else:
        click.echo(NO_CHANGES_MESSAGE)


if __name__ == "__main__":
    cli()
