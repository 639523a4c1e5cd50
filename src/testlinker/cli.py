"""Command line interface."""

import sys
from pathlib import Path
from typing import Optional

import click

from . import config
from .formatters import FORMATTERS, get_formatter
from .log import configure_logging
from .models import TestLinkReport, TestResult
from .records import RecordsError, load_report
from .seeker import JUnitTestResultSeeker, SeekError
from .svn import MalformedURLError, SVNError, SVNLatestRevisionService
from .testlink_client import TestLinkClient, TestLinkClientError


def load_known_records(
    records: Optional[str],
    project: Optional[str],
    plan: Optional[str],
    build: Optional[str],
    key_field: str,
) -> TestLinkReport:
    """Known test cases from a records file, or from TestLink."""
    if records:
        return load_report(records)

    if not (project and plan):
        raise click.UsageError("Either --records or both --project and --plan are required.")

    with TestLinkClient() as client:
        if not client.is_configured:
            raise click.UsageError(
                "TestLink is not configured. Set TLINK_TESTLINK_URL and TLINK_DEV_KEY."
            )
        return client.fetch_report(project, plan, key_field, build_name=build)


def write_output(formatted: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(formatted + "\n", encoding="utf-8")
        click.echo(f"Results written to {output}", err=True)
    else:
        click.echo(formatted)


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    default=False,
    help="Show debug logging",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    default=False,
    help="Only log warnings and errors",
)
def main(verbose: bool, quiet: bool):
    """Match JUnit reports to TestLink automated test cases."""
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = config.LOG_LEVEL
    configure_logging(level)


@main.command()
@click.argument("directory", type=click.Path(file_okay=False))
@click.option(
    "-i", "--include",
    default=None,
    help="Ant-style include pattern for JUnit reports (default: TLINK_INCLUDE or **/TEST-*.xml)",
)
@click.option(
    "-k", "--key-field",
    default=None,
    help="TestLink custom field holding the JUnit class name",
)
@click.option(
    "-r", "--records",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with build, test plan and test cases",
)
@click.option("--project", default=None, help="TestLink test project name")
@click.option("--plan", default=None, help="TestLink test plan name")
@click.option("--build", default=None, help="TestLink build name (default: latest)")
@click.option(
    "-f", "--format",
    "output_format",
    type=click.Choice(list(FORMATTERS), case_sensitive=False),
    default=None,
    help="Output format (default: summary)",
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Write results to file",
)
def seek(
    directory: str,
    include: Optional[str],
    key_field: Optional[str],
    records: Optional[str],
    project: Optional[str],
    plan: Optional[str],
    build: Optional[str],
    output_format: Optional[str],
    output: Optional[str],
):
    """Find TestLink test results in the JUnit reports below DIRECTORY.

    An empty --include pattern disables the JUnit search.
    """
    include_pattern = config.DEFAULT_INCLUDE if include is None else include
    key_field = key_field or config.KEY_CUSTOM_FIELD
    formatter = get_formatter(output_format or config.DEFAULT_FORMAT)

    try:
        report = load_known_records(records, project, plan, build, key_field)
    except (RecordsError, TestLinkClientError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    seeker = JUnitTestResultSeeker(report, key_field)
    try:
        results: list[TestResult] = seeker.seek(directory, include_pattern)
    except SeekError as e:
        click.echo(f"Error: {e}", err=True)
        if e.results:
            click.echo(
                f"{len(e.results)} results were found before the failure and were discarded.",
                err=True,
            )
        sys.exit(1)

    if not results:
        click.echo("No TestLink test results found.", err=True)
        return

    write_output(formatter.format(results), output)


@main.command()
@click.argument("url")
@click.option("--username", default=None, help="SVN user (default: TLINK_SVN_USER)")
@click.option(
    "--password",
    default=None,
    help="SVN password (default: TLINK_SVN_PASSWORD). Prefer the environment "
         "variable: a value given here shows in the process list.",
)
def revision(url: str, username: Optional[str], password: Optional[str]):
    """Print the latest revision of the Subversion repository at URL."""
    try:
        service = SVNLatestRevisionService(
            url,
            username if username is not None else config.SVN_USERNAME,
            password if password is not None else config.SVN_PASSWORD,
        )
        click.echo(service.get_latest_revision())
    except (MalformedURLError, SVNError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("clear-cache")
def clear_cache():
    """Clear the TestLink custom field cache."""
    cleared = TestLinkClient().cache.clear()
    click.echo(f"Cleared {cleared} cached items.")


if __name__ == "__main__":
    main()
