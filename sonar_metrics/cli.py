"""CLI entry point — command definitions using Click.

Commands:
    init          Generate a template config file
    coverage      Per-file coverage with uncovered lines
    duplication   Per-file duplication with duplicated blocks
    combined      Coverage and duplication in one report
    detect        Infer base URL and project key from a SonarQube page URL
"""

import functools
import json
import logging
import sys
from typing import Any, Callable

import click

from sonar_metrics import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load config, apply command-line overrides. Exits on error."""
    from sonar_metrics.config import ConfigError, load

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    if obj["base_url"]:
        config.url = obj["base_url"]
    if obj["delay_ms"] is not None:
        config.delay_ms = obj["delay_ms"]
    return config


def _emit(text: str, ctx: click.Context) -> None:
    """Write *text* to stdout or to the file specified by --output."""
    output_path: str | None = ctx.obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text, nl=not text.endswith("\n"))


def _emit_json(data: Any, ctx: click.Context) -> None:
    indent = 2 if ctx.obj["pretty"] else None
    _emit(json.dumps(data, indent=indent, ensure_ascii=False), ctx)


def _handle_client_errors(func):
    """Decorator that catches MetricsClient exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from sonar_metrics.client import (
            AuthenticationError,
            MetricsClientError,
            NetworkError,
            NotFoundError,
        )

        try:
            return func(*args, **kwargs)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except MetricsClientError as exc:
            click.echo(f"SonarQube error: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _run_report(
    ctx: click.Context,
    builder: Callable,
    project: str,
    new_code: bool,
    output_format: str | None,
    file_number: int | None,
) -> None:
    from sonar_metrics.client import MetricsClient
    from sonar_metrics.copytext import Granularity, format_copy_text
    from sonar_metrics.enricher import DetailEnricher
    from sonar_metrics.throttle import RateLimiter

    if file_number is not None and output_format == "json":
        raise click.UsageError("--file renders text and cannot be combined with --format json.")

    config = _load_config(ctx)
    project_key = config.resolve_project(project)
    client = MetricsClient(url=config.url, cookie=config.cookie, token=config.token)
    enricher = DetailEnricher(client, RateLimiter(config.interval))

    progress = None
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Connecting to {config.url}", err=True)
        progress = lambda message: click.echo(f"[verbose] {message}", err=True)  # noqa: E731

    report = builder(client, project_key, enricher=enricher, new_code=new_code, progress=progress)

    if file_number is not None:
        if not 1 <= file_number <= len(report.files):
            click.echo(f"Error: --file must be between 1 and {len(report.files)}", err=True)
            sys.exit(1)
        _emit(format_copy_text(report, Granularity.SINGLE_FILE, file_index=file_number - 1), ctx)
    elif output_format == "text":
        granularity = {
            "coverage": Granularity.ALL_COVERAGE,
            "duplication": Granularity.ALL_DUPLICATION,
            "combined": Granularity.ALL_COMBINED,
        }[report.report_type]
        _emit(format_copy_text(report, granularity), ctx)
    else:
        _emit_json(report.to_dict(), ctx)


def _report_options(func):
    """Options shared by the coverage, duplication and combined commands."""
    func = click.option("--file", "file_number", type=int, default=None,
                        help="Render only the N-th file (1-based) as text; implies --format text.")(func)
    func = click.option("--format", "output_format", type=click.Choice(["json", "text"]),
                        default=None,
                        help="JSON report (default) or copy-ready plain text.")(func)
    func = click.option("--new-code", is_flag=True, default=False,
                        help="Use new-code period measures instead of overall code.")(func)
    func = click.argument("project")(func)
    return func


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="sonar-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--base-url", default=None,
              help="SonarQube base URL (overrides config).")
@click.option("--delay", "delay_ms", type=click.FloatRange(min=0), default=None,
              help="Pause between detail requests in ms (overrides config).")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="sonar-metrics")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None, pretty: bool,
        base_url: str | None, delay_ms: float | None, verbose: bool) -> None:
    """SonarQube metrics tool — per-file coverage and duplication, as JSON or text."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["base_url"] = base_url
    ctx.obj["delay_ms"] = delay_ms
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="sonar-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template sonar-config.yaml file."""
    from sonar_metrics.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your server URL, session cookie or token and project aliases.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# coverage / duplication / combined
# ---------------------------------------------------------------------------

@cli.command("coverage")
@_report_options
@click.pass_context
@_handle_client_errors
def coverage_command(ctx: click.Context, project: str, new_code: bool,
                     output_format: str | None, file_number: int | None) -> None:
    """Per-file coverage of PROJECT, lowest coverage first."""
    from sonar_metrics.reports.coverage import build_coverage_report
    _run_report(ctx, build_coverage_report, project, new_code, output_format, file_number)


@cli.command("duplication")
@_report_options
@click.pass_context
@_handle_client_errors
def duplication_command(ctx: click.Context, project: str, new_code: bool,
                        output_format: str | None, file_number: int | None) -> None:
    """Per-file duplication of PROJECT, highest density first."""
    from sonar_metrics.reports.duplication import build_duplication_report
    _run_report(ctx, build_duplication_report, project, new_code, output_format, file_number)


@cli.command("combined")
@_report_options
@click.pass_context
@_handle_client_errors
def combined_command(ctx: click.Context, project: str, new_code: bool,
                     output_format: str | None, file_number: int | None) -> None:
    """Coverage and duplication of PROJECT in one report."""
    from sonar_metrics.reports.combined import build_combined_report
    _run_report(ctx, build_combined_report, project, new_code, output_format, file_number)


# ---------------------------------------------------------------------------
# detect
# ---------------------------------------------------------------------------

@cli.command("detect")
@click.argument("url")
@click.option("--html", "html_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Saved HTML of the page, for key probes beyond the URL.")
@click.pass_context
def detect_command(ctx: click.Context, url: str, html_path: str | None) -> None:
    """Infer base URL and project key from a SonarQube page URL."""
    from sonar_metrics.detect import detect_base_url, detect_project_key

    html = None
    if html_path:
        with open(html_path, encoding="utf-8") as f:
            html = f.read()

    _emit_json({
        "base_url": detect_base_url(url),
        "project_key": detect_project_key(url, html),
    }, ctx)
