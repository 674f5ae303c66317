"""Coverage report generator.

Functions:
    build_coverage_report(client, project_key, ...)   -> Report

Queries ``/api/measures/component_tree`` for every leaf file carrying
coverage measures, then fetches line-level detail from
``/api/sources/lines`` for the files that have uncovered lines.
"""

import logging
from typing import Callable

from sonar_metrics.client import MetricsClient
from sonar_metrics.enricher import DetailEnricher
from sonar_metrics.measures import extract, metric_key
from sonar_metrics.models import ComponentSummary, FileReport, Report

logger = logging.getLogger(__name__)

#: Metrics fetched for the coverage view (without the ``new_`` prefix)
COVERAGE_METRICS: list[str] = ["coverage", "uncovered_lines"]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #

def coverage_fields(
    comp: ComponentSummary,
    enricher: DetailEnricher,
    new_code: bool = False,
) -> dict:
    """Return the coverage section of a FileReport for *comp*.

    Source lines are only requested when the file has uncovered lines.
    """
    coverage = float(extract(comp.measures, metric_key("coverage", new_code), windowed=new_code))
    uncovered = int(extract(comp.measures, metric_key("uncovered_lines", new_code), windowed=new_code))
    logger.debug("%s: coverage=%.1f%% uncovered_lines=%d", comp.name, coverage, uncovered)

    details = enricher.enrich_uncovered(comp.key) if uncovered > 0 else []
    return {
        "coverage": coverage,
        "uncovered_lines": uncovered,
        "uncovered_line_details": details,
    }


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def build_coverage_report(
    client: MetricsClient,
    project_key: str,
    *,
    enricher: DetailEnricher | None = None,
    new_code: bool = False,
    progress: Callable[[str], None] | None = None,
) -> Report:
    """Per-file coverage of *project_key*, lowest coverage first.

    Every listed file is reported, fully covered ones included.

    Raises:
        TransportError: the file listing could not be fetched
    """
    enricher = enricher or DetailEnricher(client)
    notify = progress or (lambda message: None)

    notify("Fetching coverage data with details...")
    metrics = [metric_key(m, new_code) for m in COVERAGE_METRICS]
    components = client.list_leaf_components(
        project_key, metrics, sort_metric=metrics[0], period_sort=new_code,
    )

    files: list[FileReport] = []
    for i, comp in enumerate(components, start=1):
        notify(f"Processing coverage {i}/{len(components)}: {comp.name}")
        files.append(FileReport(
            file_name=comp.name,
            file_path=comp.path,
            component_key=comp.key,
            **coverage_fields(comp, enricher, new_code),
        ))

    files.sort(key=lambda f: f.coverage)
    logger.info("Coverage analysis of %s: %d files", project_key, len(files))

    return Report(
        report_type="coverage",
        project_key=project_key,
        base_url=client.base_url,
        files=files,
        new_code=new_code,
    )
