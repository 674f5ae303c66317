"""Duplication report generator.

Functions:
    build_duplication_report(client, project_key, ...)   -> Report

Queries ``/api/measures/component_tree`` for the duplication measures of
every leaf file, drops files without any duplication, and fetches block
detail from ``/api/duplications/show`` for the rest.
"""

import logging
from typing import Callable

from sonar_metrics.client import MetricsClient
from sonar_metrics.enricher import DetailEnricher
from sonar_metrics.measures import extract, metric_key
from sonar_metrics.models import ComponentSummary, FileReport, Report

logger = logging.getLogger(__name__)

#: Metrics fetched for the duplication view (without the ``new_`` prefix)
DUPLICATION_METRICS: list[str] = [
    "duplicated_lines",
    "duplicated_lines_density",
    "duplicated_blocks",
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #

def duplication_measures(comp: ComponentSummary, new_code: bool = False) -> tuple[int, int, float]:
    """Return ``(duplicated_lines, duplicated_blocks, density)`` for *comp*."""
    def read(metric: str) -> int | float:
        return extract(comp.measures, metric_key(metric, new_code), windowed=new_code)

    return (
        int(read("duplicated_lines")),
        int(read("duplicated_blocks")),
        float(read("duplicated_lines_density")),
    )


def duplication_fields(
    comp: ComponentSummary,
    enricher: DetailEnricher,
    new_code: bool = False,
) -> dict:
    """Return the duplication section of a FileReport for *comp*.

    Block detail is only requested when the file has duplicated lines or blocks.
    """
    lines, blocks, density = duplication_measures(comp, new_code)
    logger.debug(
        "%s: duplicated_lines=%d duplicated_blocks=%d density=%.1f%%",
        comp.name, lines, blocks, density,
    )

    details = enricher.enrich_duplicates(comp.key) if lines > 0 or blocks > 0 else []
    return {
        "duplicated_lines": lines,
        "duplicated_blocks": blocks,
        "duplicated_density": density,
        "duplicated_block_details": details,
    }


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def build_duplication_report(
    client: MetricsClient,
    project_key: str,
    *,
    enricher: DetailEnricher | None = None,
    new_code: bool = False,
    progress: Callable[[str], None] | None = None,
) -> Report:
    """Per-file duplication of *project_key*, highest density first.

    Files whose three duplication measures are all zero are left out.

    Raises:
        TransportError: the file listing could not be fetched
    """
    enricher = enricher or DetailEnricher(client)
    notify = progress or (lambda message: None)

    notify("Fetching duplication data with details...")
    metrics = [metric_key(m, new_code) for m in DUPLICATION_METRICS]
    components = client.list_leaf_components(
        project_key,
        metrics,
        sort_metric=metric_key("duplicated_lines_density", new_code),
        period_sort=new_code,
    )

    files: list[FileReport] = []
    for i, comp in enumerate(components, start=1):
        notify(f"Processing duplication {i}/{len(components)}: {comp.name}")
        if not any(duplication_measures(comp, new_code)):
            logger.debug("No duplication found for: %s", comp.name)
            continue
        files.append(FileReport(
            file_name=comp.name,
            file_path=comp.path,
            component_key=comp.key,
            **duplication_fields(comp, enricher, new_code),
        ))

    files.sort(key=lambda f: f.duplicated_density, reverse=True)
    logger.info("Duplication analysis of %s: %d files", project_key, len(files))

    return Report(
        report_type="duplication",
        project_key=project_key,
        base_url=client.base_url,
        files=files,
        new_code=new_code,
    )
