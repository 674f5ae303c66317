"""Combined coverage + duplication report generator.

Functions:
    build_combined_report(client, project_key, ...)   -> Report

One listing call fetches both metric families; each file then gets the
coverage detail and the duplication detail it qualifies for.
"""

import logging
from typing import Callable

from sonar_metrics.client import MetricsClient
from sonar_metrics.enricher import DetailEnricher
from sonar_metrics.measures import metric_key
from sonar_metrics.models import FileReport, Report
from sonar_metrics.reports.coverage import COVERAGE_METRICS, coverage_fields
from sonar_metrics.reports.duplication import DUPLICATION_METRICS, duplication_fields

logger = logging.getLogger(__name__)


def build_combined_report(
    client: MetricsClient,
    project_key: str,
    *,
    enricher: DetailEnricher | None = None,
    new_code: bool = False,
    progress: Callable[[str], None] | None = None,
) -> Report:
    """Coverage and duplication of every listed file, lowest coverage first.

    Raises:
        TransportError: the file listing could not be fetched
    """
    enricher = enricher or DetailEnricher(client)
    notify = progress or (lambda message: None)

    notify("Fetching coverage and duplication data with details...")
    metrics = [metric_key(m, new_code) for m in COVERAGE_METRICS + DUPLICATION_METRICS]
    components = client.list_leaf_components(
        project_key,
        metrics,
        sort_metric=metric_key("coverage", new_code),
        period_sort=new_code,
    )

    files: list[FileReport] = []
    for i, comp in enumerate(components, start=1):
        notify(f"Processing {i}/{len(components)}: {comp.name}")
        files.append(FileReport(
            file_name=comp.name,
            file_path=comp.path,
            component_key=comp.key,
            **coverage_fields(comp, enricher, new_code),
            **duplication_fields(comp, enricher, new_code),
        ))

    files.sort(key=lambda f: f.coverage)
    logger.info("Combined analysis of %s: %d files", project_key, len(files))

    return Report(
        report_type="combined",
        project_key=project_key,
        base_url=client.base_url,
        files=files,
        new_code=new_code,
    )
