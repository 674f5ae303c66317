"""Analysis runs as request/response pairs.

Usage:
    session = AnalysisSession(client_factory, on_progress=print)
    result  = session.run("coverage", "my-project", "https://sonar.example.com")
    result.to_message()   # {"success": True, "data": [...]} or {"success": False, "error": "..."}
    format_copy_text(result.report, Granularity.ALL_COVERAGE)

Each run gets a generation number. Only the latest run may replace
``current_report``; a run that finishes after a newer one has started is
returned as ``superseded`` and its report is not kept.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sonar_metrics.client import MetricsClient, MetricsClientError
from sonar_metrics.enricher import DetailEnricher
from sonar_metrics.models import Report
from sonar_metrics.reports.combined import build_combined_report
from sonar_metrics.reports.coverage import build_coverage_report
from sonar_metrics.reports.duplication import build_duplication_report
from sonar_metrics.throttle import DEFAULT_INTERVAL, RateLimiter

logger = logging.getLogger(__name__)

BUILDERS = {
    "coverage": build_coverage_report,
    "duplication": build_duplication_report,
    "combined": build_combined_report,
}


@dataclass
class RunResult:
    run_id: int
    success: bool
    report: Report | None = None
    error: str | None = None
    superseded: bool = False

    def to_message(self) -> dict[str, Any]:
        if self.success and self.report is not None:
            return {"success": True, "data": [f.to_dict() for f in self.report.files]}
        return {"success": False, "error": self.error or "Unknown error"}


class AnalysisSession:
    """Runs reports and keeps the result of the most recent one."""

    def __init__(
        self,
        client_factory: Callable[[str], MetricsClient],
        *,
        interval: float = DEFAULT_INTERVAL,
        on_progress: Callable[[dict], None] | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._interval = interval
        self._on_progress = on_progress
        self._generation = 0
        self.current_report: Report | None = None

    def run(
        self,
        mode: str,
        project_key: str,
        base_url: str,
        *,
        new_code: bool = False,
    ) -> RunResult:
        """Run one analysis. Transport failures come back as ``success=False``.

        Raises:
            ValueError: unknown *mode*
        """
        builder = BUILDERS.get(mode)
        if builder is None:
            raise ValueError(f"Unknown mode '{mode}'. Expected one of: {', '.join(BUILDERS)}")

        self._generation += 1
        run_id = self._generation

        client = self._client_factory(base_url)
        enricher = DetailEnricher(client, RateLimiter(self._interval))
        try:
            report = builder(
                client,
                project_key,
                enricher=enricher,
                new_code=new_code,
                progress=lambda message: self._notify(run_id, message),
            )
        except MetricsClientError as exc:
            logger.error("%s analysis of %s failed: %s", mode, project_key, exc)
            return RunResult(run_id=run_id, success=False, error=str(exc),
                             superseded=run_id != self._generation)

        if run_id != self._generation:
            logger.info("Discarding superseded %s run %d", mode, run_id)
            return RunResult(run_id=run_id, success=True, report=report, superseded=True)

        self.current_report = report
        return RunResult(run_id=run_id, success=True, report=report)

    def _notify(self, run_id: int, message: str) -> None:
        if self._on_progress is not None and run_id == self._generation:
            self._on_progress({"message": message})
