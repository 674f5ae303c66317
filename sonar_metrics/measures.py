"""Measure extraction.

SonarQube returns measures as a list of ``{"metric": ..., "value": ...}``
dicts; new-code measures carry their value under ``"period": {"value": ...}``.
The helpers here turn that list into a mapping and pull single numbers out
of it.

Functions:
    measures_to_dict(raw)                         -> dict
    extract(measures, metric, windowed=False)     -> int | float
    metric_key(metric, new_code)                  -> str
"""

import math

NEW_PREFIX = "new_"

#: Metrics counted in whole lines / blocks
INTEGER_METRICS: frozenset[str] = frozenset({
    "uncovered_lines",
    "duplicated_lines",
    "duplicated_blocks",
})

#: Percentage metrics, 0-100
RATIO_METRICS: frozenset[str] = frozenset({
    "coverage",
    "duplicated_lines_density",
})


def measures_to_dict(raw: list[dict]) -> dict[str, dict]:
    """Convert a list of SonarQube measure dicts to ``{metric_key: measure}``.

    Anything other than a list gives an empty mapping.
    """
    if not isinstance(raw, list):
        return {}
    return {m["metric"]: m for m in raw if isinstance(m, dict) and "metric" in m}


def metric_key(metric: str, new_code: bool = False) -> str:
    """Return the server metric name, prefixed with ``new_`` for new-code views."""
    return f"{NEW_PREFIX}{metric}" if new_code else metric


def extract(measures: dict[str, dict], metric: str, *, windowed: bool = False) -> int | float:
    """Return *metric* from *measures* as a number, or 0 when it cannot be read.

    With *windowed* the value is read from the measure's ``period`` entry.
    Integer metrics come back as ``int``, everything else as ``float``.
    """
    measure = measures.get(metric)
    if not isinstance(measure, dict):
        return 0

    if windowed:
        period = measure.get("period")
        raw = period.get("value") if isinstance(period, dict) else None
    else:
        raw = measure.get("value")
    if raw is None:
        return 0

    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value):
        return 0

    base = metric[len(NEW_PREFIX):] if metric.startswith(NEW_PREFIX) else metric
    return int(value) if base in INTEGER_METRICS else value
