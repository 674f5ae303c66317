"""Tests for sonar_metrics/measures.py"""

import pytest

from sonar_metrics.measures import extract, measures_to_dict, metric_key


def _measure(metric: str, value, *, period: bool = False) -> dict:
    if period:
        return {"metric": metric, "period": {"index": 1, "value": str(value)}}
    return {"metric": metric, "value": str(value)}


# ---------------------------------------------------------------------------
# measures_to_dict()
# ---------------------------------------------------------------------------

def test_measures_to_dict_keys_by_metric():
    raw = [_measure("coverage", "42.5"), _measure("uncovered_lines", "2")]
    d = measures_to_dict(raw)
    assert set(d) == {"coverage", "uncovered_lines"}
    assert d["coverage"]["value"] == "42.5"


def test_measures_to_dict_skips_entries_without_metric():
    assert measures_to_dict([{"value": "1"}, "junk"]) == {}


@pytest.mark.parametrize("raw", [None, {"metric": "coverage"}, "coverage"])
def test_measures_to_dict_non_list_is_empty(raw):
    assert measures_to_dict(raw) == {}


# ---------------------------------------------------------------------------
# extract() — types
# ---------------------------------------------------------------------------

def test_ratio_metric_is_float():
    value = extract(measures_to_dict([_measure("coverage", "42.5")]), "coverage")
    assert value == 42.5
    assert isinstance(value, float)


def test_whole_ratio_stays_float():
    value = extract(measures_to_dict([_measure("duplicated_lines_density", "100")]), "duplicated_lines_density")
    assert value == 100.0
    assert isinstance(value, float)


@pytest.mark.parametrize("metric", ["uncovered_lines", "duplicated_lines", "duplicated_blocks"])
def test_integer_metrics_are_int(metric):
    value = extract(measures_to_dict([_measure(metric, "7")]), metric)
    assert value == 7
    assert isinstance(value, int)


def test_integer_metric_with_decimal_point():
    assert extract(measures_to_dict([_measure("uncovered_lines", "2.0")]), "uncovered_lines") == 2


def test_no_rounding():
    assert extract(measures_to_dict([_measure("coverage", "33.333")]), "coverage") == 33.333


# ---------------------------------------------------------------------------
# extract() — fallbacks
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("measures", [
    {},
    {"other": {"metric": "other", "value": "5"}},
    {"coverage": {"metric": "coverage"}},
    {"coverage": {"metric": "coverage", "value": "n/a"}},
    {"coverage": {"metric": "coverage", "value": "NaN"}},
    {"coverage": {"metric": "coverage", "value": None}},
    {"coverage": None},
])
def test_unreadable_metric_is_zero(measures):
    assert extract(measures, "coverage") == 0


# ---------------------------------------------------------------------------
# extract() — windowed / new code
# ---------------------------------------------------------------------------

def test_windowed_reads_period_value():
    measures = measures_to_dict([_measure("new_coverage", "77.3", period=True)])
    assert extract(measures, "new_coverage", windowed=True) == 77.3


def test_windowed_ignores_plain_value():
    measures = measures_to_dict([_measure("new_coverage", "77.3")])
    assert extract(measures, "new_coverage", windowed=True) == 0


def test_new_prefixed_integer_metric_is_int():
    measures = measures_to_dict([_measure("new_uncovered_lines", "15", period=True)])
    value = extract(measures, "new_uncovered_lines", windowed=True)
    assert value == 15
    assert isinstance(value, int)


def test_metric_key_prefix():
    assert metric_key("coverage") == "coverage"
    assert metric_key("coverage", new_code=True) == "new_coverage"
