"""Tests for sonar_metrics/detect.py"""

import pytest

from sonar_metrics.detect import (
    detect_base_url,
    detect_project_key,
    from_meta_tag,
    from_query,
    from_script,
    from_title,
)


@pytest.mark.parametrize("url", [
    "https://sonar.example.com/dashboard?id=my_project",
    "https://sonar.example.com/project/overview?id=my_project",
    "https://sonar.example.com/component_measures?metric=coverage&id=my_project",
])
def test_query_probe(url):
    assert from_query(url) == "my_project"
    assert detect_project_key(url) == "my_project"


def test_query_probe_decodes():
    assert from_query("https://s/dashboard?id=org%3Aproj") == "org:proj"


def test_base_url():
    assert detect_base_url("https://sonar.example.com:9000/dashboard?id=x") == "https://sonar.example.com:9000"
    assert detect_base_url("not a url") is None


def test_meta_tag_probe():
    html = '<head><meta name="sonarqube-project-key" content="from_meta"></head>'
    assert from_meta_tag("https://s/", html) == "from_meta"


def test_title_probe():
    assert from_title("https://s/", "<title>my_proj - Overview - SonarQube</title>") == "my_proj"
    assert from_title("https://s/", "<title>SonarQube</title>") is None


def test_script_probe():
    assert from_script("https://s/", '<script>window.x = {"projectKey": "k1"}</script>') == "k1"
    assert from_script("https://s/", "<script>init({'component': 'k2'})</script>") == "k2"


def test_html_probes_need_html():
    for probe in (from_meta_tag, from_title, from_script):
        assert probe("https://s/") is None


def test_first_match_wins():
    html = '<meta name="sonarqube-project-key" content="meta_key"><title>title_key - x</title>'
    assert detect_project_key("https://s/dashboard?id=url_key", html) == "url_key"
    assert detect_project_key("https://s/", html) == "meta_key"


def test_nothing_detected():
    assert detect_project_key("https://s/", "<p>hello</p>") is None


def test_custom_probe_order():
    html = '<meta name="sonarqube-project-key" content="meta_key"><title>title_key - x</title>'
    assert detect_project_key("https://s/", html, probes=[from_title, from_meta_tag]) == "title_key"
