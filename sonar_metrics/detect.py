"""Infer the server base URL and project key from a SonarQube page.

Project-key probes are tried in order; the first one returning a value wins.
Probes that need the page HTML return ``None`` when none is given.
"""

import re
from typing import Callable
from urllib.parse import parse_qs, urlsplit

Probe = Callable[[str, str | None], str | None]

_META_RE = re.compile(
    r"""<meta\s+[^>]*name=["']sonarqube-project-key["'][^>]*content=["']([^"']+)["']""",
    re.IGNORECASE,
)
_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_SCRIPT_KEY_RE = re.compile(r"""["']projectKey["']\s*:\s*["']([^"']+)["']""")
_SCRIPT_COMPONENT_RE = re.compile(r"""["']component["']\s*:\s*["']([^"']+)["']""")


def detect_base_url(url: str) -> str | None:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

def from_query(url: str, html: str | None = None) -> str | None:
    """``?id=`` as used by /dashboard, /project/overview and /component_measures."""
    values = parse_qs(urlsplit(url).query).get("id")
    return values[0] if values else None


def from_meta_tag(url: str, html: str | None = None) -> str | None:
    if not html:
        return None
    match = _META_RE.search(html)
    return match.group(1) if match else None


def from_title(url: str, html: str | None = None) -> str | None:
    """Page titles look like ``<project> - <page> - SonarQube``."""
    if not html:
        return None
    match = _TITLE_RE.search(html)
    if not match or " - " not in match.group(1):
        return None
    return match.group(1).split(" - ")[0].strip() or None


def from_script(url: str, html: str | None = None) -> str | None:
    if not html:
        return None
    for pattern in (_SCRIPT_KEY_RE, _SCRIPT_COMPONENT_RE):
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


PROBES: list[Probe] = [from_query, from_meta_tag, from_title, from_script]


def detect_project_key(url: str, html: str | None = None, probes: list[Probe] | None = None) -> str | None:
    for probe in probes or PROBES:
        key = probe(url, html)
        if key:
            return key
    return None
