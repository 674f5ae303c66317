"""Source-text sanitising for the syntax-highlighted code SonarQube returns."""

import re

_TAG_RE = re.compile(r"<[^>]*>")


def strip_markup(text: str | None) -> str:
    """Remove HTML tags injected by SonarQube syntax highlighting and trim."""
    if not text:
        return ""
    return _TAG_RE.sub("", text).strip()
