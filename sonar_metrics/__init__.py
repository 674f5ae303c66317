"""Per-file coverage and duplication reports scraped from a SonarQube server."""

__version__ = "0.1.0"
