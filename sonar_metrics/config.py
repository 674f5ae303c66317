"""Configuration loading and validation.

Usage:
    config = load("sonar-config.yaml")          # raises ConfigError on bad config
    key = config.resolve_project("my-project")  # alias from projects:, else the name itself
    generate_template("sonar-config.yaml")      # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from sonar_metrics.throttle import DEFAULT_INTERVAL


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    url: str
    cookie: str = ""
    token: str = ""
    delay_ms: float = DEFAULT_INTERVAL * 1000
    projects: dict[str, str] = field(default_factory=dict)

    @property
    def interval(self) -> float:
        """Pause between detail requests, in seconds."""
        return self.delay_ms / 1000

    def resolve_project(self, name: str) -> str:
        """Return the SonarQube project key for a given alias.

        Names that are not a configured alias are taken to be raw project
        keys and returned unchanged.
        """
        return self.projects.get(name, name)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = "sonar-config.yaml") -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables SONAR_URL, SONAR_COOKIE and SONAR_TOKEN override
    file values.

    Raises:
        ConfigError: if the file is missing, malformed, or required fields
                     are absent.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m sonar_metrics init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    server = raw.get("server") or {}
    throttle = raw.get("throttle") or {}
    url    = os.environ.get("SONAR_URL")    or server.get("url",    "")
    cookie = os.environ.get("SONAR_COOKIE") or server.get("cookie", "")
    token  = os.environ.get("SONAR_TOKEN")  or server.get("token",  "")
    delay  = throttle.get("delay_ms", DEFAULT_INTERVAL * 1000)
    projects: dict[str, str] = raw.get("projects") or {}

    config = Config(
        url=str(url).strip(),
        cookie=str(cookie or "").strip(),
        token=str(token or "").strip(),
        delay_ms=delay,
        projects=projects,
    )
    _validate(config)
    return config


def _validate(config: Config) -> None:
    """Raise ConfigError if required fields are missing or invalid."""
    errors: list[str] = []

    if not config.url:
        errors.append(
            "  - 'server.url' is missing (or set the SONAR_URL environment variable)"
        )
    if isinstance(config.delay_ms, bool) or not isinstance(config.delay_ms, (int, float)):
        errors.append("  - 'throttle.delay_ms' must be a number of milliseconds")
    elif config.delay_ms < 0:
        errors.append("  - 'throttle.delay_ms' must not be negative")
    if not isinstance(config.projects, dict):
        errors.append("  - 'projects' must be a mapping of alias: project key")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
server:
  url: "https://sonar.example.com"
  # Copy the Cookie header of a logged-in browser tab; XSRF-TOKEN is echoed back
  cookie: "JWT-SESSION=xxxxxxxx; XSRF-TOKEN=xxxxxxxx"
  # Or use a user token instead: <your-sonar-url>/account/security
  # token: "squ_xxxxxxxxxxxx"

throttle:
  delay_ms: 100                    # pause between detail requests

projects:
  # Human-readable alias: SonarQube project key
  my-project: "com.example.my-project"
  another:    "com.example.another-service"
"""


def generate_template(output_path: str = "sonar-config.yaml") -> None:
    """Write a template sonar-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
