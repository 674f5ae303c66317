"""Tests for sonar_metrics/config.py"""

import textwrap
from pathlib import Path

import pytest

from sonar_metrics.config import (
    Config,
    ConfigError,
    generate_template,
    load,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_config(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "sonar-config.yaml"
    p.write_text(textwrap.dedent(content), encoding="utf-8")
    return p


VALID_YAML = """\
    server:
      url: "https://sonar.example.com"
      cookie: "JWT-SESSION=abc; XSRF-TOKEN=xyz"
    throttle:
      delay_ms: 150
    projects:
      shop: "com.example.shop"
      billing: "com.example.billing"
    """


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("SONAR_URL", "SONAR_COOKIE", "SONAR_TOKEN"):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# load() — happy path
# ---------------------------------------------------------------------------

def test_load_valid_config(tmp_path):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.url == "https://sonar.example.com"
    assert config.cookie == "JWT-SESSION=abc; XSRF-TOKEN=xyz"
    assert config.token == ""
    assert config.delay_ms == 150
    assert config.interval == 0.15
    assert config.projects == {"shop": "com.example.shop", "billing": "com.example.billing"}


def test_load_minimal_config_uses_defaults(tmp_path):
    p = write_config(tmp_path, """\
        server:
          url: "https://sonar.example.com"
        """)
    config = load(str(p))
    assert config.delay_ms == 100
    assert config.projects == {}
    assert config.cookie == ""


# ---------------------------------------------------------------------------
# load() — errors
# ---------------------------------------------------------------------------

def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load(str(tmp_path / "no-such-file.yaml"))


def test_load_missing_url(tmp_path):
    p = write_config(tmp_path, """\
        server:
          token: "squ_abc123"
        """)
    with pytest.raises(ConfigError, match="server.url"):
        load(str(p))


def test_load_negative_delay(tmp_path):
    p = write_config(tmp_path, """\
        server:
          url: "https://sonar.example.com"
        throttle:
          delay_ms: -5
        """)
    with pytest.raises(ConfigError, match="delay_ms"):
        load(str(p))


def test_load_non_numeric_delay(tmp_path):
    p = write_config(tmp_path, """\
        server:
          url: "https://sonar.example.com"
        throttle:
          delay_ms: "fast"
        """)
    with pytest.raises(ConfigError, match="delay_ms"):
        load(str(p))


def test_load_not_a_mapping(tmp_path):
    p = write_config(tmp_path, "- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load(str(p))


def test_load_invalid_yaml(tmp_path):
    p = write_config(tmp_path, "server: [unclosed\n")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load(str(p))


# ---------------------------------------------------------------------------
# load() — environment variable overrides
# ---------------------------------------------------------------------------

def test_env_sonar_url_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("SONAR_URL", "https://override.example.com")
    assert load(str(p)).url == "https://override.example.com"


def test_env_cookie_and_token_override_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("SONAR_COOKIE", "XSRF-TOKEN=env")
    monkeypatch.setenv("SONAR_TOKEN", "squ_override")
    config = load(str(p))
    assert config.cookie == "XSRF-TOKEN=env"
    assert config.token == "squ_override"


def test_env_vars_can_supply_missing_fields(tmp_path, monkeypatch):
    """Config with no server section is valid when env vars are set."""
    p = write_config(tmp_path, """\
        projects:
          shop: "com.example.shop"
        """)
    monkeypatch.setenv("SONAR_URL", "https://sonar.example.com")
    assert load(str(p)).url == "https://sonar.example.com"


# ---------------------------------------------------------------------------
# resolve_project()
# ---------------------------------------------------------------------------

def test_resolve_known_alias():
    config = Config(url="u", projects={"shop": "com.example.shop"})
    assert config.resolve_project("shop") == "com.example.shop"


def test_resolve_raw_key_passthrough():
    """Passing the raw SonarQube key directly should also work."""
    config = Config(url="u", projects={"shop": "com.example.shop"})
    assert config.resolve_project("com.example.other") == "com.example.other"


# ---------------------------------------------------------------------------
# generate_template()
# ---------------------------------------------------------------------------

def test_generate_template_creates_loadable_file(tmp_path):
    out = tmp_path / "sonar-config.yaml"
    generate_template(str(out))
    content = out.read_text()
    assert "server:" in content
    assert "throttle:" in content
    assert "projects:" in content
    assert load(str(out)).delay_ms == 100


def test_generate_template_refuses_to_overwrite(tmp_path):
    out = tmp_path / "sonar-config.yaml"
    out.write_text("existing content")
    with pytest.raises(ConfigError, match="already exists"):
        generate_template(str(out))
