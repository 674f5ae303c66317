"""SonarQube metrics API client.

Usage:
    client = MetricsClient(url="https://sonar.example.com", cookie="XSRF-TOKEN=abc; JWT-SESSION=...")
    files  = client.list_leaf_components("my-project", ["coverage"], sort_metric="coverage")
    lines  = client.fetch_source_lines(files[0].key)
    dups   = client.fetch_duplications(files[0].key)
"""

import logging
import warnings
from typing import Any

import requests

from sonar_metrics.measures import measures_to_dict
from sonar_metrics.models import ComponentSummary

logger = logging.getLogger(__name__)

PAGE_SIZE = 500
SOURCE_LINES_TO = 1002
XSRF_COOKIE = "XSRF-TOKEN"
XSRF_HEADER = "X-XSRF-TOKEN"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MetricsClientError(Exception):
    """Base exception for all client errors."""


class TransportError(MetricsClientError):
    """Raised on a non-2xx response or when the server cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(TransportError):
    """Raised on HTTP 401/403 — session expired or insufficient permissions."""


class NotFoundError(TransportError):
    """Raised on HTTP 404 — project or component not found."""


class NetworkError(TransportError):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class MetricsClient:
    """Read-only wrapper around the SonarQube measures, sources and duplications API."""

    def __init__(
        self,
        url: str,
        cookie: str | None = None,
        token: str | None = None,
        timeout: int = 30,
    ) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/json"
        if cookie:
            self._load_cookie_header(cookie)
        if token:
            # SonarQube auth: token as username, empty password
            self._session.auth = (token, "")

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def list_leaf_components(
        self,
        project_key: str,
        metric_keys: list[str],
        sort_metric: str,
        *,
        ascending: bool = True,
        period_sort: bool = False,
    ) -> list[ComponentSummary]:
        """Return up to PAGE_SIZE leaf files of *project_key* carrying *metric_keys*.

        Only the first page is requested. When the server reports more
        results than fit on it, a warning is emitted and the rest is ignored.

        Raises:
            TransportError: non-2xx response or network failure
        """
        params: dict[str, Any] = {
            "component": project_key,
            "metricKeys": ",".join(metric_keys),
            "strategy": "leaves",
            "ps": PAGE_SIZE,
            "additionalFields": "metrics",
            "metricSort": sort_metric,
            "s": "metric",
            "metricSortFilter": "withMeasuresOnly",
            "asc": "true" if ascending else "false",
        }
        if period_sort:
            params["metricPeriodSort"] = 1

        data = self._request("/api/measures/component_tree", params)
        components = data.get("components")
        if not isinstance(components, list):
            logger.debug("component_tree response has no components list: %s", list(data))
            return []

        total = (data.get("paging") or {}).get("total", len(components))
        if isinstance(total, int) and total > PAGE_SIZE:
            warnings.warn(
                f"Project '{project_key}' has {total} matching files; only the first "
                f"{PAGE_SIZE} are analysed.",
                UserWarning,
                stacklevel=2,
            )

        return [_to_summary(c) for c in components if isinstance(c, dict) and "key" in c]

    def fetch_source_lines(self, component_key: str) -> list[dict]:
        """Return the per-line source/coverage annotations of one file.

        Lines past SOURCE_LINES_TO are never requested.

        Raises:
            TransportError: non-2xx response or network failure
        """
        params = {"key": component_key, "from": 1, "to": SOURCE_LINES_TO}
        data = self._request("/api/sources/lines", params)
        sources = data.get("sources")
        return sources if isinstance(sources, list) else []

    def fetch_duplications(self, component_key: str) -> dict:
        """Return the duplication descriptors of one file.

        An HTTP error status is not fatal here: it is logged and an empty
        dict is returned so the caller carries on without duplication detail.

        Raises:
            NetworkError: timeout or connection failure
        """
        try:
            return self._request("/api/duplications/show", {"key": component_key})
        except TransportError as exc:
            if exc.status_code is None:
                raise
            logger.warning("Could not fetch duplications for %s: %s", component_key, exc)
            return {}

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_cookie_header(self, cookie: str) -> None:
        """Copy a browser ``Cookie`` header into the session, echoing the XSRF token."""
        for pair in cookie.split(";"):
            name, sep, value = pair.strip().partition("=")
            if not sep or not name:
                continue
            self._session.cookies.set(name, value)
            if name == XSRF_COOKIE:
                self._session.headers[XSRF_HEADER] = value

    def _request(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = f"{self.base_url}{endpoint}"
        logger.debug("GET %s %s", url, params)
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach SonarQube server at '{self.base_url}'"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkError(f"Request to '{url}' failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Access denied ({response.status_code}) — check that your session "
                "cookie or token is valid and has browse permission.",
                status_code=response.status_code,
            )
        if response.status_code == 404:
            raise NotFoundError(f"Resource not found: {url}", status_code=404)
        if not response.ok:
            raise TransportError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            logger.warning("Non-JSON response from %s", url)
            return {}
        return data if isinstance(data, dict) else {}


def _to_summary(raw: dict) -> ComponentSummary:
    return ComponentSummary(
        key=raw["key"],
        name=raw.get("name", raw["key"]),
        path=raw.get("path", ""),
        measures=measures_to_dict(raw.get("measures") or []),
    )
