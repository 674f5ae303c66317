import pytest

from sonar_metrics.client import MetricsClient
from sonar_metrics.enricher import DetailEnricher
from sonar_metrics.throttle import RateLimiter

BASE = "https://sonar.example.com"


@pytest.fixture
def client() -> MetricsClient:
    return MetricsClient(url=BASE, cookie="JWT-SESSION=sess; XSRF-TOKEN=xsrf123")


@pytest.fixture
def enricher(client) -> DetailEnricher:
    """Enricher that never sleeps."""
    return DetailEnricher(client, RateLimiter(0))
