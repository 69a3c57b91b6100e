import pytest

from github_exporter.adapters.exporters.prometheus.prometheus_exporter import MetricSink
from github_exporter.context import RefreshContext

from fakes import FakeSource


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def sink() -> MetricSink:
    return MetricSink()


@pytest.fixture
def ctx() -> RefreshContext:
    return RefreshContext()
