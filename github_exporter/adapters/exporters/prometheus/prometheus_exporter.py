from __future__ import annotations

import logging
import sys
import time
from typing import Dict, List, Mapping, Optional, TextIO, Tuple

from prometheus_client import (
    CollectorRegistry,
    Gauge,
    generate_latest,
    push_to_gateway,
    start_http_server,
    write_to_textfile,
)

from .... import config
from ....domain.models import MetricSample

logger = logging.getLogger(__name__)

REPO_COUNT = "github_repo_count"
ISSUE_COUNT = "github_issue_count"
NOTIFICATION_COUNT = "github_notification_count"
WORKFLOW_RUN_NUMBER = "github_workflow_run_number"
WORKFLOW_RUN_CONCLUSION = "github_workflow_run_conclusion"

# name -> (help, label dimensions)
METRIC_CATALOG: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    REPO_COUNT: (
        "The total number of repositories",
        ("owner", "visibility", "archived"),
    ),
    ISSUE_COUNT: (
        "The count of issues or pulls",
        ("github_repo", "type", "state"),
    ),
    NOTIFICATION_COUNT: (
        "The number of notifications",
        ("unread",),
    ),
    WORKFLOW_RUN_NUMBER: (
        "The latest run number for a workflow.",
        ("github_repo", "workflow_name"),
    ),
    WORKFLOW_RUN_CONCLUSION: (
        "The latest state of a workflow run.",
        ("github_repo", "workflow_name", "github_workflow_run_conclusion"),
    ),
}


class MetricSink:
    """Latest-value store for the exporter's gauges.

    Owns its own registry so nothing lands in the process-wide default one.
    Gauge writes are thread-safe inside prometheus_client, so collectors
    may call set() concurrently without coordinating.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._gauges: Dict[str, Gauge] = {}
        for name, (documentation, labelnames) in METRIC_CATALOG.items():
            self._gauges[name] = Gauge(
                name, documentation, labelnames=labelnames, registry=self.registry
            )

    def set(self, name: str, labels: Mapping[str, str], value: float) -> None:
        """Set one series; the label keys must match the metric's dimensions."""
        gauge = self._gauges.get(name)
        if gauge is None:
            raise ValueError(f"unknown metric: {name}")
        expected = set(METRIC_CATALOG[name][1])
        if set(labels) != expected:
            raise ValueError(
                f"{name}: labels {sorted(labels)} do not match {sorted(expected)}"
            )
        gauge.labels(**labels).set(float(value))

    def write(self, sample: MetricSample) -> None:
        self.set(sample.name, sample.labels, sample.value)

    def gather(self):
        return list(self.registry.collect())

    def samples(self, name: Optional[str] = None) -> List[MetricSample]:
        """Current values, optionally restricted to one metric name."""
        result: List[MetricSample] = []
        for family in self.gather():
            for sample in family.samples:
                if name is not None and sample.name != name:
                    continue
                result.append(MetricSample(sample.name, dict(sample.labels), sample.value))
        return result

    def get(self, name: str, labels: Mapping[str, str]) -> Optional[float]:
        return self.registry.get_sample_value(name, dict(labels))

    # Export

    def render(self) -> bytes:
        return generate_latest(self.registry)

    def write_to_stream(self, stream: Optional[TextIO] = None) -> None:
        stream = stream or sys.stdout
        stream.write(self.render().decode("utf-8"))
        stream.flush()

    def write_to_textfile(self, path: str) -> None:
        write_to_textfile(path, self.registry)
        logger.info("Wrote metrics to %s", path)

    def push(
        self,
        gateway: str,
        job: str = config.PUSHGATEWAY_JOB,
        retries: int = config.DEFAULT_PUSHGATEWAY_RETRIES,
        delay: float = config.PUSHGATEWAY_RETRY_DELAY,
    ) -> None:
        """Push to a Pushgateway, making up to `retries` attempts.

        Only network errors are retried; a malformed gateway URL raises
        ValueError on the first attempt.
        """
        attempts = max(1, retries)
        for attempt in range(1, attempts + 1):
            try:
                push_to_gateway(gateway, job=job, registry=self.registry)
                logger.info("Pushed metrics to %s", gateway)
                return
            except OSError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "Error pushing metrics, retrying (%d/%d): %s", attempt, attempts, exc
                )
                time.sleep(delay)

    def start(self, host: str = "0.0.0.0", port: int = 9448):
        """Start the Prometheus HTTP metrics server for this registry."""
        server = start_http_server(port, addr=host, registry=self.registry)
        logger.info("Metrics server started on %s:%d", host, port)
        return server
