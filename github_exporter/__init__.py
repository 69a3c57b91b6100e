__version__ = "1.0.0"

from .adapters.exporters.prometheus.prometheus_exporter import METRIC_CATALOG, MetricSink
from .adapters.github.github_client import GitHubClient
from .app.orchestrator import UpdateOrchestrator, update_github_metrics
from .app.scheduler import RefreshScheduler
from .context import RefreshContext
from .domain.metrics.issues import update_issue_metrics
from .domain.metrics.notifications import update_notification_metrics
from .domain.metrics.repos import enumerate_repositories, update_repo_count_metrics
from .domain.metrics.workflows import latest_runs_by_workflow, update_workflow_run_metrics
from .errors import CollectorError, DecodeError, FetchError, FetchTimeoutError

__all__ = [
    "METRIC_CATALOG",
    "MetricSink",
    "GitHubClient",
    "UpdateOrchestrator",
    "update_github_metrics",
    "RefreshScheduler",
    "RefreshContext",
    "update_issue_metrics",
    "update_notification_metrics",
    "enumerate_repositories",
    "update_repo_count_metrics",
    "latest_runs_by_workflow",
    "update_workflow_run_metrics",
    "CollectorError",
    "DecodeError",
    "FetchError",
    "FetchTimeoutError",
]
