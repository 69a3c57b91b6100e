from __future__ import annotations

import logging
from typing import Optional

from ..adapters.exporters.prometheus.prometheus_exporter import MetricSink
from ..config import WORKFLOW_RUN_PAGE_LIMIT
from ..context import RefreshContext
from ..domain.metrics.issues import update_issue_metrics
from ..domain.metrics.notifications import update_notification_metrics
from ..domain.metrics.repos import (
    active_repositories,
    list_owned_repositories,
    update_repo_count_metrics,
)
from ..domain.metrics.workflows import update_workflow_run_metrics
from ..errors import CollectorError
from ..ports.github_port import RepoDataSource
from .task_group import TaskGroup

logger = logging.getLogger(__name__)


class UpdateOrchestrator:
    """
    Runs one full refresh: every collector concurrently, plus one workflow
    collector per active repository. Siblings keep running when one fails;
    run() raises the first labelled error once everything has finished.
    """

    def __init__(
        self,
        source: RepoDataSource,
        sink: MetricSink,
        max_workers: Optional[int] = None,
        workflow_run_page_limit: int = WORKFLOW_RUN_PAGE_LIMIT,
    ):
        self.source = source
        self.sink = sink
        self.max_workers = max_workers
        self.workflow_run_page_limit = workflow_run_page_limit

    def run(self, ctx: Optional[RefreshContext] = None) -> None:
        ctx = ctx or RefreshContext()
        with TaskGroup("refresh", max_workers=3) as group:
            group.go("notifications metrics", update_notification_metrics, self.source, self.sink, ctx)
            group.go("issue metrics", update_issue_metrics, self.source, self.sink, ctx)
            group.go("repo metrics", self._update_repo_metrics, ctx)
            group.wait()

    def _update_repo_metrics(self, ctx: RefreshContext) -> None:
        try:
            repos = list_owned_repositories(self.source, ctx)
        except Exception as exc:
            raise CollectorError("fetching repos", exc) from exc

        active = active_repositories(repos)
        logger.debug("Collecting workflow metrics for %d repositories", len(active))

        with TaskGroup("repos", max_workers=self.max_workers) as group:
            group.go("repo count metrics", update_repo_count_metrics, self.sink, repos)
            for repo in active:
                group.go(
                    f"workflow metrics for {repo.full_name}",
                    update_workflow_run_metrics,
                    self.source,
                    self.sink,
                    repo,
                    ctx,
                    page_limit=self.workflow_run_page_limit,
                )
            group.wait()


def update_github_metrics(
    source: RepoDataSource,
    sink: MetricSink,
    ctx: Optional[RefreshContext] = None,
    max_workers: Optional[int] = None,
) -> None:
    """Run one refresh cycle; raises CollectorError if any collector failed."""
    UpdateOrchestrator(source, sink, max_workers=max_workers).run(ctx)
