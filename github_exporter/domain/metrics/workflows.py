from __future__ import annotations

from typing import Dict, Iterable, List

from ...adapters.exporters.prometheus.prometheus_exporter import (
    WORKFLOW_RUN_CONCLUSION,
    WORKFLOW_RUN_NUMBER,
    MetricSink,
)
from ...config import PER_PAGE, WORKFLOW_RUN_PAGE_LIMIT
from ...context import RefreshContext
from ...ports.github_port import RepoDataSource
from ..models import CONCLUSIONS, Repository, Workflow, WorkflowRun


def latest_runs_by_workflow(runs: Iterable[WorkflowRun]) -> Dict[int, WorkflowRun]:
    """Keep the run with the highest run number for each workflow.

    A later run only replaces the kept one when its number is strictly
    greater, so on a tie the first run seen wins.
    """
    latest: Dict[int, WorkflowRun] = {}
    for run in runs:
        existing = latest.get(run.workflow_id)
        if existing is None or run.run_number > existing.run_number:
            latest[run.workflow_id] = run
    return latest


def conclusion_one_hot(conclusion: str) -> Dict[str, float]:
    return {c: 1.0 if c == conclusion else 0.0 for c in CONCLUSIONS}


def fetch_completed_runs(
    source: RepoDataSource,
    ctx: RefreshContext,
    repo: Repository,
    per_page: int = PER_PAGE,
    page_limit: int = WORKFLOW_RUN_PAGE_LIMIT,
) -> List[WorkflowRun]:
    runs: List[WorkflowRun] = []
    page = 1
    for _ in range(page_limit):
        result = source.list_workflow_runs(
            ctx, repo.owner, repo.name, repo.default_branch, page=page, per_page=per_page
        )
        for item in result.items:
            run = WorkflowRun.from_api(item)
            if run.status in ("", "completed"):
                runs.append(run)
        if not result.next_page:
            break
        page = result.next_page
    return runs


def fetch_workflows(source: RepoDataSource, ctx: RefreshContext, repo: Repository) -> List[Workflow]:
    return [Workflow.from_api(item) for item in source.list_workflows(ctx, repo.owner, repo.name)]


def update_workflow_run_metrics(
    source: RepoDataSource,
    sink: MetricSink,
    repo: Repository,
    ctx: RefreshContext,
    page_limit: int = WORKFLOW_RUN_PAGE_LIMIT,
) -> None:
    latest = latest_runs_by_workflow(fetch_completed_runs(source, ctx, repo, page_limit=page_limit))
    workflows = fetch_workflows(source, ctx, repo)

    for workflow in workflows:
        run = latest.get(workflow.id)
        if run is None:
            continue

        labels = {"github_repo": repo.full_name, "workflow_name": workflow.name}
        sink.set(WORKFLOW_RUN_NUMBER, labels, run.run_number)
        for conclusion, value in conclusion_one_hot(run.conclusion).items():
            sink.set(
                WORKFLOW_RUN_CONCLUSION,
                {**labels, "github_workflow_run_conclusion": conclusion},
                value,
            )
