from __future__ import annotations

from collections import Counter
from typing import Iterable, List

from ...adapters.exporters.prometheus.prometheus_exporter import REPO_COUNT, MetricSink
from ...config import PER_PAGE
from ...context import RefreshContext
from ...ports.github_port import RepoDataSource
from ..models import Repository


def list_owned_repositories(
    source: RepoDataSource, ctx: RefreshContext, per_page: int = PER_PAGE
) -> List[Repository]:
    """Every repository owned by the authenticated user, archived included.

    Follows pagination until the source reports no next page. Any page
    failure propagates, so callers never see a truncated list.
    """
    repos: List[Repository] = []
    page = 1
    while True:
        result = source.list_repositories(ctx, page=page, per_page=per_page)
        for item in result.items:
            if item:
                repos.append(Repository.from_api(item))
        if not result.next_page:
            break
        page = result.next_page
    return repos


def active_repositories(repos: Iterable[Repository]) -> List[Repository]:
    """Drop archived repositories and sort by full name."""
    return sorted((r for r in repos if not r.archived), key=lambda r: r.full_name)


def enumerate_repositories(
    source: RepoDataSource, ctx: RefreshContext, per_page: int = PER_PAGE
) -> List[Repository]:
    """Non-archived repositories owned by the authenticated user, sorted by full name."""
    return active_repositories(list_owned_repositories(source, ctx, per_page=per_page))


def update_repo_count_metrics(sink: MetricSink, repos: Iterable[Repository]) -> None:
    counts = Counter(
        (repo.owner, repo.visibility, "true" if repo.archived else "false") for repo in repos
    )
    for (owner, visibility, archived), count in counts.items():
        sink.set(
            REPO_COUNT,
            {"owner": owner, "visibility": visibility, "archived": archived},
            count,
        )
