from __future__ import annotations

from typing import Any, Dict, List

from ...adapters.exporters.prometheus.prometheus_exporter import ISSUE_COUNT, MetricSink
from ...context import RefreshContext
from ...errors import DecodeError
from ...ports.github_port import RepoDataSource
from ..models import IssuePRCount

ISSUES_QUERY = """
query ($login: String!) {
  user(login: $login) {
    repositories(first: 100, affiliations: OWNER, isArchived: false) {
      nodes {
        nameWithOwner
        openIssues: issues(states: OPEN) { totalCount }
        closedIssues: issues(states: CLOSED) { totalCount }
        openPulls: pullRequests(states: OPEN) { totalCount }
        closedPulls: pullRequests(states: CLOSED) { totalCount }
      }
    }
  }
}
"""


def _total(node: Dict[str, Any], key: str) -> int:
    connection = node.get(key)
    if not isinstance(connection, dict):
        raise DecodeError(f"{key} is not an object")
    count = connection.get("totalCount")
    if not isinstance(count, int) or isinstance(count, bool):
        raise DecodeError(f"{key}.totalCount is not an integer")
    return count


def parse_issue_counts(payload: Dict[str, Any]) -> List[IssuePRCount]:
    """Turn the GraphQL response into per-repository totals."""
    try:
        nodes = payload["data"]["user"]["repositories"]["nodes"]
    except (KeyError, TypeError) as exc:
        raise DecodeError(f"unexpected issue query response: {exc!r}") from exc
    if not isinstance(nodes, list):
        raise DecodeError("repositories.nodes is not a list")

    counts: List[IssuePRCount] = []
    for node in nodes:
        if not isinstance(node, dict) or not node.get("nameWithOwner"):
            raise DecodeError("repository node has no nameWithOwner")
        counts.append(
            IssuePRCount(
                repo=node["nameWithOwner"],
                open_issues=_total(node, "openIssues"),
                closed_issues=_total(node, "closedIssues"),
                open_pulls=_total(node, "openPulls"),
                closed_pulls=_total(node, "closedPulls"),
            )
        )
    return counts


def fetch_issue_counts(source: RepoDataSource, ctx: RefreshContext) -> List[IssuePRCount]:
    login = source.get_authenticated_login(ctx)
    payload = source.graphql(ctx, ISSUES_QUERY, {"login": login})
    return parse_issue_counts(payload)


def update_issue_metrics(source: RepoDataSource, sink: MetricSink, ctx: RefreshContext) -> None:
    for count in fetch_issue_counts(source, ctx):
        for (kind, state), total in count.samples().items():
            sink.set(ISSUE_COUNT, {"github_repo": count.repo, "type": kind, "state": state}, total)
