from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..context import RefreshContext


@dataclass(frozen=True)
class Page:
    """One page of a REST listing; next_page is None on the last page."""

    items: List[Dict[str, Any]] = field(default_factory=list)
    next_page: Optional[int] = None


class RepoDataSource(Protocol):
    """Port used by the collectors to read account data from GitHub.

    This keeps the collectors independent of a specific GitHub client
    implementation (REST/GraphQL library, retries, etc.). Every method
    raises FetchError when the remote call fails.
    """

    def list_repositories(self, ctx: RefreshContext, page: int = 1, per_page: int = 100) -> Page:
        """Repositories owned by the authenticated user, by full name ascending."""
        ...

    def list_workflow_runs(
        self,
        ctx: RefreshContext,
        owner: str,
        repo: str,
        branch: str,
        page: int = 1,
        per_page: int = 100,
    ) -> Page:
        """Completed workflow runs on one branch, newest first."""
        ...

    def list_workflows(self, ctx: RefreshContext, owner: str, repo: str) -> List[Dict[str, Any]]:
        ...

    def list_notifications(self, ctx: RefreshContext) -> List[Dict[str, Any]]:
        ...

    def get_authenticated_login(self, ctx: RefreshContext) -> str:
        ...

    def graphql(self, ctx: RefreshContext, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        ...
