from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import time
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import requests
from requests import Response
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import RequestException
from requests.exceptions import Timeout as RequestsTimeout

from ... import config
from ...context import RefreshContext
from ...errors import DecodeError, FetchError, FetchTimeoutError
from ...ports.github_port import Page

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


def next_page_number(response: Response) -> Optional[int]:
    """Read the page number of the rel="next" Link, if any."""
    link = response.links.get("next")
    if not link:
        return None
    values = parse_qs(urlparse(link.get("url", "")).query).get("page")
    if not values or not values[0].isdigit():
        return None
    return int(values[0])


@dataclass
class GitHubClient:
    """Small helper around GitHub REST + GraphQL for the authenticated user."""

    token: str

    base_url: str = config.GITHUB_API_URL
    graphql_url: str = config.GITHUB_GRAPHQL_URL

    timeout: float = config.REQUEST_TIMEOUT
    max_retries: int = config.MAX_RETRIES
    backoff_seconds: float = config.BACKOFF_SECONDS
    verbose: bool = False

    session: requests.Session = field(default_factory=requests.Session, repr=False)

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("token is required")
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "User-Agent": "github-exporter",
            }
        )

    @property
    def rest_headers(self) -> Dict[str, str]:
        return {"Accept": "application/vnd.github+json"}

    @property
    def graphql_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def graphql(self, ctx: RefreshContext, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request_with_retries(
            ctx,
            method="POST",
            url=self.graphql_url,
            headers=self.graphql_headers,
            json={"query": query, "variables": variables},
        )
        payload = self._decode(resp)
        if not isinstance(payload, dict):
            raise DecodeError("GraphQL response is not an object")
        if payload.get("errors"):
            raise FetchError(f"GraphQL errors: {payload['errors']}")
        return payload

    def rest_get(
        self, ctx: RefreshContext, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Response:
        return self._request_with_retries(
            ctx,
            method="GET",
            url=f"{self.base_url}{path}",
            headers=self.rest_headers,
            params=params or {},
        )

    def rest_get_page(
        self,
        ctx: RefreshContext,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        page: int = 1,
        per_page: int = config.PER_PAGE,
        items_key: Optional[str] = None,
    ) -> Page:
        merged = {**(params or {}), "per_page": per_page, "page": page}
        resp = self.rest_get(ctx, path, params=merged)
        data = self._decode(resp)
        if items_key is not None:
            if not isinstance(data, dict):
                raise DecodeError(f"{path}: expected an object with {items_key!r}")
            data = data.get(items_key) or []
        if not isinstance(data, list):
            raise DecodeError(f"{path}: expected a list")
        return Page(items=data, next_page=next_page_number(resp))

    def rest_get_paginated(
        self,
        ctx: RefreshContext,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        per_page: int = config.PER_PAGE,
        items_key: Optional[str] = None,
        page_limit: Optional[int] = None,
    ) -> Iterator[Dict[str, Any]]:
        page: Optional[int] = 1
        fetched = 0
        while page is not None:
            if page_limit is not None and fetched >= page_limit:
                return
            result = self.rest_get_page(
                ctx, path, params=params, page=page, per_page=per_page, items_key=items_key
            )
            fetched += 1
            for item in result.items:
                yield item
            page = result.next_page

    # RepoDataSource

    def list_repositories(
        self, ctx: RefreshContext, page: int = 1, per_page: int = config.PER_PAGE
    ) -> Page:
        return self.rest_get_page(
            ctx,
            "/user/repos",
            params={"type": "owner", "sort": "full_name", "direction": "asc"},
            page=page,
            per_page=per_page,
        )

    def list_workflow_runs(
        self,
        ctx: RefreshContext,
        owner: str,
        repo: str,
        branch: str,
        page: int = 1,
        per_page: int = config.PER_PAGE,
    ) -> Page:
        return self.rest_get_page(
            ctx,
            f"/repos/{owner}/{repo}/actions/runs",
            params={"branch": branch, "status": "completed"},
            page=page,
            per_page=per_page,
            items_key="workflow_runs",
        )

    def list_workflows(self, ctx: RefreshContext, owner: str, repo: str) -> List[Dict[str, Any]]:
        return list(
            self.rest_get_paginated(
                ctx, f"/repos/{owner}/{repo}/actions/workflows", items_key="workflows"
            )
        )

    def list_notifications(self, ctx: RefreshContext) -> List[Dict[str, Any]]:
        data = self._decode(self.rest_get(ctx, "/notifications"))
        if not isinstance(data, list):
            raise DecodeError("/notifications: expected a list")
        return data

    def get_authenticated_login(self, ctx: RefreshContext) -> str:
        data = self._decode(self.rest_get(ctx, "/user"))
        login = data.get("login") if isinstance(data, dict) else None
        if not login:
            raise DecodeError("/user: response has no login")
        return login

    @staticmethod
    def _decode(resp: Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"invalid JSON from {resp.url}") from exc

    def _sleep_before_retry(self, ctx: RefreshContext, seconds: float) -> None:
        remaining = ctx.remaining()
        if remaining is not None and seconds >= remaining:
            raise FetchTimeoutError("refresh deadline exceeded while backing off")
        time.sleep(seconds)

    def _backoff(self, attempt: int) -> float:
        return (self.backoff_seconds * (2 ** (attempt - 1))) + random.uniform(0.0, 0.25)

    def _request_with_retries(
        self,
        ctx: RefreshContext,
        *,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Response:
        for attempt in range(1, self.max_retries + 1):
            if self.verbose:
                logger.debug("%s %s", method, f"{url}?{urlencode(params)}" if params else url)
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    json=json,
                    timeout=ctx.timeout(self.timeout),
                )
            except RequestsTimeout as exc:
                if attempt >= self.max_retries:
                    raise FetchTimeoutError(f"{method} {url}: {exc}") from exc
                self._sleep_before_retry(ctx, self._backoff(attempt))
                continue
            except RequestsConnectionError as exc:
                if attempt >= self.max_retries:
                    raise FetchError(f"{method} {url}: {exc}") from exc
                self._sleep_before_retry(ctx, self._backoff(attempt))
                continue
            except RequestException as exc:
                raise FetchError(f"{method} {url}: {exc}") from exc

            if resp.status_code in RETRY_STATUSES and attempt < self.max_retries:
                retry_after = resp.headers.get("Retry-After")
                if retry_after and retry_after.isdigit():
                    sleep_seconds = float(retry_after)
                else:
                    sleep_seconds = self._backoff(attempt)
                logger.debug(
                    "%s %s returned %s, retrying in %.2fs (%d/%d)",
                    method, url, resp.status_code, sleep_seconds, attempt, self.max_retries,
                )
                self._sleep_before_retry(ctx, sleep_seconds)
                continue

            if not resp.ok:
                raise FetchError(f"{method} {url}: HTTP {resp.status_code} {resp.reason}")
            return resp

        raise FetchError(f"{method} {url}: request failed unexpectedly")
