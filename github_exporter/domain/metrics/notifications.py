from __future__ import annotations

from ...adapters.exporters.prometheus.prometheus_exporter import NOTIFICATION_COUNT, MetricSink
from ...context import RefreshContext
from ...ports.github_port import RepoDataSource
from ..models import NotificationSummary


def fetch_notification_summary(source: RepoDataSource, ctx: RefreshContext) -> NotificationSummary:
    notifications = source.list_notifications(ctx)
    unread = sum(1 for n in notifications if isinstance(n, dict) and n.get("unread") is True)
    return NotificationSummary(unread=unread)


def update_notification_metrics(source: RepoDataSource, sink: MetricSink, ctx: RefreshContext) -> None:
    summary = fetch_notification_summary(source, ctx)
    sink.set(NOTIFICATION_COUNT, {"unread": "true"}, summary.unread)
