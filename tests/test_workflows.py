import pytest

from github_exporter.domain.metrics.workflows import (
    conclusion_one_hot,
    latest_runs_by_workflow,
    update_workflow_run_metrics,
)
from github_exporter.domain.models import CONCLUSIONS, Repository, WorkflowRun
from github_exporter.errors import DecodeError, FetchError

from fakes import run_record

REPO = Repository(owner="octo", name="x", full_name="octo/x", default_branch="main")


def conclusion_values(sink, workflow_name):
    return {
        c: sink.get(
            "github_workflow_run_conclusion",
            {
                "github_repo": "octo/x",
                "workflow_name": workflow_name,
                "github_workflow_run_conclusion": c,
            },
        )
        for c in CONCLUSIONS
    }


def test_latest_run_has_the_highest_run_number():
    runs = [WorkflowRun(1, 3), WorkflowRun(1, 7), WorkflowRun(1, 5)]

    assert latest_runs_by_workflow(runs)[1].run_number == 7


def test_first_seen_wins_on_a_tie():
    first = WorkflowRun(1, 4, "success")
    second = WorkflowRun(1, 4, "failure")

    assert latest_runs_by_workflow([first, second])[1] is first


def test_latest_runs_are_kept_per_workflow():
    runs = [WorkflowRun(1, 2), WorkflowRun(2, 9), WorkflowRun(1, 6), WorkflowRun(2, 1)]

    latest = latest_runs_by_workflow(runs)

    assert {k: v.run_number for k, v in latest.items()} == {1: 6, 2: 9}


def test_one_hot_sets_exactly_one_conclusion():
    values = conclusion_one_hot("success")

    assert values["success"] == 1.0
    assert sum(values.values()) == 1.0
    assert len(values) == 9


def test_unknown_conclusion_sets_nothing():
    assert sum(conclusion_one_hot("").values()) == 0.0


def test_emits_run_number_and_conclusions_for_latest_run(source, sink, ctx):
    source.runs["octo/x"] = [run_record(1, 2, "success"), run_record(1, 5, "failure")]
    source.workflows["octo/x"] = [{"id": 1, "name": "CI"}]

    update_workflow_run_metrics(source, sink, REPO, ctx)

    assert sink.get(
        "github_workflow_run_number", {"github_repo": "octo/x", "workflow_name": "CI"}
    ) == 5
    values = conclusion_values(sink, "CI")
    assert values["failure"] == 1.0
    assert all(v == 0.0 for c, v in values.items() if c != "failure")


def test_workflow_without_runs_emits_nothing(source, sink, ctx):
    source.runs["octo/x"] = [run_record(1, 1)]
    source.workflows["octo/x"] = [{"id": 1, "name": "CI"}, {"id": 2, "name": "Release"}]

    update_workflow_run_metrics(source, sink, REPO, ctx)

    names = {s.labels["workflow_name"] for s in sink.samples("github_workflow_run_number")}
    assert names == {"CI"}
    assert all(v is None for v in conclusion_values(sink, "Release").values())


def test_incomplete_runs_are_ignored(source, sink, ctx):
    source.runs["octo/x"] = [
        run_record(1, 3, "success"),
        {"workflow_id": 1, "run_number": 4, "conclusion": None, "status": "in_progress"},
    ]
    source.workflows["octo/x"] = [{"id": 1, "name": "CI"}]

    update_workflow_run_metrics(source, sink, REPO, ctx)

    assert sink.get(
        "github_workflow_run_number", {"github_repo": "octo/x", "workflow_name": "CI"}
    ) == 3


@pytest.mark.parametrize("failing", ["runs:octo/x", "workflows:octo/x"])
def test_listing_failure_is_a_fetch_error(source, sink, ctx, failing):
    source.runs["octo/x"] = [run_record(1, 1)]
    source.workflows["octo/x"] = [{"id": 1, "name": "CI"}]
    source.failures[failing] = FetchError("server error")

    with pytest.raises(FetchError):
        update_workflow_run_metrics(source, sink, REPO, ctx)


@pytest.mark.parametrize(
    "run",
    [
        {"workflow_id": 1, "run_number": "7", "status": "completed"},
        {"workflow_id": "1", "run_number": 7, "status": "completed"},
        {"workflow_id": 1, "status": "completed"},
    ],
)
def test_malformed_runs_are_decode_errors(source, sink, ctx, run):
    source.runs["octo/x"] = [run_record(1, 3), run]
    source.workflows["octo/x"] = [{"id": 1, "name": "CI"}]

    with pytest.raises(DecodeError):
        update_workflow_run_metrics(source, sink, REPO, ctx)
