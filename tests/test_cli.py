from unittest import mock

import pytest

from github_exporter import __version__, cli
from github_exporter.errors import CollectorError, FetchError


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch):
    for name in ("GITHUB_TOKEN", "GH_TOKEN", "CREDENTIALS_DIRECTORY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda verbose=False: None)


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_missing_token_is_an_error(capsys):
    assert cli.main(["generate"]) == 1
    assert "--token is required" in capsys.readouterr().err


def test_generate_writes_to_stdout_by_default(capsys):
    def fake_run(self, ctx=None):
        self.sink.set("github_notification_count", {"unread": "true"}, 7)

    with mock.patch.object(cli.UpdateOrchestrator, "run", fake_run):
        assert cli.main(["--token", "t", "generate"]) == 0

    assert 'github_notification_count{unread="true"} 7.0' in capsys.readouterr().out


def test_generate_fails_when_the_refresh_fails(capsys):
    error = CollectorError("issue metrics", FetchError("boom"))
    with mock.patch.object(cli.UpdateOrchestrator, "run", side_effect=error):
        assert cli.main(["--token", "t", "generate"]) == 1

    assert capsys.readouterr().out == ""


def test_generate_pushes_when_a_gateway_is_given(capsys):
    with mock.patch.object(cli.UpdateOrchestrator, "run"), \
            mock.patch.object(cli.MetricSink, "push") as push:
        assert cli.main(["--token", "t", "generate", "-p", "localhost:9091", "-r", "3"]) == 0

    push.assert_called_once_with("localhost:9091", retries=3)
    assert capsys.readouterr().out == ""


def test_generate_writes_a_textfile(tmp_path):
    path = tmp_path / "github.prom"
    with mock.patch.object(cli.UpdateOrchestrator, "run"):
        assert cli.main(["--token", "t", "generate", "-o", str(path)]) == 0

    assert path.exists()


def test_serve_rejects_a_bad_interval():
    assert cli.main(["--token", "t", "serve", "--interval", "soon"]) == 1


def test_generate_reports_a_malformed_gateway_url(capsys):
    target = "github_exporter.adapters.exporters.prometheus.prometheus_exporter.push_to_gateway"
    with mock.patch.object(cli.UpdateOrchestrator, "run"), \
            mock.patch(target, side_effect=ValueError("unknown url type: 'ftp'")) as push, \
            mock.patch("time.sleep"):
        assert cli.main(["--token", "t", "generate", "-p", "ftp://gateway", "-r", "3"]) == 1

    assert push.call_count == 1
