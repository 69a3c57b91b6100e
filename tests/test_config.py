import pytest

from github_exporter.config import fetch_github_token, parse_duration, parse_listen_address
from github_exporter.errors import ConfigurationError


def test_github_token_takes_precedence():
    assert fetch_github_token({"GITHUB_TOKEN": "a", "GH_TOKEN": "b"}) == "a"
    assert fetch_github_token({"GH_TOKEN": " b \n"}) == "b"


def test_token_from_credentials_directory(tmp_path):
    (tmp_path / "github-token").write_text("from-file\n")
    (tmp_path / "gh-token").write_text("ignored")

    assert fetch_github_token({"CREDENTIALS_DIRECTORY": str(tmp_path)}) == "from-file"


def test_empty_credential_files_are_skipped(tmp_path):
    (tmp_path / "GITHUB_TOKEN").write_text("  ")
    (tmp_path / "GH_TOKEN").write_text("second")

    assert fetch_github_token({"CREDENTIALS_DIRECTORY": str(tmp_path)}) == "second"


def test_no_token():
    assert fetch_github_token({}) == ""


@pytest.mark.parametrize(
    "value,seconds",
    [("15m", 900), ("1h30m", 5400), ("90s", 90), ("500ms", 0.5), ("30", 30)],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "abc", "15x", "m15", "0s", "-5"])
def test_parse_duration_rejects(value):
    with pytest.raises(ConfigurationError):
        parse_duration(value)


def test_parse_listen_address():
    assert parse_listen_address(":9448") == ("0.0.0.0", 9448)
    assert parse_listen_address("127.0.0.1:8000") == ("127.0.0.1", 8000)
    with pytest.raises(ConfigurationError):
        parse_listen_address("localhost")
