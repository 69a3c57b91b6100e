from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

GITHUB_API_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

PER_PAGE = 100
REQUEST_TIMEOUT = 60
MAX_RETRIES = 5
BACKOFF_SECONDS = 1.0

# Completed runs are listed newest first; one page covers active workflows.
WORKFLOW_RUN_PAGE_LIMIT = 1

DEFAULT_LISTEN = ":9448"
DEFAULT_INTERVAL = "15m"
DEFAULT_PUSHGATEWAY_RETRIES = 1
PUSHGATEWAY_JOB = "github"
PUSHGATEWAY_RETRY_DELAY = 2.0

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
TOKEN_CREDENTIAL_FILES = ("GITHUB_TOKEN", "GH_TOKEN", "github-token", "gh-token")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def fetch_github_token(environ: Optional[Mapping[str, str]] = None) -> str:
    """Find a GitHub token in the environment or in systemd credentials.

    Returns an empty string when no token is available.
    """
    env = os.environ if environ is None else environ

    for name in TOKEN_ENV_VARS:
        token = (env.get(name) or "").strip()
        if token:
            return token

    creds_dir = env.get("CREDENTIALS_DIRECTORY")
    if creds_dir:
        for filename in TOKEN_CREDENTIAL_FILES:
            path = Path(creds_dir) / filename
            try:
                token = path.read_text().strip()
            except OSError:
                continue
            if token:
                return token

    return ""


def parse_duration(value: str) -> float:
    """Parse '15m', '1h30m', '90s' or a plain number of seconds."""
    text = (value or "").strip()
    if not text:
        raise ConfigurationError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            raise ConfigurationError(f"invalid duration: {value!r}")

    if seconds <= 0:
        raise ConfigurationError(f"duration must be positive: {value!r}")
    return seconds


def parse_listen_address(value: str) -> Tuple[str, int]:
    """Split 'host:port' (host optional) into its parts."""
    host, sep, port = (value or "").rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"invalid listen address: {value!r}")
    return host or "0.0.0.0", int(port)
