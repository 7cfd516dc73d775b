"""
Pytest configuration and fixtures for devtrack tests.
"""

import json
import shutil
import subprocess
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, List, Tuple
from urllib.parse import urlsplit

import pytest

from devtrack_client.config import Settings


class StubHandler(BaseHTTPRequestHandler):
    """Records every request and answers from the server's canned responses."""

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode("utf-8") if length else ""
        self.server.requests.append(
            {
                "method": self.command,
                "path": self.path,
                "headers": {key: value for key, value in self.headers.items()},
                "body": body,
            }
        )

        key = (self.command, urlsplit(self.path).path)
        status, payload = self.server.responses.get(key, (404, '{"error": "not found"}'))
        data = payload.encode("utf-8")

        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _handle
    do_POST = _handle

    def log_message(self, format: str, *args: Any) -> None:
        pass


class StubServer(HTTPServer):
    """Local HTTP server with per-route canned responses."""

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), StubHandler)
        self.requests: List[Dict[str, Any]] = []
        self.responses: Dict[Tuple[str, str], Tuple[int, str]] = {}

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.server_port}"

    def respond(self, method: str, path: str, payload: Any, status: int = 200) -> None:
        """Serve ``payload`` (JSON-encoded unless already a string) for ``method path``."""
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self.responses[(method, path)] = (status, text)


@pytest.fixture
def api_server():
    """A running stub API server."""
    server = StubServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def git(cwd, *args: str) -> str:
    """Run git in ``cwd`` and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """
    A working copy on ``master`` with one commit, cloned from a bare
    ``my-repo.git`` remote named ``origin``.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    remote = tmp_path / "my-repo.git"
    remote.mkdir()
    git(remote, "init", "--bare")
    git(remote, "symbolic-ref", "HEAD", "refs/heads/master")

    work = tmp_path / "work"
    work.mkdir()
    git(work, "init")
    git(work, "symbolic-ref", "HEAD", "refs/heads/master")
    git(work, "config", "user.email", "dev@example.com")
    git(work, "config", "user.name", "Dev")
    git(work, "config", "commit.gpgsign", "false")
    git(work, "commit", "--allow-empty", "-m", "Initial commit")
    git(work, "remote", "add", "origin", str(remote))
    git(work, "push", "origin", "master")
    return work


@pytest.fixture
def settings():
    """Settings with all three services configured."""
    return Settings.model_validate(
        {
            "default_branch": "master",
            "teamcity": {
                "client": {"host": "https://ci.example.com", "auth_token": "tc-token"},
                "build_types": {"my-repo": "MyRepo_Build"},
            },
            "youtrack": {
                "client": {"host": "https://yt.example.com", "auth_token": "yt-token"},
                "subtask_tags": ["backend"],
            },
            "gitlab": {
                "client": {"host": "https://gitlab.example.com", "auth_token": "gl-token"},
            },
        }
    )
