"""
Local git repository access through the ``git`` executable.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from devtrack_client.protocols import GitError, PreconditionFailed

logger = logging.getLogger(__name__)

HEADS_PREFIX = "refs/heads/"


@dataclass
class BranchMeta:
    """The checked-out branch and the commit it points to."""

    refname: str
    local_name: str
    upstream_name: Optional[str]
    oid: str
    summary: Optional[str]


def repo_name_from_url(url: str) -> str:
    """
    Repository name from a remote URL.

    ``git@host:group/my-repo.git``, ``https://host/group/my-repo.git`` and
    ``/srv/git/my-repo`` all give ``my-repo``.
    """
    last = re.split(r"[/:]", url.strip().rstrip("/"))[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last


class Repo:
    """A working copy, driven through git subcommands."""

    def __init__(self, root: Path, ssh_key: Optional[str] = None, remote: str = "origin"):
        self.root = Path(root)
        self.ssh_key = ssh_key
        self.remote = remote

    @classmethod
    def discover(cls, path: Optional[Path] = None, ssh_key: Optional[str] = None, remote: str = "origin") -> "Repo":
        """
        Find the repository containing ``path`` (default: the current directory).

        Raises:
            GitError: If ``path`` is not inside a git working copy
        """
        start = Path(path or Path.cwd()).expanduser().resolve()
        if not start.is_dir():
            raise GitError(f"Not a directory: {start}")
        result = _run_git(["rev-parse", "--show-toplevel"], cwd=start)
        if result.returncode != 0:
            raise GitError(f"Not a git repository: {start}", result.stderr.strip())
        root = Path(result.stdout.strip())
        logger.debug(f"Discovered repository at {root}")
        return cls(root, ssh_key=ssh_key, remote=remote)

    def _git(self, *args: str, env: Optional[Dict[str, str]] = None) -> str:
        result = _run_git(list(args), cwd=self.root, env=env)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise GitError(f"git {' '.join(args)} failed: {stderr}", stderr)
        return result.stdout.strip()

    def _git_ok(self, *args: str) -> Optional[str]:
        """Run a query whose failure just means "no answer"."""
        result = _run_git(list(args), cwd=self.root)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    # Queries

    def get_name(self, remote: Optional[str] = None) -> str:
        """Repository name taken from the remote's URL."""
        return repo_name_from_url(self._git("remote", "get-url", remote or self.remote))

    def head_refname(self) -> str:
        """
        Full refname of the checked-out branch.

        Raises:
            PreconditionFailed: If HEAD is detached
        """
        refname = self._git_ok("symbolic-ref", "--quiet", "HEAD")
        if not refname or not refname.startswith(HEADS_PREFIX):
            raise PreconditionFailed("HEAD is not a branch")
        return refname

    def upstream_name(self, local_name: str) -> Optional[str]:
        """Upstream branch name without the remote prefix, if one is configured."""
        upstream = self._git_ok("rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{local_name}@{{upstream}}")
        if not upstream:
            return None
        return self._strip_remote(upstream)

    def normalize_branch_name(self, branch_name: Optional[str] = None) -> str:
        """
        Branch name as the servers know it.

        An explicit name is returned as given; otherwise the upstream of the
        current branch is preferred over its local name.
        """
        if branch_name:
            return branch_name
        local_name = self.head_refname()[len(HEADS_PREFIX) :]
        return self.upstream_name(local_name) or local_name

    def branch_meta(self) -> BranchMeta:
        refname = self.head_refname()
        local_name = refname[len(HEADS_PREFIX) :]
        oid = self._git("rev-parse", "HEAD")
        summary = self._git_ok("log", "-1", "--format=%s", "HEAD") or None
        return BranchMeta(
            refname=refname,
            local_name=local_name,
            upstream_name=self.upstream_name(local_name),
            oid=oid,
            summary=summary,
        )

    def count_ahead_commits(self, base: str) -> int:
        """Number of commits on HEAD that ``base`` does not have."""
        return int(self._git("rev-list", "--count", f"{base}..HEAD"))

    def branch_exists(self, name: str) -> bool:
        return self._git_ok("show-ref", "--verify", "--quiet", f"{HEADS_PREFIX}{name}") is not None

    # Mutations

    def create_branch(self, name: str, start_point: str) -> None:
        """
        Create ``name`` from ``start_point`` and check it out.

        Raises:
            PreconditionFailed: If the branch already exists
        """
        if self.branch_exists(name):
            raise PreconditionFailed(f"Branch '{name}' already exists")
        self._git("branch", "--no-track", name, start_point)
        self._git("checkout", name)
        logger.info(f"Created branch {name} from {start_point}")

    def set_upstream(self, local_name: str, remote_branch: str, oid: str) -> None:
        """Point ``local_name`` at ``<remote>/<remote_branch>``, creating the tracking ref at ``oid``."""
        tracking_ref = f"refs/remotes/{self.remote}/{remote_branch}"
        self._git("update-ref", tracking_ref, oid)
        self._git("branch", f"--set-upstream-to={self.remote}/{remote_branch}", local_name)

    def push(self, refname: str, remote_branch: str) -> None:
        """Push ``refname`` to ``refs/heads/<remote_branch>`` on the remote."""
        env = None
        if self.ssh_key:
            env = {"GIT_SSH_COMMAND": f"ssh -i {self.ssh_key} -o IdentitiesOnly=yes"}
        refspec = f"{refname}:{HEADS_PREFIX}{remote_branch}"
        logger.info(f"Pushing {refspec} to {self.remote}")
        self._git("push", self.remote, refspec, env=env)

    def _strip_remote(self, name: str) -> str:
        for prefix in (f"refs/remotes/{self.remote}/", f"{self.remote}/", HEADS_PREFIX):
            if name.startswith(prefix):
                return name[len(prefix) :]
        return name


def _run_git(args: List[str], cwd: Path, env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
    full_env = None
    if env:
        full_env = {**os.environ, **env}
    logger.debug(f"git {' '.join(args)}")
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=full_env,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise GitError(f"git executable not found: {e}")
