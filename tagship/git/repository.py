"""Git repository abstraction.

This module provides the Repository class for the git operations a release
needs: reading history since a tag, checking and creating tags, pushing a
single tag, and checking out a tagged commit into a scratch worktree.
All operations return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"), remote="origin")

    match repo.log_since("1.2.3"):
        case Ok(entries):
            for entry in entries:
                print(entry.short_sha, entry.subject)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagship.core.result import Ok, Result
from tagship.platform.process import run as run_process

# Field/record separators for `git log --format`; never present in messages.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A single commit from `git log`.

    Attributes:
        sha: Full commit hash
        message: Full commit message (subject, body and footers)
    """

    sha: str
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:8]

    @property
    def subject(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0].strip() if lines else ""


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
        remote: Remote that tags are pushed to and checked against
    """

    def __init__(
        self,
        path: Path,
        *,
        remote: str = "origin",
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize repository.

        Args:
            path: Path to repository root (containing .git)
            remote: Remote name for tag pushes and remote lookups
            env: Environment for git subprocesses (credentials live here)
        """
        self.path = path
        self.remote = remote
        self._env = env

    def exists(self) -> bool:
        """Check if this is a valid git repository (or worktree)."""
        return (self.path / ".git").exists()

    def current_branch(self) -> str | None:
        """Branch HEAD points at, or None when detached or unreadable."""
        match self._git(["rev-parse", "--abbrev-ref", "HEAD"], command="rev-parse"):
            case Ok(stdout) if stdout.strip() != "HEAD":
                return stdout.strip()
            case _:
                return None

    def resolve_commit(self, ref: str) -> Result[str, GitError]:
        """Resolve a ref (tag, branch, sha) to the full sha of its commit.

        Annotated tags are peeled to the commit they point at.
        """
        return self._git(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            command="rev-parse",
            fallback=f"unknown revision: {ref}",
        ).map(str.strip)

    def merged_tags(self, pattern: str = "*") -> Result[list[str], GitError]:
        """List tags reachable from HEAD that match a glob pattern."""
        listed = self._git(
            ["tag", "--merged", "HEAD", "--list", pattern],
            command="tag --merged",
            fallback="failed to list tags",
        )
        return listed.map(lambda out: [ln.strip() for ln in out.splitlines() if ln.strip()])

    def log_since(self, ref: str | None) -> Result[list[LogEntry], GitError]:
        """Commits reachable from HEAD but not from ``ref``, oldest first.

        With ``ref=None`` the whole history of HEAD is returned.
        """
        rev_range = f"{ref}..HEAD" if ref else "HEAD"
        logged = self._git(
            ["log", "--reverse", f"--format=%H{_FIELD_SEP}%B{_RECORD_SEP}", rev_range],
            command="log",
            fallback=f"failed to read history: {rev_range}",
        )
        return logged.map(_parse_log)

    def tag_exists_local(self, name: str) -> Result[bool, GitError]:
        listed = self._git(["tag", "--list", name], command="tag --list")
        return listed.map(lambda out: out.strip() == name)

    def tag_exists_remote(self, name: str) -> Result[bool, GitError]:
        listed = self._git(
            ["ls-remote", "--tags", self.remote, f"refs/tags/{name}"],
            command="ls-remote",
            fallback=f"failed to query {self.remote}",
        )
        return listed.map(lambda out: bool(out.strip()))

    def create_annotated_tag(
        self, name: str, message: str, commit: str = "HEAD"
    ) -> Result[None, GitError]:
        """Create an annotated tag object locally (does not push)."""
        return self._git(
            ["tag", "-a", name, "-m", message, commit],
            command="tag -a",
            fallback=f"failed to create tag {name}",
        ).map(lambda _: None)

    def push_tag(self, name: str) -> Result[str, GitError]:
        """Push a single tag to the remote.

        Pushing a tag the remote already holds with the same object is a
        no-op for git and succeeds.
        """
        pushed = self._git(["push", self.remote, f"refs/tags/{name}"], command="push")
        return pushed.map(str.strip)

    def add_worktree(self, path: Path, commit: str) -> Result[None, GitError]:
        """Check out ``commit`` (detached) into a new worktree at ``path``."""
        return self._git(
            ["worktree", "add", "--detach", str(path), commit],
            command="worktree add",
            fallback=f"failed to check out {commit}",
        ).map(lambda _: None)

    def remove_worktree(self, path: Path) -> Result[None, GitError]:
        return self._git(
            ["worktree", "remove", "--force", str(path)],
            command="worktree remove",
        ).map(lambda _: None)

    def _git(
        self, args: list[str], *, command: str, fallback: str = ""
    ) -> Result[str, GitError]:
        """Run git in this repository; failures carry git's own output."""
        result = run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            env=self._env,
        )
        return result.map_err(
            lambda e: GitError(
                command=command,
                message=e.stderr.strip() or e.stdout.strip() or fallback or f"git {command} failed",
                returncode=e.returncode,
            )
        )


def _parse_log(output: str) -> list[LogEntry]:
    """Parse `git log --format=%H<US>%B<RS>` output."""
    entries: list[LogEntry] = []
    for record in output.split(_RECORD_SEP):
        sha, _, message = record.strip("\n").partition(_FIELD_SEP)
        if sha.strip():
            entries.append(LogEntry(sha=sha.strip(), message=message.strip()))
    return entries
