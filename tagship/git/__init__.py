"""Git operations module.

Usage:
    from tagship.git import Repository

    repo = Repository(Path("/path/to/repo"))
    exists = repo.tag_exists_local("1.2.3")
"""

from tagship.git.repository import GitError, LogEntry, Repository

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]
