"""Process exit codes.

Every CLI command maps its outcome onto one of these values. They are part of
the public contract of the tool (CI jobs branch on them) and must stay stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success (including a no-op run)
    - 1: User error (bad version string, tag name rejected by policy)
    - 2: Environment error (history unreadable, git/gh missing, bad config)
    - 3: Build error (toolchain failed or produced no artifact)
    - 4: Network error (tag push or upload failed)
    - 5: unassigned
    - 6: Tag error (tag already exists for this version)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    TAG_ERROR = 6

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
