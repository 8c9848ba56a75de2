"""GitHub release store, driven through the ``gh`` CLI.

Assets are never overwritten (no ``--clobber``): an asset that is already
attached to the release is reported as a ``conflict`` and the publisher
applies the configured conflict policy.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from time import sleep

from tagship.core.result import Err, Ok, Result
from tagship.core.structured import as_obj_list, as_str_dict, get_str
from tagship.output.console import ConsoleProtocol, Style
from tagship.platform.process import NOT_RUN, ProcessError, child_env
from tagship.platform.process import run as run_process
from tagship.release.errors import UploadFailed
from tagship.release.model import ReleaseTag, UploadReceipt
from tagship.release.timeouts import GH_READ_RETRY_ATTEMPTS, GH_READ_RETRY_DELAY_SECONDS

_NOT_FOUND_MARKERS = ("release not found", "http 404", "not found")


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == NOT_RUN and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _NOT_FOUND_MARKERS)


class GitHubReleaseStore:
    """Uploads release assets with ``gh release``.

    Args:
        repo_root: Local checkout; gh infers the repository from it when
            ``repo_slug`` is None.
        repo_slug: ``owner/name`` of the GitHub repository.
        token: Token passed to gh as ``GH_TOKEN`` (None: gh's own auth).
        console: Progress output.
    """

    def __init__(
        self,
        *,
        repo_root: Path,
        repo_slug: str | None,
        token: str | None,
        console: ConsoleProtocol,
    ) -> None:
        self._root = repo_root
        self._slug = repo_slug
        self._console = console
        overrides = {"GH_TOKEN": token} if token else {}
        self._env: Mapping[str, str] = child_env({**overrides, "GH_PROMPT_DISABLED": "1"})

    def upload_asset(
        self, tag: ReleaseTag, file_path: Path, *, notes: str | None = None
    ) -> Result[UploadReceipt, UploadFailed]:
        release = self._ensure_release(tag, notes=notes)
        if isinstance(release, Err):
            return release

        assets = self._asset_names(tag)
        if isinstance(assets, Err):
            return assets

        location = self._asset_location(tag, file_path.name)
        if file_path.name in assets.value:
            return Ok(UploadReceipt(status="conflict", location=location))

        self._console.print(f"gh release upload {tag.name} {file_path.name}", Style.DIM)
        upload = ["gh", "release", "upload", tag.name, str(file_path), *self._repo_args()]
        result = self._run(upload)
        if isinstance(result, Err):
            if "already exists" in f"{result.error.stderr}{result.error.stdout}".lower():
                return Ok(UploadReceipt(status="conflict", location=location))
            return Err(UploadFailed(tag=tag.name, detail=result.error.detail()))

        return Ok(UploadReceipt(status="uploaded", location=location))

    def _ensure_release(self, tag: ReleaseTag, *, notes: str | None) -> Result[None, UploadFailed]:
        view = self._run_read(["gh", "release", "view", tag.name, "--json", "tagName"])
        if isinstance(view, Ok):
            return Ok(None)
        if not _is_not_found(view.error):
            return Err(UploadFailed(tag=tag.name, detail=view.error.detail()))

        self._console.print(f"gh release create {tag.name}", Style.DIM)
        cmd = [
            "gh",
            "release",
            "create",
            tag.name,
            "--verify-tag",
            "--title",
            tag.name,
            "--notes",
            notes or f"Release {tag.name}",
            *self._repo_args(),
        ]
        if tag.version.is_prerelease:
            cmd.append("--prerelease")
        created = self._run(cmd)
        if isinstance(created, Err):
            # Another run may have created it between view and create.
            if "already exists" in created.error.stderr.lower():
                return Ok(None)
            return Err(UploadFailed(tag=tag.name, detail=created.error.detail()))
        return Ok(None)

    def _asset_names(self, tag: ReleaseTag) -> Result[frozenset[str], UploadFailed]:
        view = self._run_read(["gh", "release", "view", tag.name, "--json", "assets"])
        if isinstance(view, Err):
            return Err(UploadFailed(tag=tag.name, detail=view.error.detail()))

        try:
            obj: object = json.loads(view.value)
        except json.JSONDecodeError as e:
            return Err(UploadFailed(tag=tag.name, detail=f"invalid JSON from gh: {e}"))

        data = as_str_dict(obj)
        raw = as_obj_list(data.get("assets")) if data is not None else None
        if raw is None:
            return Err(UploadFailed(tag=tag.name, detail="unexpected assets payload"))

        names: set[str] = set()
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            name = get_str(d, "name")
            if name is not None:
                names.add(name)
        return Ok(frozenset(names))

    def _asset_location(self, tag: ReleaseTag, name: str) -> str:
        if self._slug:
            return f"https://github.com/{self._slug}/releases/download/{tag.name}/{name}"
        return f"{tag.name}/{name}"

    def _repo_args(self) -> list[str]:
        return ["--repo", self._slug] if self._slug else []

    def _run(self, cmd: list[str]) -> Result[str, ProcessError]:
        return run_process(cmd, cwd=self._root, env=self._env)

    def _run_read(self, cmd: list[str]) -> Result[str, ProcessError]:
        """Idempotent read; transient failures are retried with linear back-off."""
        cmd = [*cmd, *self._repo_args()]
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        result = self._run(cmd)
        for attempt in range(1, attempts):
            if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
                break
            sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
            result = self._run(cmd)
        return result
