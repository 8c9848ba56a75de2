"""Release pipeline orchestration: Plan -> Gate -> Tag -> Build -> Upload.

Stages run strictly in order and the first failure ends the run; the outcome
names the stage that failed. A tag created before a failed build or upload
is left in place (no rollback): ``resume`` re-runs Build -> Upload against
it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tagship.core.config import ConflictPolicy
from tagship.core.result import Err, Ok, Result
from tagship.git.repository import GitError
from tagship.output.console import ConsoleProtocol, Style
from tagship.release.builder import ArtifactBuilder
from tagship.release.errors import (
    PipelineError,
    TagCheckFailed,
    TagNotFound,
    UploadFailed,
)
from tagship.release.gate import ReleaseGate
from tagship.release.history import HistorySource, read_history
from tagship.release.model import ReleaseDecision, ReleaseTag, Stage, UploadReceipt
from tagship.release.planner import VersionPlanner
from tagship.release.tagging import TagManager


class ReleaseStore(Protocol):
    def upload_asset(
        self, tag: ReleaseTag, file_path: Path, *, notes: str | None = None
    ) -> Result[UploadReceipt, UploadFailed]: ...


class TagLookup(Protocol):
    def tag_exists_local(self, name: str) -> Result[bool, GitError]: ...


@dataclass(frozen=True, slots=True)
class NoOp:
    reason: str
    decision: ReleaseDecision


@dataclass(frozen=True, slots=True)
class Published:
    tag: ReleaseTag
    artifact_location: str
    # True when the asset was already in the store (idempotent re-run).
    conflict: bool = False


@dataclass(frozen=True, slots=True)
class Failed:
    stage: Stage
    error: PipelineError


PublishOutcome = NoOp | Published | Failed


class ReleasePublisher:
    """Runs the release pipeline once.

    Every collaborator is injected; the publisher holds no state between
    runs and recomputes its decision from the repository each time.
    """

    def __init__(
        self,
        *,
        history: HistorySource,
        tag_lookup: TagLookup,
        planner: VersionPlanner,
        gate: ReleaseGate,
        tags: TagManager,
        builder: ArtifactBuilder,
        store: ReleaseStore,
        target: str,
        on_conflict: ConflictPolicy,
        console: ConsoleProtocol,
    ) -> None:
        self._history = history
        self._tag_lookup = tag_lookup
        self._planner = planner
        self._gate = gate
        self._tags = tags
        self._builder = builder
        self._store = store
        self._target = target
        self._on_conflict = on_conflict
        self._console = console

    def plan(self, *, force: bool = False) -> Result[ReleaseDecision, PipelineError]:
        prefix = self._tags.policy.prefix
        history = read_history(self._history, prefix=prefix)
        if isinstance(history, Err):
            return history

        prior = history.value.prior
        if prior is None:
            self._console.print("no previous release tag", Style.DIM)
        else:
            self._console.print(f"previous release: {prior.tag}", Style.DIM)
        self._console.print(f"{len(history.value.commits)} commit(s) since", Style.DIM)

        decision = self._planner.plan(
            history.value.commits,
            prior.version if prior is not None else None,
            force=force,
        )
        return Ok(decision)

    def run(self, *, dry_run: bool = False, force: bool = False) -> PublishOutcome:
        self._console.header("plan")
        planned = self.plan(force=force)
        if isinstance(planned, Err):
            return Failed(stage="plan", error=planned.error)
        decision = planned.value
        self._console.info(decision.reason)

        self._console.header("gate")
        verdict = self._gate.evaluate(decision)
        if not verdict.proceed:
            return NoOp(reason=verdict.reason, decision=decision)

        tag = self._tags.policy.tag_for(decision.version)
        if dry_run:
            return NoOp(reason=f"dry run: would release {tag.name}", decision=decision)
        self._console.success(f"release {tag.name}")

        self._console.header("tag")
        created = self._tags.create(tag, message=decision.changelog)
        if isinstance(created, Err):
            return Failed(stage="tag", error=created.error)
        self._console.success(f"tag {tag.name} pushed")

        return self._build_and_upload(tag, notes=decision.changelog)

    def resume(self, tag_name: str) -> PublishOutcome:
        """Build and upload for a tag that already exists."""
        self._console.header("tag")
        parsed = self._tags.policy.parse(tag_name)
        if isinstance(parsed, Err):
            return Failed(stage="tag", error=parsed.error)
        tag = parsed.value

        exists = self._tag_lookup.tag_exists_local(tag.name)
        if isinstance(exists, Err):
            return Failed(
                stage="tag",
                error=TagCheckFailed(name=tag.name, detail=exists.error.message),
            )
        if not exists.value:
            return Failed(stage="tag", error=TagNotFound(name=tag.name))
        self._console.success(f"using existing tag {tag.name}")

        return self._build_and_upload(tag, notes=None)

    def _build_and_upload(self, tag: ReleaseTag, *, notes: str | None) -> PublishOutcome:
        self._console.header("build")
        built = self._builder.build(self._target, tag)
        if isinstance(built, Err):
            return Failed(stage="build", error=built.error)
        artifact = built.value
        self._console.success(f"built {artifact.name} from {artifact.build_ref[:12]}")

        self._console.header("upload")
        try:
            uploaded = self._store.upload_asset(tag, artifact.path, notes=notes)
        finally:
            self._builder.discard(artifact)

        if isinstance(uploaded, Err):
            return Failed(stage="upload", error=uploaded.error)

        receipt = uploaded.value
        if receipt.status == "conflict":
            if self._on_conflict == "fail":
                return Failed(
                    stage="upload",
                    error=UploadFailed(tag=tag.name, detail=artifact.name, conflict=True),
                )
            self._console.warning(f"{artifact.name} already published for {tag.name}")
            return Published(tag=tag, artifact_location=receipt.location, conflict=True)

        self._console.success(f"uploaded {artifact.name}")
        return Published(tag=tag, artifact_location=receipt.location)
