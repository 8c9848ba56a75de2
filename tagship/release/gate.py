from __future__ import annotations

from dataclasses import dataclass

from tagship.release.model import ReleaseDecision


@dataclass(frozen=True, slots=True)
class GatePolicy:
    """Release policy layered on top of the planner.

    ``allowed_branches`` empty means any branch may release.
    """

    allowed_branches: tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class GateVerdict:
    proceed: bool
    reason: str


class ReleaseGate:
    """Decides whether a planned release goes ahead this run.

    Pure: no I/O, no failure modes. The current branch is passed in by the
    caller.
    """

    def __init__(self, policy: GatePolicy | None = None, *, branch: str | None = None) -> None:
        self._policy = policy or GatePolicy()
        self._branch = branch

    def evaluate(self, decision: ReleaseDecision) -> GateVerdict:
        if not decision.should_release:
            return GateVerdict(proceed=False, reason=decision.reason)

        if not self._policy.enabled:
            return GateVerdict(proceed=False, reason="releases are disabled (gate.enabled = false)")

        allowed = self._policy.allowed_branches
        if allowed and self._branch not in allowed:
            current = self._branch or "detached HEAD"
            return GateVerdict(
                proceed=False,
                reason=f"branch {current} is not allowed to release ({', '.join(allowed)})",
            )

        return GateVerdict(proceed=True, reason=decision.reason)

    def should_proceed(self, decision: ReleaseDecision) -> bool:
        return self.evaluate(decision).proceed
