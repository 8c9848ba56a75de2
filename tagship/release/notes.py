from __future__ import annotations

from tagship.release.model import ClassifiedCommit, Severity

_SECTIONS: tuple[tuple[Severity, str], ...] = (
    (Severity.BREAKING, "Breaking changes"),
    (Severity.FEATURE, "Features"),
    (Severity.FIX, "Fixes"),
)


def render_changelog(*, title: str, commits: tuple[ClassifiedCommit, ...]) -> str:
    """Markdown changelog fragment; commits with severity none are left out."""
    lines: list[str] = [f"# {title}"]

    for severity, heading in _SECTIONS:
        entries = [c for c in commits if c.severity == severity]
        if not entries:
            continue
        lines.append("")
        lines.append(f"## {heading}")
        for c in entries:
            lines.append(f"- {c.summary} ({c.commit.short_sha})")

    if len(lines) == 1:
        lines.append("")
        lines.append("No releasable changes.")

    return "\n".join(lines).rstrip() + "\n"
