"""Release decision and publication pipeline.

- planner/commits/semver/notes: what version, and why
- gate: whether to release this run
- tagging: immutable annotated tags
- builder: binaries built from the tagged commit
- store: release asset uploads
- publisher: the ordered pipeline and its outcome
"""

from __future__ import annotations
