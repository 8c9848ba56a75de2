from __future__ import annotations

# No subprocess is given a time limit here (git, gh and cargo alike);
# timeout policy belongs to the calling CI job.

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
