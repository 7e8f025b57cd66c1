"""
Upload/skip decision and per-item outcomes
"""
import enum
from dataclasses import dataclass
from typing import Optional

from .object_store import WorkItem


class Decision(enum.Enum):
    UPLOAD = "upload"
    SKIP = "skip"


class Outcome(enum.Enum):
    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemResult:
    """What happened to one WorkItem; reason is set for failures and dry runs."""

    item: WorkItem
    outcome: Outcome
    reason: str = ""


def decide(local_digest: str, remote_exists: bool,
           remote_digest: Optional[str]) -> Decision:
    """
    Pure function: never talks to the store.

    - no remote object                  → UPLOAD (first population)
    - remote object without a digest    → UPLOAD (repairs the metadata)
    - remote digest present             → UPLOAD iff it differs, else SKIP
    """
    if not remote_exists:
        return Decision.UPLOAD
    if not remote_digest:
        return Decision.UPLOAD
    if remote_digest.strip().lower() != local_digest.lower():
        return Decision.UPLOAD
    return Decision.SKIP
