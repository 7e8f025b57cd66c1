"""
Upload workers: per-item decision and write
"""
import os
from typing import Optional

from ..core.decision import Decision, ItemResult, Outcome, decide
from ..core.object_store import RemoteObjectStore, WorkItem
from ..core.work_queue import WorkQueue
from ..errors import DigestError, RemoteTransientError, VerifyError
from ..utils.content_types import content_type_for
from ..utils.file_utils import md5_file, md5_stream
from ..utils.logging import error, log, vlog


def sync_item(store: RemoteObjectStore, item: WorkItem,
              dry_run: bool = False, verify: bool = False) -> ItemResult:
    """
    Bring one remote object in line with its local file.

    Never raises: digest, store and unexpected failures come back as a
    FAILED result so the calling worker moves on to its next item.
    """
    key = item.remote_key
    try:
        local_digest = md5_file(item.local_path)
        exists, remote_digest = store.stat(key)

        if decide(local_digest, exists, remote_digest) is Decision.SKIP:
            vlog(f"  [skip] {key}")
            return ItemResult(item, Outcome.SKIPPED)

        reason = _upload_reason(exists, remote_digest)
        if dry_run:
            log(f"  [upload-dry] {key} ({reason})")
            return ItemResult(item, Outcome.UPLOADED, "dry-run")

        _write(store, item, local_digest)
        if verify:
            _verify(store, key, local_digest)
        log(f"  [upload ✓] {key} ({reason})")
        return ItemResult(item, Outcome.UPLOADED)

    except (DigestError, RemoteTransientError, VerifyError) as exc:
        error(f"[fail] {key}: {exc}")
        return ItemResult(item, Outcome.FAILED, str(exc))
    except Exception as exc:
        error(f"[fail] {key}: unexpected {type(exc).__name__}: {exc}")
        return ItemResult(item, Outcome.FAILED, f"{type(exc).__name__}: {exc}")


def _upload_reason(exists: bool, remote_digest: Optional[str]) -> str:
    if not exists:
        return "new"
    if remote_digest is None:
        return "no digest metadata"
    return "changed"


def _write(store: RemoteObjectStore, item: WorkItem, digest: str):
    try:
        f = open(item.local_path, "rb")
    except OSError as exc:
        raise DigestError(f"cannot open {item.local_path}: {exc}") from exc
    with f:
        length = os.fstat(f.fileno()).st_size
        store.write_object(item.remote_key, f, length,
                           content_type_for(item.local_path), digest)


def _verify(store: RemoteObjectStore, key: str, expected: str):
    """Read the object back and compare its content digest."""
    body = store.open_object(key)
    try:
        actual = md5_stream(body)
    except OSError as exc:
        raise RemoteTransientError("get_object", key, exc) from exc
    finally:
        body.close()
    if actual != expected:
        raise VerifyError(f"read-back digest {actual} != uploaded {expected}")


def upload_worker(store: RemoteObjectStore, queue: WorkQueue,
                  dry_run: bool = False, verify: bool = False) -> list[ItemResult]:
    """
    Drain *queue* until it is empty, syncing each item it hands out.
    Returns this worker's own results; nothing is shared with other workers.
    """
    results: list[ItemResult] = []
    item = queue.take()
    while item is not None:
        results.append(sync_item(store, item, dry_run=dry_run, verify=verify))
        item = queue.take()
    return results
