"""
Main sync engine - work list, worker pool and outcome aggregation
"""
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .. import config as _cfg
from ..errors import ConfigurationError
from ..operations.scanner import resolve_root_prefix, walk_tree
from ..operations.transfer import upload_worker
from ..utils.ignore_patterns import ExcludeRule
from ..utils.logging import error, log, set_verbose, warn
from .decision import Decision, ItemResult, Outcome, decide
from .object_store import RemoteObjectStore
from .s3_store import S3ObjectStore
from .work_queue import WorkQueue

__all__ = ["run_sync", "decide", "Decision", "SyncSummary"]


@dataclass
class SyncSummary:
    uploaded: int = 0
    skipped: int = 0
    failed: int = 0
    worker_crashes: int = 0
    failures: list[ItemResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.uploaded + self.skipped + self.failed

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.worker_crashes == 0

    def add(self, result: ItemResult):
        if result.outcome is Outcome.UPLOADED:
            self.uploaded += 1
        elif result.outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failures.append(result)


def run_sync(source_dir, bucket: str,
             workers: Optional[int] = None,
             dry_run: bool = False,
             verify: bool = False,
             verbose: bool = False,
             store: Optional[RemoteObjectStore] = None) -> SyncSummary:
    """
    Upload every file under *source_dir* whose content differs from (or is
    missing in) *bucket*.

    Configuration problems raise ConfigurationError before any upload; a
    connectivity failure while checking the bucket propagates as
    RemoteTransientError. Per-item failures only show up in the summary.
    """
    set_verbose(verbose)
    workers = _cfg.WORKERS if workers is None else workers
    if workers < 1:
        raise ConfigurationError(f"worker count must be at least 1, got {workers}")

    source = Path(os.path.abspath(Path(source_dir).expanduser()))
    if not source.is_dir():
        raise ConfigurationError(f"source directory does not exist or is not a directory: {source}")
    prefix = resolve_root_prefix(source, bucket)

    log(f"[sync] {source}  →  s3://{bucket}/{_key_hint(source, prefix)}")
    if dry_run:
        log("[sync] *** DRY-RUN — nothing will be written ***")

    # ── 1. Bucket check (fatal) ─────────────────────────────────────────────
    if store is None:
        store = S3ObjectStore(bucket, workers=workers)
    if not store.bucket_exists():
        raise ConfigurationError(f"there is no bucket with the name {bucket!r}")

    # ── 2. Enumerate the whole batch up front ───────────────────────────────
    rule = ExcludeRule.for_root(source)
    log(f"[scan] {len(rule.patterns)} pattern(s) loaded from {_cfg.IGNORE_FILE}")
    started = time.monotonic()
    items = list(walk_tree(source, prefix, rule))
    log(f"[scan] {len(items)} local file(s) found")

    summary = SyncSummary()
    if not items:
        _log_summary(summary, dry_run)
        log("[sync] Nothing to do ✓")
        return summary

    # ── 3. Drain the queue with a fixed pool ────────────────────────────────
    queue = WorkQueue(items)
    n_workers = min(workers, len(items))
    log(f"[queue] {len(items)} item(s), {n_workers} worker(s)")

    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="upload") as pool:
        futures = [pool.submit(upload_worker, store, queue, dry_run, verify)
                   for _ in range(n_workers)]
        for future in futures:
            try:
                for result in future.result():
                    summary.add(result)
            except Exception as exc:
                summary.worker_crashes += 1
                error(f"[queue] worker stopped unexpectedly: {exc}")

    # ── 4. Summary ──────────────────────────────────────────────────────────
    elapsed = time.monotonic() - started
    _log_summary(summary, dry_run)
    log(f"[summary] elapsed {elapsed:.1f}s")
    for result in summary.failures:
        warn(f"[summary] failed: {result.item.remote_key}: {result.reason}")
    if summary.ok:
        log("[sync] Done ✓")
    return summary


def _key_hint(source: Path, prefix: Path) -> str:
    rel = source.relative_to(prefix).as_posix()
    return "" if rel == "." else rel + "/"


def _log_summary(summary: SyncSummary, dry_run: bool):
    note = " (dry-run)" if dry_run else ""
    log(f"[summary] uploaded={summary.uploaded} skipped={summary.skipped} "
        f"failed={summary.failed} (total={summary.total}){note}")
