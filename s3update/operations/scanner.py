"""
Local tree scanning: work-item generation and remote key translation
"""
import os
from pathlib import Path
from typing import Iterator, Optional

from ..core.object_store import WorkItem
from ..errors import ConfigurationError
from ..utils.ignore_patterns import ExcludeRule
from ..utils.logging import vlog, warn


def resolve_root_prefix(source_dir: Path, bucket: str) -> Path:
    """
    Return the local directory that maps to the bucket root.

    The bucket name must appear as a component of *source_dir*; everything
    up to and including that component is stripped from remote keys, e.g.
    /home/u/site.com/docs with bucket site.com → prefix /home/u/site.com.
    """
    bucket = bucket.strip("/")
    if not bucket:
        raise ConfigurationError("bucket name must not be empty")
    parts = Path(source_dir).parts
    if bucket not in parts:
        raise ConfigurationError(
            f"the source directory path must contain the bucket name {bucket!r}: {source_dir}"
        )
    return Path(*parts[:parts.index(bucket) + 1])


def to_remote_key(path: Path, prefix: Path) -> str:
    """Bucket-relative key: *path* below *prefix*, always with '/' separators."""
    rel = os.path.relpath(str(path), str(prefix))
    return rel.replace(os.sep, "/").replace("\\", "/").lstrip("/")


def walk_tree(root: Path, prefix: Optional[Path] = None,
              rule: Optional[ExcludeRule] = None) -> Iterator[WorkItem]:
    """
    Lazily yield a WorkItem for every file under *root*.

    Directory symlinks are not followed. Nodes that cannot be read are
    logged and skipped; they never stop the walk.
    """
    root = Path(root)
    prefix = Path(prefix) if prefix is not None else root
    rule = rule if rule is not None else ExcludeRule()

    def _on_error(exc: OSError):
        warn(f"[scan] cannot read {exc.filename}: {exc.strerror or exc}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        here = Path(dirpath)
        rel_dir = os.path.relpath(dirpath, root).replace(os.sep, "/")
        rel_dir = "" if rel_dir == "." else rel_dir + "/"
        vlog(f"  [scan] {rel_dir or '.'}")

        kept = []
        for name in sorted(dirnames):
            if rule.skip_dir(rel_dir + name, name):
                vlog(f"  [scan] skip dir {rel_dir}{name}")
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            rel = rel_dir + name
            if rule.skip_file(rel, name):
                vlog(f"  [scan] skip {rel}")
                continue
            path = here / name
            if not path.is_file():
                # dangling symlink, socket, fifo …
                warn(f"[scan] not a regular file, skipped: {path}")
                continue
            if not os.access(path, os.R_OK):
                warn(f"[scan] cannot read {path}, skipped")
                continue
            yield WorkItem(local_path=path, remote_key=to_remote_key(path, prefix))
