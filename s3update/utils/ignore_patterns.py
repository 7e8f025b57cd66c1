"""
Exclusion rules: built-in VCS/backup rules plus .s3ignore file parsing
"""
import re
from pathlib import Path
from typing import Iterable, Optional

from .. import config as _cfg

VCS_DIRS = frozenset({".git", ".svn", ".hg", ".bzr", "CVS", "_darcs"})
BACKUP_SUFFIXES = ("~", ".bak", ".swp", ".swo", ".orig")


def _compile_pattern(raw: str):
    """Compile a .s3ignore pattern into a regex"""
    p = raw.strip()
    if not p or p.startswith("#") or not p.strip("/"):
        return None
    # "build/" matches the directory (skip_dir tests "build/") and its contents only
    dir_only = p.endswith("/")
    if dir_only:
        p = p.rstrip("/")
    escaped = re.escape(p)
    escaped = escaped.replace(r"\*\*", "§DS§")
    escaped = escaped.replace(r"\*", "[^/]*")
    escaped = escaped.replace(r"\?", "[^/]")
    escaped = escaped.replace("§DS§", ".*")
    if escaped.startswith("/"):
        escaped = "^" + escaped[1:]
    else:
        escaped = r"(^|.*\/)" + escaped
    tail = r"/.*$" if dir_only else r"(/.*)?$"
    try:
        return re.compile(escaped + tail)
    except re.error:
        return None


def load_ignore_patterns(root: Path) -> list:
    """Load ignore patterns from the .s3ignore file at *root*, if any"""
    f = Path(root) / _cfg.IGNORE_FILE
    if not f.is_file():
        return []
    patterns = []
    for line in f.read_text(encoding="utf-8", errors="replace").splitlines():
        c = _compile_pattern(line)
        if c:
            patterns.append(c)
    return patterns


def is_ignored(rel_path: str, patterns: list) -> bool:
    """Check if a path matches any ignore pattern"""
    norm = rel_path.replace("\\", "/")
    return any(p.search(norm) for p in patterns)


def is_vcs_dir(name: str) -> bool:
    return name in VCS_DIRS


def is_backup_file(name: str) -> bool:
    """Editor backup / swap / autosave files (foo~, foo.bak, .foo.swp, #foo#)."""
    if len(name) > 1 and name.startswith("#") and name.endswith("#"):
        return True
    return name.endswith(BACKUP_SUFFIXES)


class ExcludeRule:
    """
    Decides which directory and file nodes the tree walk drops.

    Directories are pruned when their name is a VCS metadata directory or
    their root-relative path matches a user pattern. Files are dropped when
    their name carries a backup-editor suffix, they are the ignore file
    itself, or they match a user pattern.
    """

    def __init__(self, patterns: Optional[Iterable] = None):
        self.patterns = list(patterns or [])

    @classmethod
    def for_root(cls, root: Path) -> "ExcludeRule":
        return cls(load_ignore_patterns(root))

    def skip_dir(self, rel_path: str, name: str) -> bool:
        if is_vcs_dir(name):
            return True
        return is_ignored(rel_path, self.patterns) or is_ignored(rel_path + "/", self.patterns)

    def skip_file(self, rel_path: str, name: str) -> bool:
        if is_backup_file(name):
            return True
        if rel_path == _cfg.IGNORE_FILE:
            return True
        return is_ignored(rel_path, self.patterns)
