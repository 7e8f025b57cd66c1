"""Utilities (logging, hashing, content types, exclusion rules)"""
from .logging import log, vlog, warn, error, set_verbose
from .file_utils import md5_stream, md5_file
from .content_types import content_type_for
from .ignore_patterns import ExcludeRule, load_ignore_patterns, is_ignored

__all__ = [
    "log", "vlog", "warn", "error", "set_verbose",
    "md5_stream", "md5_file",
    "content_type_for",
    "ExcludeRule", "load_ignore_patterns", "is_ignored",
]
