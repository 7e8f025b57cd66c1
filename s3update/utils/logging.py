"""
Logging utilities for s3update
"""
import sys
import threading
from datetime import datetime

_verbose = False
_lock = threading.Lock()


def set_verbose(verbose: bool):
    """Set the verbose flag"""
    global _verbose
    _verbose = verbose


def log(msg: str):
    """Log a message with timestamp to stderr (one whole line per call)"""
    ts = datetime.now().strftime("%H:%M:%S")
    with _lock:
        print(f"[{ts}] {msg}", file=sys.stderr, flush=True)


def vlog(msg: str):
    """Log a verbose message (only if verbose mode is enabled)"""
    if _verbose:
        log(msg)


def warn(msg: str):
    """Log a warning message"""
    log(f"⚠  {msg}")


def error(msg: str):
    """Log an error message"""
    log(f"✗  {msg}")
