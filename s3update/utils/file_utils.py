"""
File utilities (MD5 content digests)
"""
import hashlib
from pathlib import Path
from typing import BinaryIO

from .. import config as _cfg
from ..errors import DigestError


def md5_stream(stream: BinaryIO) -> str:
    """
    Hex MD5 digest of everything left in *stream*.

    Reads incrementally in HASH_CHUNK_SIZE pieces; the stream is consumed
    exactly once. Works the same for a local file handle and a remote
    object body, so the two digests are comparable.
    """
    h = hashlib.md5()
    for chunk in iter(lambda: stream.read(_cfg.HASH_CHUNK_SIZE), b""):
        h.update(chunk)
    return h.hexdigest()


def md5_file(path: Path) -> str:
    """Compute MD5 hash of a local file; raises DigestError if unreadable."""
    try:
        with open(path, "rb") as f:
            return md5_stream(f)
    except OSError as exc:
        raise DigestError(f"cannot hash {path}: {exc}") from exc
