"""
Remote object store contract and the unit of sync work
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Tuple


@dataclass(frozen=True)
class WorkItem:
    """One local file and the bucket-relative key it is synced to."""

    local_path: Path
    remote_key: str


class RemoteObjectStore(ABC):
    """
    Operations the sync core needs from a bucket.

    Every method is safe to call from many worker threads at once. Network
    and service failures surface as RemoteTransientError; "not found" is
    never an error.
    """

    bucket: str

    @abstractmethod
    def bucket_exists(self) -> bool:
        """True if the bucket exists; False on not-found / access denied."""

    @abstractmethod
    def object_exists(self, key: str) -> bool:
        """True if an object is stored under *key*."""

    @abstractmethod
    def read_digest(self, key: str) -> Optional[str]:
        """Digest stored in the object's user metadata, or None if absent."""

    def stat(self, key: str) -> Tuple[bool, Optional[str]]:
        """
        (exists, digest) for *key*. Stores that can answer both from one
        request should override this.
        """
        if not self.object_exists(key):
            return False, None
        return True, self.read_digest(key)

    @abstractmethod
    def write_object(self, key: str, stream: BinaryIO, length: int,
                     content_type: str, digest: str) -> bool:
        """
        Store *length* bytes from *stream* under *key*, persisting *digest*
        as user metadata readable through read_digest(). Returns True once
        the store confirms the write.
        """

    @abstractmethod
    def open_object(self, key: str) -> BinaryIO:
        """Open the object's content as a readable binary stream."""
