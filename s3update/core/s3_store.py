"""
S3 object store backed by boto3, with a lazily built shared client
"""
import base64
import threading
from typing import BinaryIO, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .. import config as _cfg
from ..errors import RemoteTransientError
from ..utils.logging import log, vlog
from .object_store import RemoteObjectStore

_NOT_FOUND = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(RemoteObjectStore):
    """
    Wraps a boto3 S3 client for one bucket.

    The client is built on first use, once, under a lock; boto3 clients are
    thread safe afterwards and pool their HTTP connections, so every worker
    shares this one instance.
    """

    def __init__(self, bucket: str, client=None, workers: Optional[int] = None):
        self.bucket = bucket
        self.workers = workers
        self._client = client
        self._client_lock = threading.Lock()

    # ── client ──────────────────────────────────────────────────────────────

    def _get_client(self):
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._build_client()
        return self._client

    def _build_client(self):
        where = _cfg.S3_ENDPOINT_URL or f"AWS {_cfg.S3_REGION}"
        log(f"[S3] creating client for bucket {self.bucket} ({where}) …")
        kwargs: dict = {
            "config": Config(
                region_name=_cfg.S3_REGION,
                signature_version="s3v4",
                retries={"max_attempts": _cfg.SDK_MAX_ATTEMPTS, "mode": "standard"},
                # one pooled connection per worker thread
                max_pool_connections=max(10, self.workers or _cfg.WORKERS),
            ),
            "use_ssl": _cfg.S3_USE_SSL,
        }
        if _cfg.S3_ACCESS_KEY and _cfg.S3_SECRET_KEY:
            kwargs["aws_access_key_id"] = _cfg.S3_ACCESS_KEY
            kwargs["aws_secret_access_key"] = _cfg.S3_SECRET_KEY
        if _cfg.S3_SESSION_TOKEN:
            kwargs["aws_session_token"] = _cfg.S3_SESSION_TOKEN
        if _cfg.S3_ENDPOINT_URL:
            kwargs["endpoint_url"] = _cfg.S3_ENDPOINT_URL
        return boto3.client("s3", **kwargs)

    # ── bucket / object queries ─────────────────────────────────────────────

    def bucket_exists(self) -> bool:
        try:
            self._get_client().head_bucket(Bucket=self.bucket)
            return True
        except ClientError as exc:
            code = _error_code(exc)
            if code in _NOT_FOUND or code in {"403", "AccessDenied"}:
                vlog(f"[S3] head_bucket {self.bucket}: {code}")
                return False
            raise RemoteTransientError("head_bucket", self.bucket, exc) from exc
        except BotoCoreError as exc:
            raise RemoteTransientError("head_bucket", self.bucket, exc) from exc

    def _head(self, key: str) -> Optional[dict]:
        """head_object response, or None when the key does not exist."""
        try:
            return self._get_client().head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND:
                return None
            raise RemoteTransientError("head_object", key, exc) from exc
        except BotoCoreError as exc:
            raise RemoteTransientError("head_object", key, exc) from exc

    def object_exists(self, key: str) -> bool:
        return self._head(key) is not None

    def read_digest(self, key: str) -> Optional[str]:
        return self.stat(key)[1]

    def stat(self, key: str) -> Tuple[bool, Optional[str]]:
        """Existence and stored digest from a single head_object."""
        head = self._head(key)
        if head is None:
            return False, None
        metadata = head.get("Metadata") or {}
        # S3 hands user metadata keys back lower-cased
        digest = metadata.get(_cfg.DIGEST_METADATA_KEY.lower(), "").strip()
        return True, digest or None

    # ── transfer ────────────────────────────────────────────────────────────

    def write_object(self, key: str, stream: BinaryIO, length: int,
                     content_type: str, digest: str) -> bool:
        # Content-MD5 makes the service reject a body that was corrupted in transit
        content_md5 = base64.b64encode(bytes.fromhex(digest)).decode("ascii")
        try:
            self._get_client().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=stream,
                ContentLength=length,
                ContentType=content_type,
                ContentMD5=content_md5,
                Metadata={_cfg.DIGEST_METADATA_KEY: digest},
            )
        except (ClientError, BotoCoreError, OSError) as exc:
            raise RemoteTransientError("put_object", key, exc) from exc
        return True

    def open_object(self, key: str) -> BinaryIO:
        try:
            response = self._get_client().get_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteTransientError("get_object", key, exc) from exc
        return response["Body"]
