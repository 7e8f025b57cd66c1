"""
Exception hierarchy for s3update
"""


class S3UpdateError(Exception):
    """Base class for every error raised by s3update."""


class ConfigurationError(S3UpdateError):
    """Bad arguments or environment; aborts the run before any work starts."""


class DigestError(S3UpdateError, OSError):
    """A local file could not be read to the end while hashing."""


class RemoteTransientError(S3UpdateError):
    """
    A store call failed on the network or service side.

    Raised per call; the caller decides whether the failure is fatal
    (startup) or only fails the current item.
    """

    def __init__(self, operation: str, key: str, cause: BaseException):
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"{operation} {key!r} failed: {cause}")


class VerifyError(S3UpdateError):
    """Read-back of a freshly written object did not hash to the uploaded digest."""
