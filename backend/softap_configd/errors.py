from enum import Enum
from typing import Optional


class DecodeErrorKind(str, Enum):
    BAD_VERSION = "bad_version"
    IO_FAILURE = "io_failure"


class ApConfigError(Exception):
    pass


class DecodeError(ApConfigError):
    """
    The on-disk softAP config could not be used.

    Both kinds mean the same thing to the store (fall back to defaults);
    the kind is kept for logging only.
    """

    def __init__(self, kind: DecodeErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        msg = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(msg)


class EncodeError(ApConfigError):
    pass


class PersistenceFailure(ApConfigError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"persist_failed path={path} reason={reason}")
