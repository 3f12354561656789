# Failure taxonomy and host-level exceptions for the workspace layer.
# Created: 2026-10-06
#
# Host calls raise HostError subclasses. Public workspace operations catch them
# and return a Failure value instead, so nothing host-specific reaches the
# pipeline controller.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNSUPPORTED_HOST = "unsupported_host"
    ABORTED = "aborted"
    NOT_FOUND = "not_found"
    INVALID_PARENT = "invalid_parent"
    TARGET_NOT_FOUND = "target_not_found"
    MALFORMED_PROPOSAL = "malformed_proposal"
    SNAPSHOT_FAILED = "snapshot_failed"
    STREAM_FAILED = "stream_failed"
    UNSAFE_PATH = "unsafe_path"
    WRITE_FAILED = "write_failed"
    READ_FAILED = "read_failed"
    FILE_TOO_LARGE = "file_too_large"
    STALE_CAPABILITY = "stale_capability"
    NO_ROOT = "no_root"


@dataclass(frozen=True)
class Failure:
    """Tagged failure outcome returned by workspace operations."""

    kind: FailureKind
    message: str
    path: str | None = None

    @property
    def is_silent(self) -> bool:
        """Aborted pickers are reported to callers but never shown as errors."""
        return self.kind == FailureKind.ABORTED

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "path": self.path}


class HostError(Exception):
    """Base error raised by a host capability implementation."""


class HostPermissionError(HostError):
    pass


class HostNotFoundError(HostError):
    pass


class HostUnsupportedError(HostError):
    pass


class HostFileTooLargeError(HostError):
    pass


class StaleCapabilityError(HostError):
    """A capability issued for a previous root session was used."""
