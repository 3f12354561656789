"""Capability store - owns the granted root and derives child capabilities.

Created: 2026-10-06

A ``Capability`` is a value: kind, name and an opaque host handle, stamped with
the root session that issued it. Only the store hands the handle to the host.
Replacing or revoking the root starts a new session; any capability from an
older session is rejected with ``StaleCapabilityError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from dirpilot.workspace.errors import (
    Failure,
    FailureKind,
    HostError,
    HostNotFoundError,
    HostUnsupportedError,
    StaleCapabilityError,
)
from dirpilot.workspace.host import (
    AccessMode,
    CapabilityKind,
    DirectoryPicker,
    HostProtocol,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capability:
    """Opaque handle to one file or directory inside the granted root."""

    kind: CapabilityKind
    name: str
    session: int = field(repr=False)
    handle: Any = field(repr=False)
    write_denied: bool = field(default=False, compare=False)

    @property
    def is_file(self) -> bool:
        return self.kind == CapabilityKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == CapabilityKind.DIRECTORY


@dataclass(frozen=True)
class RootChange:
    """Published to subscribers whenever the root is replaced or revoked."""

    root: Capability | None
    session: int


RootListener = Callable[[RootChange], None]


class CapabilityStore:
    """Holds the single root capability for the current session."""

    def __init__(self, host: HostProtocol | None):
        self._host = host
        self._root: Capability | None = None
        self._session = 0
        self._listeners: list[RootListener] = []

    @property
    def host_supported(self) -> bool:
        return self._host is not None

    @property
    def session(self) -> int:
        return self._session

    def current_root(self) -> Capability | None:
        return self._root

    def subscribe(self, listener: RootListener) -> Callable[[], None]:
        """Register a root-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def request_root(self, picker: DirectoryPicker | None = None) -> Capability | Failure:
        """Ask the host for a directory and request read-write access to it.

        The current root is only replaced once the grant fully succeeds. A
        denied write scope still yields a root, flagged ``write_denied``.
        """
        if self._host is None:
            return Failure(FailureKind.UNSUPPORTED_HOST, "This host cannot grant directory access")

        try:
            handle = await self._host.pick_directory(picker)
        except HostUnsupportedError as e:
            return Failure(FailureKind.UNSUPPORTED_HOST, str(e))
        except HostNotFoundError as e:
            return Failure(FailureKind.NOT_FOUND, str(e))
        except HostError as e:
            return Failure(FailureKind.PERMISSION_DENIED, str(e))

        if handle is None:
            return Failure(FailureKind.ABORTED, "Directory selection was cancelled")

        name = self._host.name_of(handle)
        try:
            readable = await self._host.request_permission(handle, AccessMode.READ)
            writable = readable and await self._host.request_permission(
                handle, AccessMode.READWRITE
            )
        except HostError as e:
            return Failure(FailureKind.PERMISSION_DENIED, str(e), path=name)

        if not readable:
            return Failure(FailureKind.PERMISSION_DENIED, f"Read access to {name} was denied", path=name)

        self._session += 1
        self._root = Capability(
            kind=CapabilityKind.DIRECTORY,
            name=name,
            session=self._session,
            handle=handle,
            write_denied=not writable,
        )
        if not writable:
            logger.warning("Write access to %s denied; proposals will fail to apply", name)
        logger.info("Root granted: %s (session %d)", name, self._session)
        self._notify()
        return self._root

    def revoke(self) -> None:
        """Drop the root. Every capability issued so far becomes invalid."""
        if self._root is None:
            return
        logger.info("Root revoked: %s", self._root.name)
        self._session += 1
        self._root = None
        self._notify()

    def _notify(self) -> None:
        change = RootChange(root=self._root, session=self._session)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("Root change listener failed")

    # -- host access, validated against the current session --

    def _check(self, cap: Capability, kind: CapabilityKind | None = None) -> None:
        if self._host is None:
            raise HostUnsupportedError("No host")
        if self._root is None or cap.session != self._session:
            raise StaleCapabilityError(f"Capability for {cap.name} is no longer valid")
        if kind is not None and cap.kind != kind:
            raise HostNotFoundError(f"{cap.name} is not a {kind.value}")

    def _derive(self, parent: Capability, kind: CapabilityKind, name: str, handle: Any) -> Capability:
        return Capability(
            kind=kind,
            name=name,
            session=parent.session,
            handle=handle,
            write_denied=parent.write_denied,
        )

    async def entries(self, directory: Capability) -> list[Capability]:
        self._check(directory, CapabilityKind.DIRECTORY)
        found = await self._host.list_entries(directory.handle)
        return [self._derive(directory, e.kind, e.name, e.handle) for e in found]

    async def child_file(self, directory: Capability, name: str, create: bool = False) -> Capability:
        self._check(directory, CapabilityKind.DIRECTORY)
        handle = await self._host.get_file(directory.handle, name, create=create)
        return self._derive(directory, CapabilityKind.FILE, name, handle)

    async def child_directory(self, directory: Capability, name: str) -> Capability:
        self._check(directory, CapabilityKind.DIRECTORY)
        handle = await self._host.get_directory(directory.handle, name)
        return self._derive(directory, CapabilityKind.DIRECTORY, name, handle)

    async def read_text(self, file: Capability, max_bytes: int | None = None) -> str:
        self._check(file, CapabilityKind.FILE)
        return await self._host.read_text(file.handle, max_bytes=max_bytes)

    async def write_text(self, file: Capability, content: str) -> None:
        self._check(file, CapabilityKind.FILE)
        await self._host.write_text(file.handle, content)
