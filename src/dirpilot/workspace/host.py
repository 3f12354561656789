"""Host capability API.

Created: 2026-10-06

The workspace layer never touches the filesystem directly. It talks to a host
through ``HostProtocol``: pick a directory, ask for read or read-write access,
enumerate a directory's immediate entries, get (or create) a child by name,
and read or truncate-and-write a file. Handles returned by the host are opaque
to everything except the capability store.

``LocalHost`` implements the protocol on the local filesystem. Each call runs
in a worker thread, so every operation is a suspension point for the caller.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from dirpilot.workspace.errors import (
    HostError,
    HostFileTooLargeError,
    HostNotFoundError,
    HostPermissionError,
    HostUnsupportedError,
)

logger = logging.getLogger(__name__)

# Async callable returning the chosen directory, or None when the user dismissed the picker.
DirectoryPicker = Callable[[], Awaitable[str | Path | None]]


class CapabilityKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class AccessMode(str, Enum):
    READ = "read"
    READWRITE = "readwrite"


@dataclass(frozen=True)
class HostEntry:
    """One immediate entry of a directory, as reported by the host."""

    name: str
    kind: CapabilityKind
    handle: Any


class HostProtocol(Protocol):
    """Interface a filesystem host must provide."""

    @property
    def supports_directory_picker(self) -> bool: ...

    async def pick_directory(self, picker: DirectoryPicker | None = None) -> Any | None:
        """Return a directory handle, or None if the user dismissed the picker."""
        ...

    async def request_permission(self, handle: Any, mode: AccessMode) -> bool: ...

    def name_of(self, handle: Any) -> str: ...

    async def list_entries(self, handle: Any) -> list[HostEntry]:
        """Immediate entries of a directory, in no particular order."""
        ...

    async def get_file(self, dir_handle: Any, name: str, create: bool = False) -> Any: ...

    async def get_directory(self, dir_handle: Any, name: str) -> Any: ...

    async def read_text(self, handle: Any, max_bytes: int | None = None) -> str: ...

    async def write_text(self, handle: Any, content: str) -> None:
        """Truncate the file and write ``content`` in full."""
        ...


def is_safe_path(path: Path, jail: Path) -> bool:
    """True if ``path`` is ``jail`` or lies beneath it."""
    try:
        return path.resolve().is_relative_to(jail.resolve())
    except (OSError, RuntimeError):
        return False


def _check_child_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise HostNotFoundError(f"Invalid entry name: {name!r}")


def _translate(exc: OSError, what: str) -> HostError:
    if isinstance(exc, PermissionError):
        return HostPermissionError(f"Permission denied: {what}")
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return HostNotFoundError(f"Not found: {what}")
    return HostError(f"{what}: {exc}")


class LocalHost:
    """Local filesystem host, confined to a jail directory.

    Directory symlinks are never followed. A file symlink is followed only
    when its target lies inside the directory the user picked.

    Args:
        jail: Directories outside this path are never granted.
        picker: Default directory picker. Without one (and without a picker
            passed to ``pick_directory``) the host reports itself unsupported.
    """

    def __init__(self, jail: Path | None = None, picker: DirectoryPicker | None = None):
        self.jail = (jail or Path.home()).expanduser().resolve()
        self._picker = picker
        self._granted: set[Path] = set()

    @property
    def supports_directory_picker(self) -> bool:
        return self._picker is not None

    async def pick_directory(self, picker: DirectoryPicker | None = None) -> Path | None:
        picker = picker or self._picker
        if picker is None:
            raise HostUnsupportedError("No directory picker available on this host")

        chosen = await picker()
        if chosen is None or str(chosen).strip() == "":
            return None

        path = Path(chosen).expanduser()
        try:
            resolved = await asyncio.to_thread(path.resolve)
            is_dir = await asyncio.to_thread(resolved.is_dir)
        except OSError as e:
            raise _translate(e, str(chosen)) from e
        if not is_dir:
            raise HostNotFoundError(f"Not a directory: {chosen}")
        self._granted.add(resolved)
        return resolved

    async def request_permission(self, handle: Path, mode: AccessMode) -> bool:
        if not is_safe_path(handle, self.jail):
            logger.warning("Refusing %s access outside jail: %s", mode.value, handle)
            return False

        flags = os.R_OK | os.X_OK
        if mode == AccessMode.READWRITE:
            flags |= os.W_OK
        return await asyncio.to_thread(os.access, handle, flags)

    def name_of(self, handle: Path) -> str:
        return handle.name

    def _scope_of(self, path: Path) -> Path:
        # Handles are built by joining names onto a picked root, never resolved.
        roots = [root for root in self._granted if path.is_relative_to(root)]
        if not roots:
            return self.jail
        return max(roots, key=lambda root: len(root.parts))

    def _escapes(self, path: Path) -> bool:
        return path.is_symlink() and not is_safe_path(path, self._scope_of(path))

    async def list_entries(self, handle: Path) -> list[HostEntry]:
        return await asyncio.to_thread(self._list_entries, handle)

    def _list_entries(self, handle: Path) -> list[HostEntry]:
        entries: list[HostEntry] = []
        try:
            with os.scandir(handle) as it:
                for entry in it:
                    path = Path(entry.path)
                    if entry.is_dir(follow_symlinks=False):
                        entries.append(HostEntry(entry.name, CapabilityKind.DIRECTORY, path))
                    elif entry.is_file() and not self._escapes(path):
                        entries.append(HostEntry(entry.name, CapabilityKind.FILE, path))
        except OSError as e:
            raise _translate(e, str(handle)) from e
        return entries

    async def get_file(self, dir_handle: Path, name: str, create: bool = False) -> Path:
        _check_child_name(name)
        return await asyncio.to_thread(self._get_file, dir_handle / name, create)

    def _get_file(self, path: Path, create: bool) -> Path:
        try:
            if self._escapes(path):
                raise HostNotFoundError(f"Not found: {path}")
            if path.is_file():
                return path
            if path.exists() or path.is_symlink() or not create:
                raise HostNotFoundError(f"Not a file: {path}")
            path.touch()
            return path
        except OSError as e:
            raise _translate(e, str(path)) from e

    async def get_directory(self, dir_handle: Path, name: str) -> Path:
        _check_child_name(name)
        return await asyncio.to_thread(self._get_directory, dir_handle / name)

    def _get_directory(self, path: Path) -> Path:
        try:
            if path.is_symlink() or not path.is_dir():
                raise HostNotFoundError(f"Not a directory: {path}")
            return path
        except OSError as e:
            raise _translate(e, str(path)) from e

    async def read_text(self, handle: Path, max_bytes: int | None = None) -> str:
        return await asyncio.to_thread(self._read_text, handle, max_bytes)

    def _read_text(self, handle: Path, max_bytes: int | None) -> str:
        try:
            if max_bytes is not None and handle.stat().st_size > max_bytes:
                raise HostFileTooLargeError(f"{handle.name} exceeds {max_bytes} bytes")
            return handle.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise HostError(f"{handle.name} is not a UTF-8 text file") from e
        except OSError as e:
            raise _translate(e, str(handle)) from e

    async def write_text(self, handle: Path, content: str) -> None:
        await asyncio.to_thread(self._write_text, handle, content)

    def _write_text(self, handle: Path, content: str) -> None:
        try:
            with open(handle, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise _translate(e, str(handle)) from e
