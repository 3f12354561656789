# Path resolver - walks a slash-separated relative path from the root capability.
# Created: 2026-10-06

from __future__ import annotations

import logging

from dirpilot.workspace.capabilities import Capability, CapabilityStore
from dirpilot.workspace.errors import Failure, FailureKind, HostError, StaleCapabilityError

logger = logging.getLogger(__name__)

PARENT_SEGMENT = ".."


def split_path(path: str) -> list[str]:
    """Split on ``/`` and drop empty and ``.`` segments."""
    return [part for part in path.replace("\\", "/").split("/") if part and part != "."]


def join_path(parts: list[str]) -> str:
    return "/".join(parts)


def strip_root_prefix(path: str, root_name: str) -> str:
    """Drop a leading ``<root_name>/`` that the collaborator may echo back.

    Leading slashes are ignored, so ``/src/a.ts`` is read as ``src/a.ts``.
    """
    parts = split_path(path)
    if len(parts) > 1 and parts[0] == root_name:
        parts = parts[1:]
    return join_path(parts)


def has_parent_segment(path: str) -> bool:
    return PARENT_SEGMENT in split_path(path)


def split_parent(path: str) -> tuple[str, str]:
    """Return ``(parent_path, leaf_name)``; the parent may be empty."""
    parts = split_path(path)
    if not parts:
        return "", ""
    return join_path(parts[:-1]), parts[-1]


class PathResolver:
    """Locates files and directories under a root capability."""

    def __init__(self, store: CapabilityStore):
        self._store = store

    async def resolve(self, root: Capability, path: str) -> Capability | Failure:
        """Resolve ``path`` relative to ``root``.

        Intermediate segments must be directories. The final segment is looked
        up as a file first, then as a directory, because callers often do not
        know which one it names. An empty path resolves to ``root``.
        """
        if root.session != self._store.session or self._store.current_root() is None:
            return Failure(
                FailureKind.STALE_CAPABILITY,
                "The project directory changed; reopen it and try again",
                path=path,
            )

        parts = split_path(path)
        current = root
        for i, part in enumerate(parts):
            is_last = i == len(parts) - 1
            try:
                if not is_last:
                    current = await self._store.child_directory(current, part)
                    continue
                try:
                    return await self._store.child_file(current, part)
                except HostError:
                    return await self._store.child_directory(current, part)
            except StaleCapabilityError as e:
                return Failure(FailureKind.STALE_CAPABILITY, str(e), path=path)
            except HostError as e:
                # Absent and denied look the same here; the store owns that distinction.
                logger.debug("Could not resolve segment %r of %r: %s", part, path, e)
                return Failure(FailureKind.NOT_FOUND, f"Path not found: {path}", path=path)

        return current
