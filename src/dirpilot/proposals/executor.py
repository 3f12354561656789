# Mutation executor - applies a file-op instruction under the root capability.
# Created: 2026-10-09

from __future__ import annotations

import logging
from dataclasses import dataclass

from dirpilot.proposals.models import ChangeType, FileChangeInstruction
from dirpilot.workspace.capabilities import Capability, CapabilityStore
from dirpilot.workspace.errors import Failure, FailureKind, HostError, StaleCapabilityError
from dirpilot.workspace.resolver import (
    PathResolver,
    has_parent_segment,
    split_parent,
    strip_root_prefix,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Applied:
    path: str  # root-relative, after normalization
    change: ChangeType
    chars_written: int


class MutationExecutor:
    """Writes whole-file replacements.

    ``create`` resolves the parent directory and creates (or overwrites) the
    leaf file in it. ``update`` resolves the full path, which must be an
    existing file. Content is written with truncate-then-write; any error
    during the write is reported as ``WRITE_FAILED`` and the caller must not
    assume anything about what reached the disk.
    """

    def __init__(self, store: CapabilityStore, resolver: PathResolver | None = None):
        self._store = store
        self._resolver = resolver or PathResolver(store)

    async def apply(self, root: Capability, instruction: FileChangeInstruction) -> Applied | Failure:
        path = strip_root_prefix(instruction.file_path, root.name)

        if has_parent_segment(path):
            return Failure(
                FailureKind.UNSAFE_PATH,
                f"Refusing path outside the project: {instruction.file_path}",
                path=instruction.file_path,
            )

        parent_path, leaf = split_parent(path)
        if not leaf:
            return Failure(
                FailureKind.UNSAFE_PATH,
                f"Proposal does not name a file: {instruction.file_path!r}",
                path=instruction.file_path,
            )

        if instruction.change_type == ChangeType.CREATE:
            target = await self._create_target(root, parent_path, leaf, path)
        else:
            target = await self._update_target(root, path)
        if isinstance(target, Failure):
            return target

        try:
            await self._store.write_text(target, instruction.new_content)
        except StaleCapabilityError as e:
            return Failure(FailureKind.STALE_CAPABILITY, str(e), path=path)
        except (HostError, OSError) as e:
            logger.error("Write to %s failed: %s", path, e)
            return Failure(FailureKind.WRITE_FAILED, f"Could not write {path}: {e}", path=path)

        logger.info("%s %s (%d chars)", instruction.type, path, len(instruction.new_content))
        return Applied(path=path, change=instruction.change_type, chars_written=len(instruction.new_content))

    async def _create_target(
        self, root: Capability, parent_path: str, leaf: str, path: str
    ) -> Capability | Failure:
        parent = root if not parent_path else await self._resolver.resolve(root, parent_path)
        if isinstance(parent, Failure) or not parent.is_directory:
            return Failure(
                FailureKind.INVALID_PARENT,
                f"Cannot create {path}: {parent_path or root.name} is not a directory",
                path=path,
            )
        try:
            return await self._store.child_file(parent, leaf, create=True)
        except StaleCapabilityError as e:
            return Failure(FailureKind.STALE_CAPABILITY, str(e), path=path)
        except HostError as e:
            return Failure(FailureKind.WRITE_FAILED, f"Could not create {path}: {e}", path=path)

    async def _update_target(self, root: Capability, path: str) -> Capability | Failure:
        target = await self._resolver.resolve(root, path)
        if isinstance(target, Failure) and target.kind == FailureKind.STALE_CAPABILITY:
            return target
        if isinstance(target, Failure) or not target.is_file:
            return Failure(FailureKind.TARGET_NOT_FOUND, f"No file to update at {path}", path=path)
        return target
