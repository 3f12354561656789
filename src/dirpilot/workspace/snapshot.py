"""Tree snapshotter.

Created: 2026-10-07

A snapshot is an immutable tree read from the root capability in one pass.
Every refresh builds a brand new tree; nothing is patched in place.

Ordering: within a directory, subdirectories come first, then files, each group
sorted by name. Entries named in the exclusion set (always ``node_modules`` and
``.git``) are never enumerated. Each node's ``path`` is its parent's path plus
``/name``; the root's path is its own name.

The walk uses an explicit work-list instead of recursion, so deep trees do not
grow the call stack.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Union

from dirpilot.config import RESERVED_EXCLUDED_NAMES
from dirpilot.workspace.capabilities import Capability, CapabilityStore
from dirpilot.workspace.errors import Failure, FailureKind, HostError, StaleCapabilityError
from dirpilot.workspace.host import CapabilityKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileNode:
    name: str
    path: str
    capability: Capability

    @property
    def kind(self) -> CapabilityKind:
        return CapabilityKind.FILE


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    path: str
    capability: Capability
    children: tuple[TreeNode, ...] = ()

    @property
    def kind(self) -> CapabilityKind:
        return CapabilityKind.DIRECTORY


TreeNode = Union[FileNode, DirectoryNode]


def _sort_key(node: TreeNode) -> tuple[bool, str]:
    return (not isinstance(node, DirectoryNode), node.name)


class TreeSnapshotter:
    """Builds ``DirectoryNode`` trees from a root capability."""

    def __init__(self, store: CapabilityStore, excluded_names: Iterable[str] = ()):
        self._store = store
        self.excluded_names = RESERVED_EXCLUDED_NAMES | frozenset(excluded_names)

    async def snapshot(self, root: Capability) -> DirectoryNode | Failure:
        """Enumerate ``root`` completely.

        Fails as a whole (``SNAPSHOT_FAILED`` naming the directory that could
        not be read) rather than returning a partial tree.
        """
        pending: list[tuple[Capability, str]] = [(root, root.name)]
        listings: dict[str, tuple[Capability, list[Capability]]] = {}
        visit_order: list[str] = []

        while pending:
            directory, path = pending.pop()
            try:
                entries = await self._store.entries(directory)
            except StaleCapabilityError as e:
                return Failure(FailureKind.STALE_CAPABILITY, str(e), path=path)
            except HostError as e:
                logger.warning("Snapshot failed at %s: %s", path, e)
                return Failure(FailureKind.SNAPSHOT_FAILED, f"Could not read {path}: {e}", path=path)

            kept = [entry for entry in entries if entry.name not in self.excluded_names]
            listings[path] = (directory, kept)
            visit_order.append(path)
            for entry in kept:
                if entry.is_directory:
                    pending.append((entry, f"{path}/{entry.name}"))

        # Children are always visited after their parent, so building in
        # reverse visit order sees every subdirectory before its parent.
        built: dict[str, DirectoryNode] = {}
        for path in reversed(visit_order):
            directory, kept = listings[path]
            children: list[TreeNode] = []
            for entry in kept:
                child_path = f"{path}/{entry.name}"
                if entry.is_directory:
                    children.append(built.pop(child_path))
                else:
                    children.append(FileNode(name=entry.name, path=child_path, capability=entry))
            children.sort(key=_sort_key)
            built[path] = DirectoryNode(
                name=directory.name,
                path=path,
                capability=directory,
                children=tuple(children),
            )

        tree = built[root.name]
        logger.debug("Snapshot of %s: %d nodes", root.name, sum(1 for _ in iter_nodes(tree)))
        return tree


def iter_nodes(tree: TreeNode) -> Iterator[TreeNode]:
    """Yield every node in pre-order (a directory before its children)."""
    stack: list[TreeNode] = [tree]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, DirectoryNode):
            stack.extend(reversed(node.children))


def find_node(tree: DirectoryNode, path: str) -> TreeNode | None:
    """Look a node up by its snapshot ``path``."""
    for node in iter_nodes(tree):
        if node.path == path:
            return node
    return None


def relative_path(tree: DirectoryNode, node: TreeNode) -> str:
    """``node.path`` without the leading root name."""
    if node.path == tree.path:
        return ""
    return node.path[len(tree.path) + 1 :]


def serialize_tree(tree: TreeNode) -> str:
    """Render the tree as indented ``- name`` / ``- name/`` lines for a prompt."""
    lines: list[str] = []
    stack: list[tuple[TreeNode, int]] = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        prefix = "  " * depth
        if isinstance(node, DirectoryNode):
            lines.append(f"{prefix}- {node.name}/")
            stack.extend((child, depth + 1) for child in reversed(node.children))
        else:
            lines.append(f"{prefix}- {node.name}")
    return "\n".join(lines)


def tree_to_dict(node: TreeNode) -> dict[str, Any]:
    """JSON-friendly view of a tree (capabilities are left out)."""
    if isinstance(node, DirectoryNode):
        return {
            "kind": "directory",
            "name": node.name,
            "path": node.path,
            "children": [tree_to_dict(child) for child in node.children],
        }
    return {"kind": "file", "name": node.name, "path": node.path}
