"""Capability-scoped access to a local project directory."""

from dirpilot.workspace.capabilities import Capability, CapabilityStore, RootChange
from dirpilot.workspace.errors import Failure, FailureKind
from dirpilot.workspace.host import AccessMode, CapabilityKind, HostProtocol, LocalHost
from dirpilot.workspace.resolver import PathResolver
from dirpilot.workspace.snapshot import (
    DirectoryNode,
    FileNode,
    TreeNode,
    TreeSnapshotter,
    serialize_tree,
)

__all__ = [
    "AccessMode",
    "Capability",
    "CapabilityKind",
    "CapabilityStore",
    "DirectoryNode",
    "Failure",
    "FailureKind",
    "FileNode",
    "HostProtocol",
    "LocalHost",
    "PathResolver",
    "RootChange",
    "TreeNode",
    "TreeSnapshotter",
    "serialize_tree",
]
