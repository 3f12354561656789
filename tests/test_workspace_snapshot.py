# Tests for workspace/snapshot.py
# Created: 2026-10-13

from unittest.mock import patch

import pytest

from dirpilot.workspace.capabilities import CapabilityStore
from dirpilot.workspace.errors import Failure, FailureKind, HostPermissionError
from dirpilot.workspace.host import LocalHost
from dirpilot.workspace.snapshot import (
    DirectoryNode,
    FileNode,
    TreeSnapshotter,
    find_node,
    iter_nodes,
    relative_path,
    serialize_tree,
    tree_to_dict,
)


def build(root, layout: dict):
    for name, content in layout.items():
        if isinstance(content, dict):
            (root / name).mkdir()
            build(root / name, content)
        else:
            (root / name).write_text(content)


async def open_root(tmp_path, layout):
    root_dir = tmp_path / "proj"
    root_dir.mkdir()
    build(root_dir, layout)

    async def picker():
        return root_dir

    store = CapabilityStore(LocalHost(jail=tmp_path))
    root = await store.request_root(picker)
    return store, root


LAYOUT = {
    "src": {"app.ts": "app", "components": {"Button.tsx": "b"}},
    "node_modules": {"react": {"index.js": "r"}},
    ".git": {"HEAD": "ref"},
    "package.json": "{}",
    "README.md": "# hi",
}


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class TestSnapshot:
    async def test_scenario_tree(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        tree = await TreeSnapshotter(store).snapshot(root)

        assert isinstance(tree, DirectoryNode)
        assert tree.path == "proj"
        assert [c.name for c in tree.children] == ["src", "README.md", "package.json"]
        src = tree.children[0]
        assert [c.name for c in src.children] == ["components", "app.ts"]
        assert src.children[0].children[0].path == "proj/src/components/Button.tsx"

    async def test_reserved_names_never_appear(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        tree = await TreeSnapshotter(store, excluded_names=["dist"]).snapshot(root)
        names = {node.name for node in iter_nodes(tree)}
        assert "node_modules" not in names
        assert ".git" not in names

    async def test_custom_exclusions(self, tmp_path):
        store, root = await open_root(tmp_path, {"dist": {"a.js": "x"}, "b.js": "y"})
        tree = await TreeSnapshotter(store, excluded_names=["dist"]).snapshot(root)
        assert [c.name for c in tree.children] == ["b.js"]

    async def test_deterministic(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        snapshotter = TreeSnapshotter(store)
        first = await snapshotter.snapshot(root)
        second = await snapshotter.snapshot(root)
        assert tree_to_dict(first) == tree_to_dict(second)
        assert serialize_tree(first) == serialize_tree(second)

    async def test_every_path_extends_its_parent(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        tree = await TreeSnapshotter(store).snapshot(root)
        for node in iter_nodes(tree):
            if isinstance(node, DirectoryNode):
                for child in node.children:
                    assert child.path == f"{node.path}/{child.name}"

    async def test_empty_directory(self, tmp_path):
        store, root = await open_root(tmp_path, {"empty": {}})
        tree = await TreeSnapshotter(store).snapshot(root)
        assert tree.children[0].children == ()

    async def test_deep_tree(self, tmp_path):
        layout: dict = {"leaf.txt": "x"}
        for i in range(60):
            layout = {f"d{i}": layout}
        store, root = await open_root(tmp_path, layout)
        tree = await TreeSnapshotter(store).snapshot(root)
        assert sum(1 for _ in iter_nodes(tree)) == 62

    async def test_enumeration_error_fails_whole_snapshot(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        original = LocalHost._list_entries

        def _flaky(self, handle):
            if handle.name == "components":
                raise HostPermissionError("Permission denied: components")
            return original(self, handle)

        with patch.object(LocalHost, "_list_entries", _flaky):
            outcome = await TreeSnapshotter(store).snapshot(root)
        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.SNAPSHOT_FAILED
        assert outcome.path == "proj/src/components"

    async def test_symlink_cycle_is_not_walked(self, tmp_path):
        store, root = await open_root(tmp_path, {"src": {"app.ts": "app"}})
        (tmp_path / "proj" / "src" / "self").symlink_to(tmp_path / "proj")
        tree = await TreeSnapshotter(store).snapshot(root)
        assert isinstance(tree, DirectoryNode)
        assert [n.path for n in iter_nodes(tree)] == ["proj", "proj/src", "proj/src/app.ts"]

    async def test_revoked_root(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        store.revoke()
        outcome = await TreeSnapshotter(store).snapshot(root)
        assert outcome.kind == FailureKind.STALE_CAPABILITY


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestTreeHelpers:
    @pytest.fixture
    async def tree(self, tmp_path):
        store, root = await open_root(tmp_path, LAYOUT)
        return await TreeSnapshotter(store).snapshot(root)

    def test_serialize(self, tree):
        assert serialize_tree(tree) == "\n".join(
            [
                "- proj/",
                "  - src/",
                "    - components/",
                "      - Button.tsx",
                "    - app.ts",
                "  - README.md",
                "  - package.json",
            ]
        )

    def test_find_node_and_relative_path(self, tree):
        node = find_node(tree, "proj/src/app.ts")
        assert isinstance(node, FileNode)
        assert relative_path(tree, node) == "src/app.ts"
        assert relative_path(tree, tree) == ""
        assert find_node(tree, "proj/nope") is None

    def test_tree_to_dict(self, tree):
        data = tree_to_dict(tree)
        assert data["kind"] == "directory"
        assert data["children"][1] == {"kind": "file", "name": "README.md", "path": "proj/README.md"}
