# Tests for workspace/resolver.py
# Created: 2026-10-13

from pathlib import Path
from unittest.mock import patch

import pytest

from dirpilot.workspace.capabilities import CapabilityStore
from dirpilot.workspace.errors import Failure, FailureKind
from dirpilot.workspace.host import LocalHost
from dirpilot.workspace.resolver import (
    PathResolver,
    has_parent_segment,
    split_parent,
    split_path,
    strip_root_prefix,
)


@pytest.fixture
async def opened(tmp_path):
    root_dir = tmp_path / "proj"
    (root_dir / "src" / "components").mkdir(parents=True)
    (root_dir / "src" / "app.ts").write_text("app")
    (root_dir / "src" / "components" / "Button.tsx").write_text("button")

    async def picker():
        return root_dir

    store = CapabilityStore(LocalHost(jail=tmp_path))
    root = await store.request_root(picker)
    return store, root


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


class TestPathHelpers:
    def test_split_drops_empty_and_dot_segments(self):
        assert split_path("/src//./app.ts") == ["src", "app.ts"]
        assert split_path("src\\app.ts") == ["src", "app.ts"]
        assert split_path("") == []

    def test_strip_root_prefix(self):
        assert strip_root_prefix("proj/src/app.ts", "proj") == "src/app.ts"
        assert strip_root_prefix("/proj/src/app.ts", "proj") == "src/app.ts"
        assert strip_root_prefix("src/app.ts", "proj") == "src/app.ts"

    def test_strip_keeps_a_file_named_like_the_root(self):
        assert strip_root_prefix("proj", "proj") == "proj"

    def test_parent_segment(self):
        assert has_parent_segment("../etc/passwd")
        assert has_parent_segment("src/../../x")
        assert not has_parent_segment("src/..hidden")

    def test_split_parent(self):
        assert split_parent("src/components/Button.tsx") == ("src/components", "Button.tsx")
        assert split_parent("README.md") == ("", "README.md")
        assert split_parent("") == ("", "")


# ---------------------------------------------------------------------------
# PathResolver
# ---------------------------------------------------------------------------


class TestPathResolver:
    async def test_resolves_nested_file(self, opened):
        store, root = opened
        cap = await PathResolver(store).resolve(root, "src/components/Button.tsx")
        assert not isinstance(cap, Failure)
        assert cap.is_file
        assert cap.name == "Button.tsx"

    async def test_final_segment_may_be_directory(self, opened):
        store, root = opened
        cap = await PathResolver(store).resolve(root, "src/components")
        assert cap.is_directory

    async def test_empty_path_is_root(self, opened):
        store, root = opened
        assert await PathResolver(store).resolve(root, "") == root

    async def test_missing_segment(self, opened):
        store, root = opened
        outcome = await PathResolver(store).resolve(root, "src/missing/Button.tsx")
        assert outcome.kind == FailureKind.NOT_FOUND
        assert outcome.path == "src/missing/Button.tsx"

    async def test_file_used_as_directory(self, opened):
        store, root = opened
        outcome = await PathResolver(store).resolve(root, "src/app.ts/x")
        assert outcome.kind == FailureKind.NOT_FOUND

    async def test_stale_root(self, opened):
        store, root = opened
        store.revoke()
        outcome = await PathResolver(store).resolve(root, "src/app.ts")
        assert outcome.kind == FailureKind.STALE_CAPABILITY

    async def test_unreadable_directory_is_not_found(self, opened):
        store, root = opened
        with patch.object(Path, "is_dir", side_effect=PermissionError(13, "Permission denied")):
            outcome = await PathResolver(store).resolve(root, "src/components/Button.tsx")
        assert isinstance(outcome, Failure)
        assert outcome.kind == FailureKind.NOT_FOUND
