# Project info - file metadata and project type detection from a snapshot.
# Created: 2026-10-08

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

from dirpilot.workspace.capabilities import CapabilityStore
from dirpilot.workspace.errors import HostError
from dirpilot.workspace.snapshot import DirectoryNode, FileNode, iter_nodes

logger = logging.getLogger(__name__)

CONFIG_FILES = frozenset({
    "package.json", "tsconfig.json", "vite.config.ts", "vite.config.js",
    "webpack.config.js", "rollup.config.js", "babel.config.js",
    ".eslintrc.json", ".eslintrc.js", "prettier.config.js",
    "jest.config.js", "vitest.config.ts", "tailwind.config.js",
    "pyproject.toml", "setup.py", "setup.cfg", "requirements.txt",
    ".env", ".env.local", ".env.production", ".gitignore",
})

LANGUAGE_EXTENSIONS = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".dart": "dart",
    ".vue": "vue",
    ".svelte": "svelte",
    ".md": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".xml": "xml",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".html": "html",
    ".sql": "sql",
    ".sh": "bash",
    ".ps1": "powershell",
    ".lua": "lua",
    ".hs": "haskell",
    ".ex": "elixir",
    ".proto": "protobuf",
}

README_NAMES = ("README.md", "readme.md", "README.rst", "README.txt", "README")


def file_extension(name: str) -> str:
    """Extension including the dot; empty for dotfiles like ``.env``."""
    return PurePosixPath(name).suffix.lower()


def language_for(name: str) -> str | None:
    return LANGUAGE_EXTENSIONS.get(file_extension(name))


def is_config_file(name: str) -> bool:
    return name in CONFIG_FILES


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{size} B" if i == 0 else f"{value:.1f} {units[i]}"


@dataclass
class ProjectInfo:
    name: str
    type: str
    package: dict[str, Any] | None = None
    readme: str | None = None
    config_files: list[str] = field(default_factory=list)
    languages: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "package": self.package,
            "readme": self.readme,
            "languages": self.languages,
            "config_files": self.config_files,
        }


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def detect_project_type(file_names: list[str], package: dict[str, Any] | None = None) -> str:
    """Guess the project type from package.json dependencies, else from file names."""
    if package is not None:
        deps = {**_mapping(package.get("dependencies")), **_mapping(package.get("devDependencies"))}
        if "react" in deps or "@types/react" in deps:
            return "react"
        if any(name in deps for name in ("express", "fastify", "koa", "hapi")):
            return "node"
        if "typescript" in deps or "@types/node" in deps:
            return "typescript"
        return "javascript"

    if "pyproject.toml" in file_names or "setup.py" in file_names:
        return "python"
    if any(name.endswith((".tsx", ".jsx")) for name in file_names):
        return "react"
    if "tsconfig.json" in file_names:
        return "typescript"
    if any(name.endswith(".js") for name in file_names):
        return "javascript"
    if any(name.endswith(".py") for name in file_names):
        return "python"
    return "unknown"


def _top_level_file(tree: DirectoryNode, names: tuple[str, ...]) -> FileNode | None:
    for name in names:
        for child in tree.children:
            if isinstance(child, FileNode) and child.name == name:
                return child
    return None


async def describe_project(
    store: CapabilityStore, tree: DirectoryNode, readme_limit: int = 64 * 1024
) -> ProjectInfo:
    """Summarize a snapshot: type, package.json fields, README, language counts."""
    file_names = [node.name for node in iter_nodes(tree) if isinstance(node, FileNode)]

    languages: dict[str, int] = {}
    for name in file_names:
        language = language_for(name)
        if language:
            languages[language] = languages.get(language, 0) + 1

    package = None
    package_node = _top_level_file(tree, ("package.json",))
    if package_node is not None:
        try:
            data = json.loads(await store.read_text(package_node.capability, max_bytes=readme_limit))
            package = {
                "name": data.get("name", "Unknown"),
                "version": data.get("version", "0.0.0"),
                "dependencies": _mapping(data.get("dependencies")),
                "devDependencies": _mapping(data.get("devDependencies")),
                "scripts": _mapping(data.get("scripts")),
            }
        except (HostError, json.JSONDecodeError, AttributeError, TypeError) as e:
            logger.warning("Could not parse package.json: %s", e)

    readme = None
    readme_node = _top_level_file(tree, README_NAMES)
    if readme_node is not None:
        try:
            readme = await store.read_text(readme_node.capability, max_bytes=readme_limit)
        except HostError as e:
            logger.warning("Could not read %s: %s", readme_node.name, e)

    return ProjectInfo(
        name=(package or {}).get("name") or tree.name,
        type=detect_project_type(file_names, package),
        package=package,
        readme=readme,
        languages=languages,
        config_files=sorted({name for name in file_names if is_config_file(name)}),
    )
