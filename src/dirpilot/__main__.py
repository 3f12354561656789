"""dirpilot entry point.

Changes:
  - 2026-10-13: Added ``tree`` command (prints the snapshot of a directory).
  - 2026-10-12: ``serve`` starts the API server; ``--root`` opens a project at startup.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dirpilot import __version__
from dirpilot.config import Settings, get_settings
from dirpilot.logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def print_tree(path: str, settings: Settings) -> int:
    """Snapshot *path* and print it the way it is shown to the model."""
    from dirpilot.workspace import CapabilityStore, LocalHost, TreeSnapshotter, serialize_tree
    from dirpilot.workspace.errors import Failure

    async def _picker() -> str:
        return path

    store = CapabilityStore(LocalHost(jail=settings.file_jail_path, picker=_picker))
    root = await store.request_root()
    if isinstance(root, Failure):
        print(f"Cannot open {path}: {root.message}", file=sys.stderr)
        return 1

    tree = await TreeSnapshotter(store, settings.all_excluded_names).snapshot(root)
    if isinstance(tree, Failure):
        print(f"Cannot read {tree.path or path}: {tree.message}", file=sys.stderr)
        return 1

    print(serialize_tree(tree))
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="dirpilot - chat about a local project and review proposed file changes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dirpilot serve                         Start the API server
  dirpilot serve --root ~/code/app       Start and open a project directory
  dirpilot tree ~/code/app               Print the project tree
""",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "tree"],
        help="'serve' starts the API server (default); 'tree' prints a directory snapshot",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory for 'tree'")
    parser.add_argument("--host", type=str, default=None, help="Host to bind (default: settings)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: settings)")
    parser.add_argument("--root", type=str, default=None, help="Project directory to open at startup")
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: settings)")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()
    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)

    try:
        if args.command == "tree":
            if not args.path:
                parser.error("tree requires a directory path")
            raise SystemExit(asyncio.run(print_tree(args.path, settings)))

        from dirpilot.api.serve import run_api_server

        run_api_server(
            host=args.host or settings.web_host,
            port=args.port or settings.web_port,
            root=args.root,
        )
    except KeyboardInterrupt:
        logger.info("dirpilot stopped.")


if __name__ == "__main__":
    main()
