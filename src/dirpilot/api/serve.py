"""API server for ``dirpilot serve``.

Builds one ``MutationPipelineController`` for the process and mounts the
versioned ``/api/v1/`` routers with CORS. The controller is stored on
``app.state`` and reached by routers through ``deps.get_controller``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dirpilot.pipeline import MutationPipelineController

logger = logging.getLogger(__name__)

_BUILTIN_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


def build_controller(settings=None) -> MutationPipelineController:
    """Wire the controller from settings: local host, Anthropic/Ollama generator, JSON store."""
    from dirpilot.audit import AuditLogger
    from dirpilot.config import get_settings
    from dirpilot.conversation.store import FileConversationStore
    from dirpilot.llm.generation import AnthropicGenerator

    settings = settings or get_settings()
    return MutationPipelineController.from_settings(
        settings,
        generator=AnthropicGenerator.from_settings(settings),
        conversations=FileConversationStore(settings.sessions_path, settings.max_sessions),
        audit=AuditLogger(settings.audit_log_path),
    )


def create_api_app(
    controller: MutationPipelineController | None = None,
    root: str | Path | None = None,
):
    """Build the FastAPI application.

    If *root* is given, it is opened as the project directory at startup.
    """
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from dirpilot import __version__
    from dirpilot.api.v1 import mount_v1_routers
    from dirpilot.config import get_settings

    settings = get_settings()
    controller = controller or build_controller(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await controller.start()
        if root is not None:

            async def _startup_picker() -> str:
                return str(root)

            outcome = await controller.open_directory(_startup_picker)
            logger.info("Startup root %s: %s", root, getattr(outcome, "name", outcome))
        yield
        controller.cancel_turn()

    app = FastAPI(
        title="dirpilot API",
        description="Chat about a local project and review proposed file changes.",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan,
    )
    app.state.controller = controller

    # --- CORS -----------------------------------------------------------
    origins = list(set(_BUILTIN_ORIGINS + settings.api_cors_allowed_origins))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # --- Mount all /api/v1/ routers -------------------------------------
    mount_v1_routers(app)

    return app


def run_api_server(
    host: str = "127.0.0.1",
    port: int = 8899,
    root: str | Path | None = None,
) -> None:
    """Start the API server."""
    import uvicorn

    print("\n" + "=" * 50)
    print("DIRPILOT API SERVER")
    print("=" * 50)
    print(f"\nAPI docs: http://{host}:{port}/api/v1/docs\n")

    app = create_api_app(root=root)
    uvicorn.run(app, host=host, port=port)
