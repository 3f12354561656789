# Workspace router: open a root, inspect the tree, pick the active file.
# Created: 2026-10-12

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from dirpilot.api.deps import get_controller
from dirpilot.api.v1.schemas.common import ErrorInfo, OkResponse
from dirpilot.api.v1.schemas.workspace import (
    ActiveFileRequest,
    ActiveFileResponse,
    OpenDirectoryRequest,
    ProjectInfoResponse,
    TreeResponse,
    WorkspaceStatus,
)
from dirpilot.pipeline import MutationPipelineController
from dirpilot.workspace.errors import Failure, FailureKind
from dirpilot.workspace.project_info import describe_project, format_file_size, language_for
from dirpilot.workspace.snapshot import DirectoryNode, tree_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Workspace"])


def _tree_response(controller: MutationPipelineController, outcome: DirectoryNode | Failure | None = None):
    if isinstance(outcome, Failure):
        return TreeResponse(root=controller.root_name, error=ErrorInfo.from_failure(outcome))
    tree = outcome or controller.tree
    if tree is None:
        failure = Failure(FailureKind.NO_ROOT, "No directory is open")
        return TreeResponse(root=controller.root_name, error=ErrorInfo.from_failure(failure))
    return TreeResponse(root=tree.name, tree=tree_to_dict(tree), text=controller.tree_text())


@router.get("/workspace", response_model=WorkspaceStatus)
async def get_workspace_status(controller: MutationPipelineController = Depends(get_controller)):
    """Current pipeline state, root and active file."""
    active = controller.active_file
    return WorkspaceStatus(
        state=controller.state.value,
        root=controller.root_name,
        write_denied=controller.write_denied,
        directory_access_available=controller.directory_access_available,
        active_file=active.path if active else None,
        pending_proposals=len(controller.pending_proposals()),
    )


@router.post("/workspace/open", response_model=TreeResponse)
async def open_workspace(
    body: OpenDirectoryRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Grant a new project root and snapshot it."""

    async def _picker() -> str | None:
        return body.path.strip() or None

    outcome = await controller.open_directory(_picker)
    return _tree_response(controller, outcome)


@router.get("/workspace/tree", response_model=TreeResponse)
async def get_tree(controller: MutationPipelineController = Depends(get_controller)):
    """The last good snapshot."""
    return _tree_response(controller)


@router.post("/workspace/refresh", response_model=TreeResponse)
async def refresh_tree(controller: MutationPipelineController = Depends(get_controller)):
    """Re-read the tree from disk."""
    return _tree_response(controller, await controller.refresh())


@router.get("/workspace/info", response_model=ProjectInfoResponse)
async def get_project_info(controller: MutationPipelineController = Depends(get_controller)):
    """Project type, package.json summary, README and language counts."""
    if controller.tree is None:
        failure = Failure(FailureKind.NO_ROOT, "No directory is open")
        return ProjectInfoResponse(error=ErrorInfo.from_failure(failure))
    info = await describe_project(controller.store, controller.tree)
    return ProjectInfoResponse(**info.to_dict())


@router.post("/workspace/active-file", response_model=ActiveFileResponse)
async def select_active_file(
    body: ActiveFileRequest,
    controller: MutationPipelineController = Depends(get_controller),
):
    """Make a file the context for the next turns."""
    outcome = await controller.select_file(body.path)
    if isinstance(outcome, Failure):
        return ActiveFileResponse(path=body.path, error=ErrorInfo.from_failure(outcome))
    return ActiveFileResponse(
        name=outcome.name,
        path=outcome.path,
        content=outcome.content,
        size=format_file_size(len(outcome.content.encode("utf-8"))),
        language=language_for(outcome.name),
    )


@router.delete("/workspace/active-file", response_model=OkResponse)
async def clear_active_file(controller: MutationPipelineController = Depends(get_controller)):
    controller.clear_active_file()
    return OkResponse()
