"""The mutation pipeline: one controller per open project."""

from dirpilot.pipeline.controller import (
    WELCOME_MESSAGE,
    ActiveFileContext,
    MessageNotFoundError,
    MutationPipelineController,
    PipelineState,
    ProposalNotFoundError,
    TurnUpdate,
)

__all__ = [
    "WELCOME_MESSAGE",
    "ActiveFileContext",
    "MessageNotFoundError",
    "MutationPipelineController",
    "PipelineState",
    "ProposalNotFoundError",
    "TurnUpdate",
]
