"""File-op proposals: extraction from replies and application to the workspace."""

from dirpilot.proposals.executor import Applied, MutationExecutor
from dirpilot.proposals.extractor import SENTINEL, Extraction, extract
from dirpilot.proposals.models import (
    ChangeType,
    FileChangeInstruction,
    Proposal,
    ProposalStatus,
)

__all__ = [
    "Applied",
    "ChangeType",
    "Extraction",
    "FileChangeInstruction",
    "MutationExecutor",
    "Proposal",
    "ProposalStatus",
    "SENTINEL",
    "extract",
]
