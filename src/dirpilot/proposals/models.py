# Proposal models - the file-op instruction and its review lifecycle.
# Created: 2026-10-08

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class FileChangeInstruction(BaseModel):
    """Whole-file change proposed by the collaborator.

    Wire form uses camelCase keys: ``{"type", "filePath", "newContent"}``.
    Unknown keys are rejected.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True, strict=True)

    type: Literal["create", "update"]
    file_path: str = Field(alias="filePath", min_length=1)
    new_content: str = Field(alias="newContent")

    @property
    def change_type(self) -> ChangeType:
        return ChangeType(self.type)

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class ProposalStatus(str, Enum):
    PENDING = "pending"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass
class Proposal:
    """An instruction awaiting review, keyed to the message that carried it."""

    message_id: str
    instruction: FileChangeInstruction
    status: ProposalStatus = ProposalStatus.PENDING
    created_at: float = field(default_factory=time.time)

    @property
    def is_open(self) -> bool:
        return self.status in (ProposalStatus.PENDING, ProposalStatus.APPLYING)

    def preview(self, limit: int = 200) -> str:
        """Human-readable one-glance summary."""
        action = "Create" if self.instruction.type == "create" else "Update"
        content = self.instruction.new_content
        snippet = content[:limit] + "..." if len(content) > limit else content
        return f"{action} {self.instruction.file_path}:\n{snippet}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "instruction": self.instruction.to_wire(),
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Proposal:
        status = ProposalStatus(data.get("status", ProposalStatus.PENDING.value))
        # An apply cannot survive a restart; offer the change for review again.
        if status == ProposalStatus.APPLYING:
            status = ProposalStatus.PENDING
        return cls(
            message_id=data["message_id"],
            instruction=FileChangeInstruction.model_validate(data["instruction"]),
            status=status,
            created_at=data.get("created_at", time.time()),
        )
