# Tests for proposals/extractor.py and proposals/models.py
# Created: 2026-10-13

import json

import pytest
from pydantic import ValidationError

from dirpilot.proposals.extractor import extract
from dirpilot.proposals.models import (
    ChangeType,
    FileChangeInstruction,
    Proposal,
    ProposalStatus,
)


def block(payload) -> str:
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return f"```json:file-op\n{body}\n```"


UPDATE = {"type": "update", "filePath": "src/app.ts", "newContent": "export const x = 2;\n"}


# ---------------------------------------------------------------------------
# FileChangeInstruction
# ---------------------------------------------------------------------------


class TestInstruction:
    def test_wire_names(self):
        instruction = FileChangeInstruction.model_validate(UPDATE)
        assert instruction.file_path == "src/app.ts"
        assert instruction.change_type == ChangeType.UPDATE
        assert instruction.to_wire() == UPDATE

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "delete", "filePath": "a", "newContent": ""},
            {"type": "create", "filePath": "", "newContent": ""},
            {"type": "create", "filePath": "a"},
            {"type": "create", "filePath": "a", "newContent": 3},
            {**UPDATE, "mode": "0644"},
        ],
    )
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            FileChangeInstruction.model_validate(payload)


# ---------------------------------------------------------------------------
# extract()
# ---------------------------------------------------------------------------


class TestExtract:
    def test_no_block(self):
        text = "Just an answer with ```python\nprint(1)\n``` code."
        result = extract(text)
        assert result.instruction is None
        assert result.visible_text == text
        assert result.error is None

    def test_block_removed_from_visible_text(self):
        text = f"Here is the fix.\n\n{block(UPDATE)}\n\nLet me know."
        result = extract(text)
        assert result.instruction.to_wire() == UPDATE
        assert result.visible_text == "Here is the fix.\n\n\n\nLet me know."
        assert "json:file-op" not in result.visible_text

    def test_visible_text_is_trimmed(self):
        result = extract(f"  {block(UPDATE)}  \n")
        assert result.visible_text == ""

    def test_malformed_json_leaves_text_untouched(self):
        text = f"Try this:\n{block('{type: update, filePath: src/app.ts}')}"
        result = extract(text)
        assert result.instruction is None
        assert result.visible_text == text
        assert result.error

    def test_invalid_schema_leaves_text_untouched(self):
        text = block({"type": "rename", "filePath": "a", "newContent": "b"})
        result = extract(text)
        assert result.instruction is None
        assert result.visible_text == text

    def test_content_containing_fences(self):
        content = "# Title\n\n```python\nprint('hi')\n```\n"
        text = "Readme:\n" + block({"type": "create", "filePath": "README.md", "newContent": content})
        result = extract(text)
        assert result.instruction.new_content == content
        assert result.visible_text == "Readme:"

    def test_only_first_block_is_honored(self):
        second = {"type": "create", "filePath": "b.txt", "newContent": "b"}
        text = f"{block(UPDATE)}\nand\n{block(second)}"
        result = extract(text)
        assert result.instruction.file_path == "src/app.ts"
        assert block(second) in result.visible_text

    def test_unterminated_block(self):
        text = '```json:file-op\n{"type": "update"'
        result = extract(text)
        assert result.instruction is None
        assert result.visible_text == text


# ---------------------------------------------------------------------------
# Proposal
# ---------------------------------------------------------------------------


class TestProposal:
    def test_roundtrip_and_status(self):
        proposal = Proposal("ai-1", FileChangeInstruction.model_validate(UPDATE))
        assert proposal.status == ProposalStatus.PENDING
        assert proposal.is_open
        restored = Proposal.from_dict(proposal.to_dict())
        assert restored.instruction == proposal.instruction
        assert restored.message_id == "ai-1"

    def test_preview_truncates(self):
        instruction = FileChangeInstruction(type="create", file_path="a.txt", new_content="x" * 500)
        preview = Proposal("ai-1", instruction).preview(limit=10)
        assert preview == "Create a.txt:\n" + "x" * 10 + "..."

    def test_resolved_is_not_open(self):
        proposal = Proposal("ai-1", FileChangeInstruction.model_validate(UPDATE))
        proposal.status = ProposalStatus.REJECTED
        assert not proposal.is_open

    def test_interrupted_apply_reloads_as_pending(self):
        proposal = Proposal("ai-1", FileChangeInstruction.model_validate(UPDATE))
        proposal.status = ProposalStatus.APPLYING
        restored = Proposal.from_dict(proposal.to_dict())
        assert restored.status == ProposalStatus.PENDING
