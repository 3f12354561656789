"""Proposal extractor.

Created: 2026-10-08

Finds the first fenced block opened with the ``json:file-op`` tag in a
collaborator reply, e.g.::

    ```json:file-op
    {"type": "update", "filePath": "src/app.ts", "newContent": "..."}
    ```

and parses it into a ``FileChangeInstruction``. A well-formed block is cut out
of the reply; a malformed one is left where it is and the reply is treated as
carrying no proposal. Only the first tagged block is considered.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError

from dirpilot.proposals.models import FileChangeInstruction

logger = logging.getLogger(__name__)

SENTINEL = "json:file-op"
FENCE = "```"

_OPEN_RE = re.compile(r"```" + re.escape(SENTINEL) + r"[^\S\n]*\n")


@dataclass(frozen=True)
class Extraction:
    instruction: FileChangeInstruction | None
    visible_text: str
    error: str | None = None


def _find_payload(text: str, start: int) -> tuple[object, int] | None:
    """Try each closing fence in turn until the enclosed text is valid JSON.

    The file content itself may contain fences, so the first ``` after the
    opening is not necessarily the end of the block.
    """
    idx = text.find(FENCE, start)
    while idx != -1:
        try:
            payload = json.loads(text[start:idx])
        except json.JSONDecodeError:
            idx = text.find(FENCE, idx + 1)
            continue
        return payload, idx + len(FENCE)
    return None


def extract(response_text: str) -> Extraction:
    """Split a reply into an optional instruction and the text to display."""
    match = _OPEN_RE.search(response_text)
    if match is None:
        return Extraction(instruction=None, visible_text=response_text)

    found = _find_payload(response_text, match.end())
    if found is None:
        logger.warning("Ignoring file-op block: payload is not valid JSON")
        return Extraction(None, response_text, error="payload is not valid JSON")

    payload, block_end = found
    try:
        instruction = FileChangeInstruction.model_validate(payload)
    except ValidationError as e:
        logger.warning("Ignoring file-op block: %s", e.errors(include_url=False))
        return Extraction(None, response_text, error=str(e))

    visible = (response_text[: match.start()] + response_text[block_end:]).strip()
    return Extraction(instruction=instruction, visible_text=visible)
