# System prompt for the pair-programming collaborator.
# Created: 2026-10-09

from __future__ import annotations

from dirpilot.proposals.extractor import SENTINEL

_INTRO = """You are an expert AI pair programmer.
The user has given you access to a project directory."""

_FILE_OPS = f"""## File operations ##
You can propose creating a new file or replacing the content of an existing one.
To do so, include exactly one fenced block tagged `{SENTINEL}` in your reply:
```{SENTINEL}
{{
  "type": "create" | "update",
  "filePath": "path/relative/to/the/project/root.ext",
  "newContent": "The complete new content of the file."
}}
```
- type: "create" for a new file, "update" for an existing one.
- filePath: relative to the project root, using forward slashes.
- newContent: the whole file, not a diff.
- Put your explanation outside the block. The user will accept or reject the change.
- Only the first such block in a reply is considered."""


def build_system_prompt(
    tree_text: str | None,
    active_file: tuple[str, str] | None,
    response_language: str | None = None,
) -> str:
    """Assemble the system prompt from the serialized tree and the active file."""
    parts = [_INTRO]

    if tree_text:
        parts.append(f"DIRECTORY STRUCTURE:\n{tree_text}")

    if active_file is not None:
        name, content = active_file
        parts.append(
            f'The user has opened the file "{name}". Its content:\n\n'
            f"--BEGIN {name}--\n{content}\n--END {name}--"
        )

    parts.append(_FILE_OPS)

    closing = "Answer the user's question concisely and give code examples where useful."
    if response_language:
        closing += f" Reply in {response_language} unless the context is purely technical."
    parts.append(closing)

    return "\n\n".join(parts)
