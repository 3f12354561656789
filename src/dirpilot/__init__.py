"""dirpilot - review-gated file edits proposed by an LLM against a local project."""

__version__ = "0.1.0"
