"""
Audit log of file-mutation decisions.
Created: 2026-10-11

Every accepted, failed or rejected proposal is appended as one JSON line to
``<data_dir>/audit.jsonl``. The file is never rewritten.
"""

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from dirpilot.config import get_settings

logger = logging.getLogger("audit")


class AuditSeverity(str, Enum):
    INFO = "info"  # Read-only events (root granted, proposal rejected)
    WARNING = "warning"  # A file was written
    ALERT = "alert"  # Refused or failed mutation (unsafe path, write error)


@dataclass
class AuditEvent:
    """A single audit log entry."""

    id: str
    timestamp: str
    severity: AuditSeverity
    actor: str  # "user" or "agent"
    action: str  # e.g. "proposal_applied", "root_granted"
    target: str  # file path or root name
    status: str  # "success", "error", "rejected"
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        severity: AuditSeverity,
        actor: str,
        action: str,
        target: str,
        status: str,
        **context: Any,
    ) -> "AuditEvent":
        return cls(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(tz=UTC).isoformat(),
            severity=severity,
            actor=actor,
            action=action,
            target=target,
            status=status,
            context=context,
        )


class AuditLogger:
    """Append-only JSONL audit logger."""

    def __init__(self, log_path: Path | None = None):
        self.log_path = log_path or get_settings().audit_log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._callbacks: list[Callable[[dict], None]] = []

    def on_log(self, callback: Callable[[dict], None]) -> None:
        """Register a callback to be called after each audit log write."""
        self._callbacks.append(callback)

    def log(self, event: AuditEvent) -> None:
        try:
            event_dict = asdict(event)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event_dict) + "\n")
        except (OSError, TypeError, ValueError) as e:
            logger.critical(f"FAILED TO WRITE AUDIT LOG: {e} | Event: {event}")
            return

        for cb in self._callbacks:
            try:
                cb(event_dict)
            except Exception:
                logger.exception("Audit callback failed")

    def log_proposal(
        self,
        action: str,
        file_path: str,
        status: str,
        severity: AuditSeverity = AuditSeverity.INFO,
        **context: Any,
    ) -> str:
        """Record a decision about a proposal. Returns the event id."""
        event = AuditEvent.create(
            severity=severity,
            actor="user",
            action=action,
            target=file_path,
            status=status,
            **context,
        )
        self.log(event)
        return event.id

    def read_events(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Most recent events last; malformed lines are skipped."""
        if not self.log_path.exists():
            return []
        events = []
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return events[-limit:] if limit else events
