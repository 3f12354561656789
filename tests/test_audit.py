# Tests for audit.py
# Created: 2026-10-14

import json

from dirpilot.audit import AuditEvent, AuditLogger, AuditSeverity


class TestAuditLogger:
    def test_appends_jsonl(self, tmp_path):
        audit = AuditLogger(tmp_path / "logs" / "audit.jsonl")
        first = audit.log_proposal("proposal_applied", "src/a.ts", "success", AuditSeverity.WARNING, change="update")
        audit.log_proposal("proposal_rejected", "src/b.ts", "rejected")

        lines = (tmp_path / "logs" / "audit.jsonl").read_text().splitlines()
        assert len(lines) == 2
        event = json.loads(lines[0])
        assert event["id"] == first
        assert event["severity"] == "warning"
        assert event["actor"] == "user"
        assert event["target"] == "src/a.ts"
        assert event["context"] == {"change": "update"}

    def test_read_events_skips_garbage(self, tmp_path):
        path = tmp_path / "audit.jsonl"
        audit = AuditLogger(path)
        audit.log_proposal("proposal_failed", "x", "error", AuditSeverity.ALERT)
        with open(path, "a") as f:
            f.write("not json\n")
        audit.log_proposal("proposal_applied", "y", "success")

        events = audit.read_events()
        assert [e["target"] for e in events] == ["x", "y"]
        assert [e["target"] for e in audit.read_events(limit=1)] == ["y"]

    def test_missing_file(self, tmp_path):
        assert AuditLogger(tmp_path / "audit.jsonl").read_events() == []

    def test_callbacks(self, tmp_path):
        audit = AuditLogger(tmp_path / "audit.jsonl")
        seen = []
        audit.on_log(lambda event: seen.append(event["action"]))
        audit.on_log(lambda event: 1 / 0)
        audit.log(AuditEvent.create(AuditSeverity.INFO, "agent", "root_granted", "proj", "success"))
        assert seen == ["root_granted"]
