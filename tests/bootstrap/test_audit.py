"""Tests for the bootstrap audit log."""

import json
import re

from bootstrap.audit import AuditEvent, AuditLog, make_event_id, now_iso
from bootstrap.schema import is_iso_timestamp


class TestAuditEvent:
    def test_event_id_format(self):
        assert re.fullmatch(r"bevt_\d+_[0-9a-f]{8}", make_event_id())

    def test_now_iso_is_strict_utc(self):
        assert is_iso_timestamp(now_iso())

    def test_json_uses_aliases_and_drops_none(self):
        event = AuditEvent(op="upgrade", phase="plan", profile_id="personal-assistant", to_version="pa-v2")
        out = event.to_json_dict()
        assert out["profileId"] == "personal-assistant"
        assert out["toVersion"] == "pa-v2"
        assert "fromVersion" not in out
        assert "errorCode" not in out


class TestAuditLog:
    def test_append_and_read(self, audit_log):
        audit_log.append("run", "start", profile_id="personal-assistant", result="ok")
        audit_log.append("run", "complete", counts={"ADD": 3}, result="ok")

        events = audit_log.read()
        assert [(e.op, e.phase) for e in events] == [("run", "start"), ("run", "complete")]
        assert events[1].counts == {"ADD": 3}

    def test_file_is_jsonl(self, audit_log):
        audit_log.append("reset", "fail", error_code="BOOTSTRAP_CONFIRM_REQUIRED", result="error")
        lines = audit_log.path.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["errorCode"] == "BOOTSTRAP_CONFIRM_REQUIRED"

    def test_missing_file(self, audit_log):
        assert audit_log.read() == []
        assert audit_log.last_terminal_event() is None

    def test_limit_keeps_last(self, audit_log):
        for i in range(5):
            audit_log.append("diff", "plan", message=str(i))
        assert [e.message for e in audit_log.read(limit=2)] == ["3", "4"]
        assert len(audit_log.read(limit=0)) == 5

    def test_malformed_lines_skipped(self, audit_log):
        audit_log.append("run", "start")
        with open(audit_log.path, "a") as f:
            f.write("not json\n")
            f.write('{"op": "run"}\n')
            f.write("\n")
        audit_log.append("run", "complete", result="ok")

        assert [e.phase for e in audit_log.read()] == ["start", "complete"]

    def test_last_terminal_event(self, audit_log):
        audit_log.append("upgrade", "complete", result="ok")
        audit_log.append("reapply", "start")
        audit_log.append("reapply", "fail", result="error", error_code="BOOTSTRAP_PROFILE_NOT_FOUND")
        audit_log.append("diff", "plan")

        last = audit_log.last_terminal_event()
        assert last.op == "reapply"
        assert last.result == "error"
