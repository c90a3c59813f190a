"""Shared test fixtures for the brain bootstrap tools."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

NOW = "2026-01-15T09:30:00.000Z"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def brain_store(tmp_path):
    from brain import BrainStore

    return BrainStore(tmp_path / "brain.jsonl")


@pytest.fixture
def audit_log(tmp_path):
    from bootstrap import AuditLog

    return AuditLog(tmp_path / "logs" / "bootstrap-events.jsonl")


@pytest.fixture
def manager(brain_store, audit_log):
    """BootstrapManager over temp files with a fixed clock."""
    from bootstrap import BootstrapManager

    return BootstrapManager(brain_store, audit_log, clock=lambda: NOW)


@pytest.fixture
def valid_answers():
    return {
        "name": "Ada",
        "timezone": "Europe/Berlin",
        "style": "concise",
        "externalActionPolicy": "always-ask",
        "codingTaskFirst": True,
        "quietHours": "22:00-07:00",
        "proactiveCadence": "light",
    }
