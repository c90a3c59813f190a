"""Tests for the profile pack registry."""

import pytest

from bootstrap.profile_pack import (
    PERSONAL_ASSISTANT_ID,
    ProfilePack,
    ProfilePackRegistry,
    UnknownProfilePackError,
    get_latest_profile_version,
    get_profile_pack,
    list_profile_versions,
    parse_version_number,
)


class TestBuiltInPacks:
    def test_versions_ordered(self):
        assert list_profile_versions(PERSONAL_ASSISTANT_ID) == ["pa-v1", "pa-v2"]

    def test_latest(self):
        assert get_latest_profile_version(PERSONAL_ASSISTANT_ID) == "pa-v2"

    def test_unknown_profile(self):
        assert list_profile_versions("nobody") == []
        assert get_latest_profile_version("nobody") is None
        assert get_profile_pack("nobody", "pa-v1") is None

    def test_v2_adds_proactive_cadence(self):
        keys = [e["managedKey"] for e in get_profile_pack(PERSONAL_ASSISTANT_ID, "pa-v2").entries]
        assert keys == [
            "preference:communication.style",
            "behavior:do:ask-before-risky-external-actions",
            "context:workflow.approvalGate",
            "context:proactiveCadence",
        ]

    def test_lookup_returns_copies(self):
        pack = get_profile_pack(PERSONAL_ASSISTANT_ID, "pa-v1")
        pack.entries[0]["managed"] = True
        pack.entries[0]["value"] = "tampered"

        fresh = get_profile_pack(PERSONAL_ASSISTANT_ID, "pa-v1")
        assert "managed" not in fresh.entries[0]
        assert fresh.entries[0]["value"] == "balanced"


class TestRegistry:
    @pytest.fixture
    def registry(self):
        return ProfilePackRegistry(
            [
                ProfilePack("helper", "c-v10", ({"type": "behavior", "text": "ten"},)),
                ProfilePack("helper", "c-v2", ({"type": "behavior", "text": "two"},)),
                ProfilePack("helper", "c-v9", ()),
            ]
        )

    def test_numeric_ordering(self, registry):
        assert registry.list_versions("helper") == ["c-v2", "c-v9", "c-v10"]
        assert registry.latest_version("helper") == "c-v10"

    def test_profile_ids(self, registry):
        assert registry.profile_ids() == ["helper"]

    def test_require_raises_named_error(self, registry):
        with pytest.raises(UnknownProfilePackError, match="helper@c-v3") as exc:
            registry.require("helper", "c-v3")
        assert exc.value.profile_id == "helper"
        assert isinstance(exc.value, LookupError)

    def test_require_returns_pack(self, registry):
        assert registry.require("helper", "c-v2").entries[0]["text"] == "two"


class TestParseVersionNumber:
    def test_suffix(self):
        assert parse_version_number("pa-v12") == 12

    def test_no_suffix(self):
        assert parse_version_number("latest") == -1
