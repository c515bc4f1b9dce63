"""
tests/test_payloads.py — Button custom_id Tests
================================================
"""

from __future__ import annotations

import pytest

from kuu.engine.payloads import (
    ANSWER_ACTIONS,
    VERIFICATION_ACTIONS,
    ActionType,
    ButtonPayload,
    build_payload,
    parse_payload,
)


class TestBuildPayload:

    def test_without_sub_index(self):
        assert build_payload(ActionType.VERIFY, 123) == "verify-123"

    def test_with_sub_index(self):
        assert build_payload(ActionType.REVISION, 42, 4) == "revision-42-4"

    def test_sub_index_zero_is_kept(self):
        assert build_payload(ActionType.ACCEPTED, 42, 0) == "accepted-42-0"

    def test_custom_id_property(self):
        assert ButtonPayload(ActionType.REJECT, 9).custom_id == "reject-9"


class TestParsePayload:

    def test_verification_payload(self):
        assert parse_payload("verify-123456789012345678") == ButtonPayload(
            ActionType.VERIFY, 123456789012345678
        )

    def test_answer_payload(self):
        payload = parse_payload("rejected-42-19")
        assert payload == ButtonPayload(ActionType.REJECTED, 42, 19)
        assert payload.action in ANSWER_ACTIONS

    @pytest.mark.parametrize("action", list(ActionType))
    def test_every_action_parses_back(self, action):
        assert parse_payload(build_payload(action, 7, 1)) == ButtonPayload(action, 7, 1)

    @pytest.mark.parametrize(
        "custom_id",
        [
            None,
            "",
            "verify",
            "verify-",
            "verify-abc",
            "verify-0",
            "verify--5",
            "verify-1-2-3",
            "approve-123",
            "VERIFY-123",
            "verify-12x",
            "accepted-42-x",
            "accepted-42-",
            "verify-١٢٣",
        ],
    )
    def test_malformed_returns_none(self, custom_id):
        assert parse_payload(custom_id) is None

    def test_action_groups_do_not_overlap(self):
        assert not VERIFICATION_ACTIONS & ANSWER_ACTIONS
        assert VERIFICATION_ACTIONS | ANSWER_ACTIONS == set(ActionType)
