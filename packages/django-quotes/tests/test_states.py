"""Tests for the quote status machine.

These tests run WITHOUT Django model lifecycle - pure function testing.
"""

import pytest

from django_quotes.exceptions import IllegalTransition, InvalidStateForDelete, InvalidStateForEdit
from django_quotes.states import (
    TERMINAL_STATES,
    TRANSITIONS,
    QuoteEvent,
    QuoteStatus,
    can_delete,
    can_edit,
    ensure_deletable,
    ensure_editable,
    get_allowed_events,
    get_transition,
    validate_transition_table,
)

EXPECTED = {
    ("draft", "send"): ("sent", "sent_at"),
    ("sent", "accept"): ("accepted", "accepted_at"),
    ("sent", "reject"): ("rejected", "rejected_at"),
    ("sent", "expire"): ("expired", None),
    ("accepted", "convert"): ("converted", None),
}

ALL_PAIRS = [(s, e) for s in QuoteStatus.values for e in QuoteEvent.values]


class TestGetTransition:

    @pytest.mark.parametrize("status, event", list(EXPECTED))
    def test_listed_transitions(self, status, event):
        transition = get_transition(status, event)

        assert (transition.to_state, transition.timestamp_field) == EXPECTED[(status, event)]

    @pytest.mark.parametrize("status, event", [p for p in ALL_PAIRS if p not in EXPECTED])
    def test_unlisted_transitions_are_illegal(self, status, event):
        with pytest.raises(IllegalTransition) as exc_info:
            get_transition(status, event)

        assert exc_info.value.from_state == status
        assert exc_info.value.event == event

    def test_accepts_enum_members(self):
        assert get_transition(QuoteStatus.DRAFT, QuoteEvent.SEND).to_state == "sent"

    def test_unknown_event_is_illegal(self):
        with pytest.raises(IllegalTransition):
            get_transition("draft", "approve")

    def test_draft_cannot_skip_to_accepted(self):
        with pytest.raises(IllegalTransition) as exc_info:
            get_transition("draft", "accept")

        assert "Cannot apply 'accept' to a quote in status 'draft'" in str(exc_info.value)


class TestPermissions:

    def test_allowed_events(self):
        assert get_allowed_events("draft") == ["send"]
        assert sorted(get_allowed_events(QuoteStatus.SENT)) == ["accept", "expire", "reject"]
        assert get_allowed_events("accepted") == ["convert"]

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATES))
    def test_terminal_states_have_no_events(self, status):
        assert get_allowed_events(status) == []

    @pytest.mark.parametrize("status", QuoteStatus.values)
    def test_only_draft_is_editable(self, status):
        assert can_edit(status) == (status == "draft")

    @pytest.mark.parametrize("status", QuoteStatus.values)
    def test_only_draft_and_rejected_are_deletable(self, status):
        assert can_delete(status) == (status in ("draft", "rejected"))

    @pytest.mark.parametrize("status", ["sent", "accepted", "rejected", "expired", "converted"])
    def test_ensure_editable_raises(self, status):
        with pytest.raises(InvalidStateForEdit) as exc_info:
            ensure_editable(status)

        assert exc_info.value.status == status

    @pytest.mark.parametrize("status", ["sent", "accepted", "expired", "converted"])
    def test_ensure_deletable_raises(self, status):
        with pytest.raises(InvalidStateForDelete):
            ensure_deletable(status)

    def test_ensure_helpers_pass_for_allowed_states(self):
        ensure_editable("draft")
        ensure_deletable("draft")
        ensure_deletable(QuoteStatus.REJECTED)


class TestTransitionTable:

    def test_table_is_valid(self):
        assert validate_transition_table() == []

    def test_every_event_is_used(self):
        assert {event for _, event in TRANSITIONS} == set(QuoteEvent.values)
