"""
Quote status machine.

Pure functions over a closed set of statuses and events. No Django model
lifecycle is involved; services call these before touching the database.

    draft --send--> sent --accept--> accepted --convert--> converted
                     |--reject--> rejected
                     `--expire--> expired

Only drafts are editable. Only drafts and rejected quotes are deletable.
"""

from dataclasses import dataclass
from typing import Optional

from django.db import models

from .exceptions import IllegalTransition, InvalidStateForDelete, InvalidStateForEdit


class QuoteStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    SENT = 'sent', 'Sent'
    ACCEPTED = 'accepted', 'Accepted'
    REJECTED = 'rejected', 'Rejected'
    EXPIRED = 'expired', 'Expired'
    CONVERTED = 'converted', 'Converted'


class QuoteEvent(models.TextChoices):
    SEND = 'send', 'Send'
    ACCEPT = 'accept', 'Accept'
    REJECT = 'reject', 'Reject'
    EXPIRE = 'expire', 'Expire'
    CONVERT = 'convert', 'Convert'


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    from_state: str
    event: str
    to_state: str
    timestamp_field: Optional[str] = None


# Keys and members are plain strings; callers may pass enum members or the
# raw values read back from the database.
TRANSITIONS = {
    (t.from_state, t.event): t
    for t in [
        Transition('draft', 'send', 'sent', 'sent_at'),
        Transition('sent', 'accept', 'accepted', 'accepted_at'),
        Transition('sent', 'reject', 'rejected', 'rejected_at'),
        Transition('sent', 'expire', 'expired'),
        Transition('accepted', 'convert', 'converted'),
    ]
}

INITIAL_STATE = QuoteStatus.DRAFT.value
EDITABLE_STATES = frozenset({'draft'})
DELETABLE_STATES = frozenset({'draft', 'rejected'})
TERMINAL_STATES = frozenset({'rejected', 'expired', 'converted'})


def get_transition(status: str, event: str) -> Transition:
    """
    Look up the transition for an event.

    Raises:
        IllegalTransition: If the event is unknown or not allowed from status
    """
    status, event = str(status), str(event)
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise IllegalTransition(status, event)


def get_allowed_events(status: str) -> list[str]:
    """Return the events that can be applied from status."""
    status = str(status)
    return [t.event for t in TRANSITIONS.values() if t.from_state == status]


def can_edit(status: str) -> bool:
    return str(status) in EDITABLE_STATES


def can_delete(status: str) -> bool:
    return str(status) in DELETABLE_STATES


def ensure_editable(status: str) -> None:
    if not can_edit(status):
        raise InvalidStateForEdit(str(status))


def ensure_deletable(status: str) -> None:
    if not can_delete(status):
        raise InvalidStateForDelete(str(status))


def validate_transition_table() -> list[str]:
    """
    Sanity-check the transition table against the status set.

    Returns list of error messages (empty = valid).
    """
    errors = []
    states = set(QuoteStatus.values)

    for (from_state, event), t in TRANSITIONS.items():
        if from_state not in states or t.to_state not in states:
            errors.append(f"transition '{event}' references unknown state")
        if from_state in TERMINAL_STATES:
            errors.append(f"terminal state '{from_state}' has outgoing transition '{event}'")

    reachable = {INITIAL_STATE}
    queue = [INITIAL_STATE]
    while queue:
        current = queue.pop(0)
        for t in TRANSITIONS.values():
            if t.from_state == current and t.to_state not in reachable:
                reachable.add(t.to_state)
                queue.append(t.to_state)

    for state in QuoteStatus.values:
        if state not in reachable:
            errors.append(f"state '{state}' unreachable from '{INITIAL_STATE}'")

    return errors
