"""
Visit status workflow.

Billing only ever nudges a visit forward (record locked, bill calculated,
bill paid).  A visit that is already further along, or cancelled, is left
as it is.
"""
from __future__ import annotations

import logging

from billing.models import Visit

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, list[str]] = {
    'registered': ['waiting', 'cancelled'],
    'waiting': ['in_examination', 'cancelled'],
    'in_examination': ['examined', 'waiting', 'cancelled'],
    'examined': ['ready_for_billing', 'in_examination', 'cancelled'],
    'ready_for_billing': ['billed', 'cancelled'],
    'billed': ['paid', 'cancelled'],
    'paid': ['completed'],
    'completed': [],
    'cancelled': [],
}


def can_transition(current: str, new: str) -> bool:
    """Return True if a visit may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, [])


def advance_visit(visit: Visit, new_status: str) -> bool:
    """Move ``visit`` to ``new_status`` if the workflow allows it.

    Returns whether the status changed.  Illegal moves are logged at
    DEBUG and otherwise ignored.
    """
    if visit.status == new_status:
        return False
    if not can_transition(visit.status, new_status):
        logger.debug('visit %s stays %s (no transition to %s)', visit.visit_number, visit.status, new_status)
        return False
    old = visit.status
    visit.status = new_status
    visit.save(update_fields=['status', 'updated_at'])
    logger.info('visit %s: %s -> %s', visit.visit_number, old, new_status)
    return True
