"""
accord.lifecycle
================

State-transition guard for an :class:`accord.models.Organization`.

A small finite-state machine lists, for each status, the actions an
operator may take and where each one leads.  There is no terminal state:
a rejected organization can be sent back to review.

:pyfunc:`check_transition` is the single place that decides whether a
transition is currently allowed.  It never raises for expected
conditions; it returns :class:`~accord.errors.Allowed`,
:class:`~accord.errors.IllegalTransition` or
:class:`~accord.errors.MissingRequiredInput`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Union

from .errors import (
    Allowed,
    IllegalTransition,
    IllegalTransitionError,
    MissingRequiredInput,
    MissingRequiredInputError,
)
from .models import Action, Organization, Status, TransitionRequest

CheckResult = Union[Allowed, IllegalTransition, MissingRequiredInput]


@dataclass(frozen=True)
class Transition:
    source: Status
    action: Action
    target: Status

    @property
    def requires_expiry(self) -> bool:
        """Every transition that lands in ACTIVE needs an explicit expiry decision."""
        return self.target is Status.ACTIVE


# ---------------------------------------------------------------------
# Allowed transitions: source status → {action: transition}
# ---------------------------------------------------------------------
def _t(source: Status, action: Action, target: Status) -> Transition:
    return Transition(source, action, target)


RULES: Dict[Status, Dict[Action, Transition]] = {
    Status.PENDING: {
        Action.APPROVE: _t(Status.PENDING, Action.APPROVE, Status.ACTIVE),
        Action.REJECT: _t(Status.PENDING, Action.REJECT, Status.REJECTED),
    },
    Status.ACTIVE: {
        Action.SUSPEND: _t(Status.ACTIVE, Action.SUSPEND, Status.SUSPENDED),
    },
    Status.SUSPENDED: {
        Action.REACTIVATE: _t(Status.SUSPENDED, Action.REACTIVATE, Status.ACTIVE),
    },
    Status.REJECTED: {
        Action.REACTIVATE: _t(Status.REJECTED, Action.REACTIVATE, Status.PENDING),
    },
}


def available_actions(status: Status) -> List[Transition]:
    """Transitions an operator may be offered for an organization in *status*."""
    return list(RULES.get(status, {}).values())


def find_transition(status: Status, action: Action) -> Optional[Transition]:
    return RULES.get(status, {}).get(action)


def check_transition(
    current: Union[Organization, Status],
    request: TransitionRequest,
) -> CheckResult:
    """
    Decide whether *request* may run against an organization in *current*.

    Returns
    -------
    Allowed
        The action is legal and any required input is attached.
    IllegalTransition
        The action is not offered from the current status, or the request's
        ``target_status`` disagrees with the table (a request without one
        takes the table's).
    MissingRequiredInput
        The transition lands in ACTIVE but the caller has not decided on an
        agreement expiry yet.
    """
    status = current.status if isinstance(current, Organization) else current
    transition = find_transition(status, request.action)
    if transition is None:
        return IllegalTransition(status, request.action)
    if request.target_status is not None and request.target_status is not transition.target:
        return IllegalTransition(
            status,
            request.action,
            detail=f"{request.action.name} leads to {transition.target.name}, "
                   f"not {request.target_status.name}",
        )
    if transition.requires_expiry and not request.expiry_decided:
        return MissingRequiredInput(request.action, transition.target)
    return Allowed(status, request.action, transition.target)


def apply_transition(
    org: Organization,
    request: TransitionRequest,
    now: Optional[datetime] = None,
) -> Organization:
    """
    Return a copy of *org* as it looks once *request* has taken effect.

    The caller is expected to have checked the request first.  For
    ACTIVE-bound transitions the expiry is always replaced by the
    request's decision, never carried over from an earlier activation.
    """
    target = request.target_status
    if target is None:
        target = RULES[org.status][request.action].target
    changes = {
        "status": target,
        "last_status_change": now or datetime.now(timezone.utc),
    }
    if target is Status.ACTIVE:
        changes["agreement_expiry"] = request.agreement_expiry
    return org.copy(**changes)


def advance_status(
    org: Organization,
    action: Action,
    agreement_expiry: Optional[date] = None,
    *,
    expiry_decided: bool = False,
) -> None:
    """
    Apply *action* to :pyattr:`org.status` **in place** if it is legal,
    otherwise raise.

    This is the synchronous helper for callers with no remote authority
    (seed scripts, tests); UI and backend handlers go through
    :class:`accord.coordinator.MutationCoordinator`.

    Examples
    --------
    >>> o = Organization("o1", "Acme")
    >>> advance_status(o, Action.REJECT)
    >>> advance_status(o, Action.SUSPEND)
    Traceback (most recent call last):
        ...
    accord.errors.IllegalTransitionError: illegal transition: SUSPEND from REJECTED
    """
    transition = find_transition(org.status, action)
    if transition is None:
        raise IllegalTransitionError(IllegalTransition(org.status, action).message)
    request = TransitionRequest(
        organization_id=org.id,
        action=action,
        target_status=transition.target,
        agreement_expiry=agreement_expiry,
        expiry_decided=expiry_decided,
    )
    result = check_transition(org, request)
    if isinstance(result, MissingRequiredInput):
        raise MissingRequiredInputError(result.message)
    updated = apply_transition(org, request)
    org.status = updated.status
    org.agreement_expiry = updated.agreement_expiry
    org.last_status_change = updated.last_status_change
