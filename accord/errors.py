"""
accord.errors
=============

Outcome and error taxonomy shared by the state machine and the mutation
coordinator.

Expected conditions (an action not offered from the current status, a
transition waiting on operator input, an entity already being mutated)
are plain result objects returned to the caller.  Only failures that
originate outside the engine, in the remote status service, are raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Action, Organization, Status

__all__ = [
    "AccordError",
    "RemoteFailure",
    "InvalidExpiryInput",
    "IllegalTransitionError",
    "MissingRequiredInputError",
    "Allowed",
    "IllegalTransition",
    "MissingRequiredInput",
    "AlreadyInProgress",
    "Committed",
]


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------
class AccordError(Exception):
    """Base class for every exception raised by `accord`."""


class RemoteFailure(AccordError):
    """
    The authoritative status change failed (network, validation or
    conflict at the backend).

    ``message`` is suitable for showing to an operator as-is.
    """

    def __init__(
        self,
        message: str,
        *,
        organization_id: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.organization_id = organization_id
        self.status_code = status_code
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class InvalidExpiryInput(AccordError, ValueError):
    """An agreement expiry was supplied that lies in the past."""


class IllegalTransitionError(AccordError, ValueError):
    """Raised by :pyfunc:`accord.lifecycle.advance_status` for a refused action."""


class MissingRequiredInputError(AccordError, ValueError):
    """Raised by :pyfunc:`accord.lifecycle.advance_status` when input is missing."""


# ---------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Allowed:
    """The transition is legal and all required input is present."""
    current: Status
    action: Action
    target: Status


@dataclass(frozen=True)
class IllegalTransition:
    """
    *action* is not offered from *current*.

    ``current`` is ``None`` when the organization is unknown to the store.
    """
    current: Optional[Status]
    action: Action
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        if self.current is None:
            return self.detail or f"cannot {self.action.name}: unknown organization"
        base = f"illegal transition: {self.action.name} from {self.current.name}"
        return f"{base} ({self.detail})" if self.detail else base


@dataclass(frozen=True)
class MissingRequiredInput:
    """
    The transition needs more data from the caller before it can run.

    This is a control-flow signal, not an error: collect ``field`` and
    resubmit the same request with it attached.
    """
    action: Action
    target: Status
    field: str = "agreement_expiry"

    @property
    def message(self) -> str:
        return f"{self.action.name} to {self.target.name} requires '{self.field}'"


@dataclass(frozen=True)
class AlreadyInProgress:
    """Another transition on the same organization has not finished yet."""
    organization_id: str

    @property
    def message(self) -> str:
        return f"a status change for organization {self.organization_id} is already in progress"


@dataclass(frozen=True)
class Committed:
    """The remote service confirmed the transition; ``organization`` is its record."""
    organization: Organization
    previous_status: Status
