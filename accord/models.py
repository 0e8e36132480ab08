"""
accord.models
=============

Dataclasses and enums describing an organization under lifecycle control,
the command object used to request a status change, and the derived
operational-validity record.

Like the rest of the core these objects depend only on the standard
library, so importing `accord` never pulls in the HTTP stack.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class Status(Enum):
    """Account states an organization can be in."""
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    SUSPENDED = "suspended"

    def __str__(self) -> str:        # nicer REPL display
        return self.name


class Action(Enum):
    """Operator actions that move an organization between states."""
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"

    def __str__(self) -> str:
        return self.name


class AgreementStatus(Enum):
    """State of the agreement itself, independent of the account status."""
    VALID = "valid"
    EXPIRED = "expired"
    NO_EXPIRY = "no_expiry"

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------
# Date parsing helpers
# ---------------------------------------------------------------------
def to_calendar_date(value: Any) -> Optional[date]:
    """
    Reduce *value* to a calendar date, dropping any time-of-day.

    Accepts ``None``, :class:`datetime.date`, :class:`datetime.datetime` and
    ISO strings in either date (``2026-10-15``) or timestamp
    (``2026-10-15T00:00:00Z``) form.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    raise TypeError(f"cannot interpret {value!r} as a calendar date")


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


# ---------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------
@dataclass
class Organization:
    """
    An organization whose account lifecycle is governed by `accord`.

    Parameters
    ----------
    id : str
        Opaque identifier, stable for the entity's lifetime.
    name : str
        Display name.
    status : Status, default=PENDING
        Current account state.
    agreement_expiry : datetime.date | None
        Last calendar day covered by the agreement (exclusive of
        operability, see :pyfunc:`accord.validity.can_operate`).
        ``None`` means no enforced expiry.
    email, contact_name : str | None
        Descriptive contact details; opaque to the engine.
    last_status_change : datetime.datetime | None
        When the status last changed.
    extra : dict
        Any other attribute received from the backend, passed through
        unchanged.
    """
    id: str
    name: str = ""
    status: Status = Status.PENDING
    agreement_expiry: Optional[date] = None
    email: Optional[str] = None
    contact_name: Optional[str] = None
    last_status_change: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.status, Status):
            self.status = Status(str(self.status).lower())
        self.agreement_expiry = to_calendar_date(self.agreement_expiry)

    # Convenience helpers -------------------------------------------------
    def copy(self, **changes: Any) -> "Organization":
        """Return a copy with *changes* applied; ``extra`` is not shared."""
        changes.setdefault("extra", dict(self.extra))
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the camelCase shape exchanged with the backend."""
        data: Dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "status": self.status.value,
                "agreementExpiry": (
                    self.agreement_expiry.isoformat() if self.agreement_expiry else None
                ),
                "email": self.email,
                "contactName": self.contact_name,
                "lastStatusChange": (
                    self.last_status_change.isoformat() if self.last_status_change else None
                ),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Organization":
        """Build an Organization from a backend payload (camel or snake case)."""
        known = {
            "id", "name", "status", "agreementExpiry", "agreement_expiry",
            "email", "contactName", "contact_name",
            "lastStatusChange", "last_status_change",
        }
        if "id" not in data:
            raise ValueError("organization payload has no 'id'")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            status=Status(str(data.get("status", Status.PENDING.value)).lower()),
            agreement_expiry=to_calendar_date(
                data.get("agreementExpiry", data.get("agreement_expiry"))
            ),
            email=data.get("email"),
            contact_name=data.get("contactName", data.get("contact_name")),
            last_status_change=_to_datetime(
                data.get("lastStatusChange", data.get("last_status_change"))
            ),
            extra={k: v for k, v in data.items() if k not in known},
        )


# ---------------------------------------------------------------------
# TransitionRequest
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class TransitionRequest:
    """
    Command asking for one lifecycle transition on one organization.

    ``agreement_expiry`` only matters for transitions that land in
    ``ACTIVE``.  Passing a date counts as a decision; "no expiry" must be
    stated explicitly with ``expiry_decided=True`` (or via
    :pymeth:`with_expiry`) so a stale or default date is never implied.

    ``target_status`` may be left out; it is then taken from the transition
    table for the organization's status at the time the request runs.
    """
    organization_id: str
    action: Action
    target_status: Optional[Status] = None
    agreement_expiry: Optional[date] = None
    expiry_decided: bool = False
    observation: Optional[str] = None
    actor_id: Optional[str] = None

    def __post_init__(self):
        expiry = to_calendar_date(self.agreement_expiry)
        object.__setattr__(self, "agreement_expiry", expiry)
        if expiry is not None:
            object.__setattr__(self, "expiry_decided", True)

    @classmethod
    def for_action(
        cls,
        org: Organization,
        action: Action,
        **kwargs: Any,
    ) -> "TransitionRequest":
        """
        Build a request for *action* on *org*, looking the target status up
        in the transition table.  Raises ``KeyError`` if *action* is not
        offered from the organization's current status.
        """
        from .lifecycle import RULES

        target = RULES[org.status][action].target
        return cls(organization_id=org.id, action=action, target_status=target, **kwargs)

    def with_expiry(self, agreement_expiry: Optional[date]) -> "TransitionRequest":
        """Return the same request with an explicit expiry decision attached."""
        return replace(self, agreement_expiry=agreement_expiry, expiry_decided=True)


# ---------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class OperationalValidity:
    """Derived, never persisted: whether an organization may operate today."""
    agreement_status: AgreementStatus
    days_until_expiry: Optional[int]
    can_operate: bool
    expiring_soon: bool = False
    reason: Optional[str] = None
