"""
accord.validity
===============

Pure functions deriving whether an organization may currently operate
from its status and optional agreement-expiry date.

Every comparison happens on calendar dates: a stored timestamp such as
``2026-10-15T23:00:00Z`` counts as the 15th, whatever the time of day.
An agreement is valid only while its expiry date is strictly after today,
so on the expiry day itself the organization can no longer operate.

All helpers accept an optional ``today`` so callers can pin the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from .errors import InvalidExpiryInput
from .models import AgreementStatus, OperationalValidity, Organization, Status, to_calendar_date

DEFAULT_EXPIRING_SOON_DAYS = 30

# Access-denied reasons shown to the organization's users
STATUS_REASONS = {
    Status.PENDING: "The account is pending approval. Contact the administrator.",
    Status.REJECTED: "The account has been rejected. Contact the administrator.",
    Status.SUSPENDED: "The account is suspended. Contact the administrator.",
}
EXPIRED_REASON = "The agreement has expired. Contact the administrator to renew it."


@dataclass(frozen=True)
class AccessCheck:
    can_access: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class AgreementInfo:
    status: AgreementStatus
    label: str
    color: str
    description: str


def _today(today: Optional[date]) -> date:
    return to_calendar_date(today) if today is not None else date.today()


# ---------------------------------------------------------------------
# Core predicates
# ---------------------------------------------------------------------
def days_until_expiry(org: Organization, today: Optional[date] = None) -> Optional[int]:
    """Signed number of calendar days from today to the expiry, or ``None``."""
    if org.agreement_expiry is None:
        return None
    return (to_calendar_date(org.agreement_expiry) - _today(today)).days


def agreement_status(org: Organization, today: Optional[date] = None) -> AgreementStatus:
    """
    Describe the agreement itself.

    Independent of the account status: a SUSPENDED organization can hold a
    VALID agreement while still being unable to operate.
    """
    days = days_until_expiry(org, today)
    if days is None:
        return AgreementStatus.NO_EXPIRY
    return AgreementStatus.VALID if days > 0 else AgreementStatus.EXPIRED


def can_operate(org: Organization, today: Optional[date] = None) -> bool:
    """
    ``True`` only for ACTIVE organizations whose agreement has no expiry or
    expires strictly after today.
    """
    if org.status is not Status.ACTIVE:
        return False
    return agreement_status(org, today) is not AgreementStatus.EXPIRED


def is_expiring_soon(
    org: Organization,
    threshold_days: int = DEFAULT_EXPIRING_SOON_DAYS,
    today: Optional[date] = None,
) -> bool:
    """``True`` iff the agreement is still valid and ends within *threshold_days*."""
    days = days_until_expiry(org, today)
    return days is not None and 0 < days <= threshold_days


# ---------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------
def access_check(org: Organization, today: Optional[date] = None) -> AccessCheck:
    """Operability plus the reason an organization is locked out, if it is."""
    if org.status is not Status.ACTIVE:
        return AccessCheck(False, STATUS_REASONS.get(org.status, "The account is not active."))
    if agreement_status(org, today) is AgreementStatus.EXPIRED:
        return AccessCheck(False, EXPIRED_REASON)
    return AccessCheck(True)


def agreement_status_info(org: Organization, today: Optional[date] = None) -> AgreementInfo:
    """Label, colour hint and sentence describing the agreement state."""
    status = agreement_status(org, today)
    if status is AgreementStatus.VALID:
        return AgreementInfo(status, "Valid", "green", f"Valid until {org.agreement_expiry.isoformat()}")
    if status is AgreementStatus.EXPIRED:
        return AgreementInfo(status, "Expired", "red", f"Expired on {org.agreement_expiry.isoformat()}")
    return AgreementInfo(status, "No expiry", "gray", "No expiry date set")


def evaluate(
    org: Organization,
    today: Optional[date] = None,
    threshold_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> OperationalValidity:
    """Bundle every derived value for *org* into one record."""
    today = _today(today)
    check = access_check(org, today)
    return OperationalValidity(
        agreement_status=agreement_status(org, today),
        days_until_expiry=days_until_expiry(org, today),
        can_operate=check.can_access,
        expiring_soon=is_expiring_soon(org, threshold_days, today),
        reason=check.reason,
    )


# ---------------------------------------------------------------------
# Input collection
# ---------------------------------------------------------------------
def validate_expiry_input(value: Any, today: Optional[date] = None) -> Optional[date]:
    """
    Check an operator-supplied agreement expiry.

    ``None`` (no expiry) is accepted.  Any date on or after today is
    accepted; there is no upper bound.  Past dates raise
    :class:`~accord.errors.InvalidExpiryInput`.
    """
    try:
        expiry = to_calendar_date(value)
    except (TypeError, ValueError) as exc:
        raise InvalidExpiryInput(f"not a valid date: {value!r}") from exc
    if expiry is None:
        return None
    if expiry < _today(today):
        raise InvalidExpiryInput(f"agreement expiry {expiry.isoformat()} is in the past")
    return expiry
