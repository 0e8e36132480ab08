"""
tests/test_models.py
====================

Unit tests for the dataclasses and enums defined in accord.models.

Run:  pytest -q
"""

from datetime import date, datetime, timezone

import pytest

from accord.models import Action, Organization, Status, TransitionRequest, to_calendar_date


def test_default_status():
    """New organization defaults to PENDING with no expiry."""
    org = Organization("o1", "Acme")
    assert org.status is Status.PENDING
    assert org.agreement_expiry is None


def test_str_on_status():
    """Enum __str__ returns its name (nicer REPL)."""
    assert str(Status.ACTIVE) == "ACTIVE"
    assert str(Action.REACTIVATE) == "REACTIVATE"


@pytest.mark.parametrize(
    "raw",
    ["2026-10-15", "2026-10-15T00:00:00Z", "2026-10-15T23:59:00+00:00",
     datetime(2026, 10, 15, 18, 30), date(2026, 10, 15)],
)
def test_calendar_date_drops_time_of_day(raw):
    assert to_calendar_date(raw) == date(2026, 10, 15)


def test_calendar_date_rejects_garbage():
    with pytest.raises(TypeError):
        to_calendar_date(20261015)


def test_from_dict_reads_backend_payload():
    org = Organization.from_dict({
        "id": 7,
        "name": "Acme",
        "status": "ACTIVE",
        "agreementExpiry": "2027-03-01T00:00:00Z",
        "email": "hr@acme.test",
        "lastStatusChange": "2026-09-01T10:00:00Z",
        "sector": "software",
    })
    assert org.id == "7"
    assert org.status is Status.ACTIVE
    assert org.agreement_expiry == date(2027, 3, 1)
    assert org.last_status_change == datetime(2026, 9, 1, 10, 0, tzinfo=timezone.utc)
    assert org.extra == {"sector": "software"}


def test_to_dict_passes_extra_attributes_through():
    org = Organization("o1", "Acme", status=Status.ACTIVE,
                       agreement_expiry=date(2027, 1, 1), extra={"sector": "software"})
    data = org.to_dict()
    assert data["status"] == "active"
    assert data["agreementExpiry"] == "2027-01-01"
    assert data["sector"] == "software"
    assert Organization.from_dict(data) == org


def test_from_dict_requires_id():
    with pytest.raises(ValueError):
        Organization.from_dict({"name": "Nameless"})


def test_copy_does_not_share_extra():
    org = Organization("o1", extra={"k": 1})
    clone = org.copy(status=Status.REJECTED)
    clone.extra["k"] = 2
    assert org.extra == {"k": 1}
    assert org.status is Status.PENDING


def test_request_with_date_counts_as_decided():
    req = TransitionRequest("o1", Action.APPROVE, Status.ACTIVE, agreement_expiry="2099-01-01")
    assert req.agreement_expiry == date(2099, 1, 1)
    assert req.expiry_decided


def test_request_without_expiry_is_undecided_until_stated():
    req = TransitionRequest("o1", Action.APPROVE, Status.ACTIVE)
    assert not req.expiry_decided
    explicit = req.with_expiry(None)
    assert explicit.expiry_decided
    assert explicit.agreement_expiry is None


def test_for_action_looks_up_target():
    org = Organization("o1", status=Status.REJECTED)
    req = TransitionRequest.for_action(org, Action.REACTIVATE, observation="second look")
    assert req.target_status is Status.PENDING
    assert req.observation == "second look"
    with pytest.raises(KeyError):
        TransitionRequest.for_action(org, Action.SUSPEND)
