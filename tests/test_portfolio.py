"""
tests/test_portfolio.py
=======================

Unit tests for accord.portfolio.Portfolio
"""

from datetime import date, timedelta

import pytest

from accord.models import AgreementStatus, Organization, Status
from accord.portfolio import Portfolio


def _demo_portfolio():
    return Portfolio([
        Organization("o1", "Foo LLC", email="jobs@foo.test"),  # PENDING
        Organization("o2", "Bar Inc", status=Status.ACTIVE,
                     agreement_expiry=date.today() + timedelta(days=90)),
        Organization("o3", "Baz GmbH", status=Status.ACTIVE,
                     agreement_expiry=date.today() - timedelta(days=1)),
        Organization("o4", "Qux SA", status=Status.SUSPENDED),
    ])


def test_add_and_get():
    pf = Portfolio()
    org = Organization("o9", "Acme Corp")
    pf.add(org)
    assert pf.get("o9") is org
    assert "o9" in pf
    assert pf.find("missing") is None
    with pytest.raises(KeyError):
        pf.get("missing")


def test_replace_and_remove():
    pf = _demo_portfolio()
    assert pf.replace(pf.get("o1").copy(name="Foo Renamed")) is True
    assert pf.get("o1").name == "Foo Renamed"
    pf.remove("o4")
    assert len(pf) == 3


def test_replace_does_not_resurrect_removed():
    pf = _demo_portfolio()
    gone = pf.remove("o4")
    assert pf.replace(gone.copy(status=Status.ACTIVE)) is False
    assert "o4" not in pf
    assert len(pf) == 3


def test_find_by_status():
    pf = _demo_portfolio()
    active = pf.find_by_status(Status.ACTIVE)
    assert {o.id for o in active} == {"o2", "o3"}


def test_filter_criteria():
    pf = _demo_portfolio()
    assert [o.id for o in pf.filter(search="FOO.TEST")] == ["o1"]
    assert [o.id for o in pf.filter(agreement=AgreementStatus.EXPIRED)] == ["o3"]
    assert {o.id for o in pf.filter(statuses=[Status.PENDING, Status.SUSPENDED])} == {"o1", "o4"}


def test_page():
    pf = _demo_portfolio()
    first = pf.page(1, 3)
    assert [o.name for o in first.items] == ["Bar Inc", "Baz GmbH", "Foo LLC"]
    assert first.total == 4 and first.total_pages == 2
    assert [o.name for o in pf.page(2, 3).items] == ["Qux SA"]
    with pytest.raises(ValueError):
        pf.page(0, 10)


def test_stats_and_refresh():
    pf = _demo_portfolio()
    assert pf.stats == {"total": 4, "pending": 1, "active": 2, "rejected": 0, "suspended": 1}
    pf.increment_status_count(Status.REJECTED)
    assert pf.stats["rejected"] == 1
    assert pf.stats["total"] == 4
    assert pf.refresh_stats()["rejected"] == 0


def test_len_and_iter():
    pf = _demo_portfolio()
    assert len(pf) == 4
    assert {o.name for o in pf} == {"Foo LLC", "Bar Inc", "Baz GmbH", "Qux SA"}


def test_load_replaces_collection():
    pf = _demo_portfolio()
    n = pf.load([Organization("n1", "New One", status=Status.REJECTED)])
    assert n == 1
    assert "o1" not in pf
    assert pf.stats == {"total": 1, "pending": 0, "active": 0, "rejected": 1, "suspended": 0}


def test_load_stats_adopts_backend_numbers():
    pf = _demo_portfolio()
    stats = pf.load_stats({"total": 120, "active": 100, "pending": "7"})
    assert stats == {"total": 120, "pending": 7, "active": 100, "rejected": 0, "suspended": 0}
    assert pf.stats["active"] == 100
