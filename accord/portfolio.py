"""
accord.portfolio
================

An in-memory registry of :class:`accord.models.Organization` objects keyed
by id, plus the per-status counters dashboards read.

The mutation coordinator only needs the narrow :class:`EntityStore`
contract (``get`` / ``replace`` / ``increment_status_count``); the list
helpers below serve the listing screens that sit around it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence

from .models import AgreementStatus, Organization, Status
from .validity import agreement_status

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    """What the mutation coordinator needs from whoever holds the collection."""

    def find(self, org_id: str) -> Optional[Organization]: ...

    def replace(self, org: Organization) -> bool: ...

    def increment_status_count(self, status: Status) -> None: ...


@dataclass(frozen=True)
class Page:
    items: List[Organization]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _empty_stats() -> Dict[str, int]:
    stats = {"total": 0}
    stats.update({s.value: 0 for s in Status})
    return stats


class Portfolio:
    """
    Dictionary-backed organization registry.

    Example
    -------
    >>> pf = Portfolio([Organization("o1", "Acme")])
    >>> pf.get("o1").status
    <Status.PENDING: 'pending'>
    >>> pf.stats["pending"]
    1
    """

    def __init__(self, orgs: Iterable[Organization] = ()) -> None:
        self._orgs: Dict[str, Organization] = {}
        self._stats: Dict[str, int] = _empty_stats()
        for org in orgs:
            self._orgs[org.id] = org
        self.refresh_stats()

    # ------------------------------------------------------------------
    # Entity access
    # ------------------------------------------------------------------
    def add(self, org: Organization) -> None:
        """Insert or overwrite an organization."""
        self._orgs[org.id] = org

    def get(self, org_id: str) -> Organization:
        """Retrieve by id (raise KeyError if not present)."""
        return self._orgs[org_id]

    def find(self, org_id: str) -> Optional[Organization]:
        return self._orgs.get(org_id)

    def replace(self, org: Organization) -> bool:
        """
        Swap the stored record with the same id for *org*.

        Returns ``False`` and stores nothing if the id is no longer present
        (removed meanwhile); use :pymeth:`add` to insert.
        """
        if org.id not in self._orgs:
            logger.warning("not replacing organization %s: no longer in the portfolio", org.id)
            return False
        self._orgs[org.id] = org
        return True

    def load(self, orgs: Iterable[Organization]) -> int:
        """Replace the whole collection with *orgs* and recount; returns the new size."""
        self._orgs = {org.id: org for org in orgs}
        self.refresh_stats()
        logger.info("portfolio loaded with %d organizations", len(self._orgs))
        return len(self._orgs)

    def remove(self, org_id: str) -> Organization:
        """Delete unconditionally; lifecycle rules do not apply here."""
        return self._orgs.pop(org_id)

    def clear(self) -> None:
        self._orgs.clear()
        self._stats = _empty_stats()

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    def find_by_status(self, status: Status) -> List[Organization]:
        """Return all organizations currently at the given Status."""
        return [o for o in self._orgs.values() if o.status == status]

    def filter(
        self,
        statuses: Optional[Sequence[Status]] = None,
        search: Optional[str] = None,
        agreement: Optional[AgreementStatus] = None,
        today: Optional[date] = None,
    ) -> List[Organization]:
        """
        Organizations matching every given criterion.

        *search* is a case-insensitive substring match on name and email.
        """
        needle = search.lower() if search else None
        matches = []
        for org in self._orgs.values():
            if statuses and org.status not in statuses:
                continue
            if needle and needle not in org.name.lower() and needle not in (org.email or "").lower():
                continue
            if agreement is not None and agreement_status(org, today) is not agreement:
                continue
            matches.append(org)
        return matches

    def page(self, page: int = 1, limit: int = 10, **criteria) -> Page:
        """One page (1-based) of :pymeth:`filter` results, sorted by name."""
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")
        matches = sorted(self.filter(**criteria), key=lambda o: (o.name.lower(), o.id))
        start = (page - 1) * limit
        return Page(matches[start:start + limit], page, limit, len(matches))

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------
    @property
    def stats(self) -> Dict[str, int]:
        """Snapshot of the status counters (approximate between refreshes)."""
        return dict(self._stats)

    def increment_status_count(self, status: Status) -> None:
        self._stats[status.value] += 1

    def load_stats(self, stats: Dict[str, int]) -> Dict[str, int]:
        """Adopt counters computed elsewhere (the backend); missing keys stay 0."""
        fresh = _empty_stats()
        for key in fresh:
            fresh[key] = int(stats.get(key, 0))
        self._stats = fresh
        return self.stats

    def refresh_stats(self) -> Dict[str, int]:
        """Recompute every counter from the collection."""
        stats = _empty_stats()
        for org in self._orgs.values():
            stats["total"] += 1
            stats[org.status.value] += 1
        self._stats = stats
        return self.stats

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Organization]:
        return iter(self._orgs.values())

    def __len__(self) -> int:
        return len(self._orgs)

    def __contains__(self, org_id: object) -> bool:
        return org_id in self._orgs
