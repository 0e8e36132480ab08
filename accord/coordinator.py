"""
accord.coordinator
==================

Runs one lifecycle transition against the remote status service while
keeping the local collection responsive and consistent.

Sequence for :pymeth:`MutationCoordinator.execute`:

1. refuse if the organization already has a transition in flight;
2. ask :pyfunc:`accord.lifecycle.check_transition` whether the request may
   run, returning its verdict untouched if not;
3. mark the organization busy and keep a copy of its current record as
   the rollback snapshot;
4. write the optimistic record into the store;
5. call the remote service;
6. on success store the remote record as returned;
7. on failure put the snapshot back and raise
   :class:`~accord.errors.RemoteFailure`;
8. release the busy marker whatever happened.

An organization removed from the store while its transition is in flight
stays removed: neither the commit nor the rollback writes it back.

Everything runs on one event loop.  The busy set is the only ordering
guarantee: at most one transition per organization, none across
organizations.  A busy organization is refused rather than queued.

Once started, a mutation always runs to commit or rollback, even if the
caller stops waiting for it (its own task is cancelled, a dialog is
closed); :pymeth:`drain` waits for such orphaned mutations.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional, Union

from .errors import (
    Allowed,
    AlreadyInProgress,
    Committed,
    IllegalTransition,
    MissingRequiredInput,
    RemoteFailure,
)
from .lifecycle import apply_transition, check_transition
from .models import Organization, TransitionRequest
from .portfolio import EntityStore
from .remote import StatusService

logger = logging.getLogger(__name__)

ExecuteResult = Union[Committed, IllegalTransition, MissingRequiredInput, AlreadyInProgress]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MutationCoordinator:
    """
    Owner of the busy set and of optimistic apply / commit / rollback.

    Parameters
    ----------
    store : EntityStore
        Holds the organization collection; the coordinator is its only
        writer while a transition is in flight.
    service : StatusService
        Remote authority.  Its retries and timeouts are its own business;
        each call is one request with one outcome.
    clock : callable, optional
        Returns the timestamp stamped on optimistic records.
    """

    def __init__(
        self,
        store: EntityStore,
        service: StatusService,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._service = service
        self._clock = clock or _utcnow
        self._busy: set[str] = set()
        self._inflight: Dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Busy tracking
    # ------------------------------------------------------------------
    @property
    def busy(self) -> FrozenSet[str]:
        return frozenset(self._busy)

    def is_busy(self, org_id: str) -> bool:
        return org_id in self._busy

    async def drain(self) -> None:
        """Wait until every in-flight mutation has committed or rolled back."""
        tasks = list(self._inflight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def execute(self, request: TransitionRequest) -> ExecuteResult:
        """
        Run *request* to completion.

        Returns :class:`Committed` with the remote record, or the refusal
        (:class:`IllegalTransition`, :class:`MissingRequiredInput`,
        :class:`AlreadyInProgress`) without touching the store.

        A request without ``target_status`` gets it from the transition
        table, after the busy check.

        Raises
        ------
        RemoteFailure
            The remote change failed; the store already holds the
            pre-transition record again.
        """
        org_id = request.organization_id
        if org_id in self._busy:
            logger.warning("refusing %s on %s: transition already in progress", request.action, org_id)
            return AlreadyInProgress(org_id)

        current = self._store.find(org_id)
        if current is None:
            logger.warning("refusing %s: unknown organization %s", request.action, org_id)
            return IllegalTransition(None, request.action, detail=f"unknown organization {org_id}")

        verdict = check_transition(current, request)
        if not isinstance(verdict, Allowed):
            logger.info("not executing %s on %s: %s", request.action, org_id, verdict.message)
            return verdict
        if request.target_status is None:
            request = replace(request, target_status=verdict.target)

        self._busy.add(org_id)
        task = asyncio.ensure_future(self._mutate(current.copy(), request))
        self._inflight[org_id] = task
        task.add_done_callback(lambda t: self._forget(org_id, t))
        return await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _mutate(self, snapshot: Organization, request: TransitionRequest) -> Committed:
        org_id = request.organization_id
        try:
            optimistic = apply_transition(snapshot, request, now=self._clock())
            self._store.replace(optimistic)
            logger.debug("optimistic %s -> %s for %s", snapshot.status, optimistic.status, org_id)

            try:
                confirmed = await self._service.change_status(
                    org_id,
                    request.target_status,
                    agreement_expiry=request.agreement_expiry,
                    observation=request.observation,
                    actor_id=request.actor_id,
                )
            except asyncio.CancelledError:
                self._rollback(snapshot, "cancelled")
                raise
            except RemoteFailure as exc:
                self._rollback(snapshot, str(exc))
                raise
            except Exception as exc:
                self._rollback(snapshot, repr(exc))
                raise RemoteFailure(
                    str(exc) or "status change failed",
                    organization_id=org_id,
                    cause=exc,
                ) from exc

            if self._store.replace(confirmed):
                # counter for the previous status is left to the next full refresh
                self._store.increment_status_count(confirmed.status)
            else:
                logger.info("%s removed while %s was in flight; commit not stored", org_id, request.action)
            logger.info("%s committed for %s: %s -> %s",
                        request.action, org_id, snapshot.status, confirmed.status)
            return Committed(confirmed, snapshot.status)
        finally:
            self._busy.discard(org_id)

    def _rollback(self, snapshot: Organization, reason: str) -> None:
        if self._store.replace(snapshot):
            logger.error("status change for %s failed, restored %s: %s", snapshot.id, snapshot.status, reason)
        else:
            logger.error("status change for %s failed after it was removed: %s", snapshot.id, reason)

    def _forget(self, org_id: str, task: asyncio.Task) -> None:
        # also covers a task cancelled before its first step ran
        if self._inflight.get(org_id) is task:
            del self._inflight[org_id]
            self._busy.discard(org_id)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("mutation for %s ended with %r", org_id, task.exception())
