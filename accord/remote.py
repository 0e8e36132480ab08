"""
accord.remote
=============

The remote status service: the backend that performs the authoritative
status change and returns the canonical organization record.

:class:`StatusService` is the contract the coordinator depends on.
:class:`HttpStatusService` implements it over an ``httpx.AsyncClient``;
every failure, whether transport error, timeout, non-2xx answer or an
unreadable body, comes out as a single
:class:`~accord.errors.RemoteFailure`.

The read side (:pymeth:`HttpStatusService.list_organizations`,
:pymeth:`HttpStatusService.fetch_stats`) feeds :pyfunc:`sync_portfolio`,
which reloads a :class:`~accord.portfolio.Portfolio` from the backend.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from .errors import RemoteFailure
from .models import Organization, Status
from .portfolio import Portfolio
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# stats keys the backend may use instead of ours
STATS_ALIASES = {"active": "approved"}


class StatusService(Protocol):
    async def change_status(
        self,
        organization_id: str,
        target_status: Status,
        agreement_expiry: Optional[date] = None,
        observation: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Organization:
        """Change the status remotely and return the complete updated record."""
        ...


def _error_message(response: httpx.Response) -> str:
    """Pick the most readable message a backend error response offers."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
        if isinstance(body.get("message"), list):
            return "; ".join(str(m) for m in body["message"])
    return f"request rejected by backend: {response.reason_phrase or response.status_code}"


class HttpStatusService:
    """
    :class:`StatusService` backed by the portal's REST API.

    Example
    -------
    >>> async with HttpStatusService.from_settings() as svc:
    ...     org = await svc.change_status("o1", Status.SUSPENDED)
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "HttpStatusService":
        cfg = cfg or default_settings
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if cfg.remote_api_token:
            headers["Authorization"] = f"Bearer {cfg.remote_api_token}"
        client = httpx.AsyncClient(
            base_url=str(cfg.remote_base_url),
            headers=headers,
            timeout=cfg.remote_timeout,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpStatusService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def _send(
        self,
        method: str,
        url: str,
        organization_id: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request; anything but a 2xx answer becomes RemoteFailure."""
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteFailure(
                "the backend did not answer in time",
                organization_id=organization_id,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteFailure(
                f"could not reach the backend: {exc}",
                organization_id=organization_id,
                cause=exc,
            ) from exc

        if response.is_error:
            raise RemoteFailure(
                _error_message(response),
                organization_id=organization_id,
                status_code=response.status_code,
            )
        return response

    # ------------------------------------------------------------------
    # StatusService
    # ------------------------------------------------------------------
    async def change_status(
        self,
        organization_id: str,
        target_status: Status,
        agreement_expiry: Optional[date] = None,
        observation: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Organization:
        payload: Dict[str, Any] = {"status": target_status.value}
        if target_status is Status.ACTIVE:
            payload["agreementExpiry"] = agreement_expiry.isoformat() if agreement_expiry else None
        if observation:
            payload["observation"] = observation
        if actor_id:
            payload["adminId"] = actor_id

        url = f"organizations/{organization_id}/status"
        logger.info("PATCH %s -> %s", url, target_status.name)
        response = await self._send("PATCH", url, organization_id, json=payload)

        try:
            body = response.json()
            # some endpoints wrap the record in {"data": {...}}
            if isinstance(body, dict) and isinstance(body.get("data"), dict):
                body = body["data"]
            org = Organization.from_dict(body)
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            raise RemoteFailure(
                "the backend returned an unreadable organization record",
                organization_id=organization_id,
                status_code=response.status_code,
                cause=exc,
            ) from exc

        if org.id != organization_id:
            raise RemoteFailure(
                f"the backend answered for organization {org.id}, expected {organization_id}",
                organization_id=organization_id,
                status_code=response.status_code,
            )
        return org

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    async def list_organizations(
        self,
        page: int = 1,
        limit: int = 100,
        statuses: Optional[List[Status]] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Organization], int]:
        """
        One page of organizations from the backend and the overall total.

        Accepts both a bare JSON list and the paginated
        ``{"data": [...], "total": n}`` envelope.
        """
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if statuses:
            params["status"] = [s.value for s in statuses]
        if search:
            params["search"] = search
        response = await self._send("GET", "organizations", params=params)

        try:
            body = response.json()
            rows = body["data"] if isinstance(body, dict) else body
            orgs = [Organization.from_dict(row) for row in rows]
            total = int(body.get("total", len(orgs))) if isinstance(body, dict) else len(orgs)
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            raise RemoteFailure(
                "the backend returned an unreadable organization list",
                status_code=response.status_code,
                cause=exc,
            ) from exc
        return orgs, total

    async def fetch_stats(self) -> Dict[str, int]:
        """Authoritative per-status totals, keyed like :pyattr:`Portfolio.stats`."""
        response = await self._send("GET", "organizations/stats")
        try:
            body = response.json()
            if isinstance(body.get("data"), dict):
                body = body["data"]
            stats = {"total": int(body.get("total", 0))}
            for status in Status:
                alias = STATS_ALIASES.get(status.value, status.value)
                stats[status.value] = int(body.get(status.value, body.get(alias, 0)))
        except (ValueError, TypeError, AttributeError) as exc:
            raise RemoteFailure(
                "the backend returned unreadable statistics",
                status_code=response.status_code,
                cause=exc,
            ) from exc
        return stats


async def sync_portfolio(service: HttpStatusService, store: Portfolio, page_size: int = 100) -> int:
    """
    Reload *store* from the backend: every page of organizations, then the
    backend's own counters.  Returns the number of organizations loaded.
    """
    orgs: List[Organization] = []
    page = 1
    while True:
        batch, total = await service.list_organizations(page=page, limit=page_size)
        orgs.extend(batch)
        if not batch or len(orgs) >= total:
            break
        page += 1
    loaded = store.load(orgs)
    store.load_stats(await service.fetch_stats())
    return loaded
