"""
api.main
========

HTTP layer over the Accord engine: listing with validity, the actions an
operator may take, status transitions run through the mutation
coordinator, and reloading the portfolio from the backend.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from accord.coordinator import MutationCoordinator
from accord.errors import (
    AlreadyInProgress,
    Committed,
    InvalidExpiryInput,
    MissingRequiredInput,
    RemoteFailure,
)
from accord.lifecycle import available_actions, find_transition
from accord.models import Action, AgreementStatus, Organization, Status, TransitionRequest
from accord.portfolio import Portfolio
from accord.remote import HttpStatusService, sync_portfolio
from accord.settings import API_DEBUG, configure_logging
from accord.validity import agreement_status_info, evaluate, validate_expiry_input
from .deps import get_coordinator, get_portfolio, get_settings, get_status_service

configure_logging("DEBUG" if API_DEBUG else None)
logger = logging.getLogger(__name__)


def _resolve(app: FastAPI, dependency):
    return app.dependency_overrides.get(dependency, dependency)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the portfolio on startup; close the backend client on shutdown."""
    service = _resolve(app, get_status_service)
    if _resolve(app, get_settings).sync_on_startup:
        try:
            await sync_portfolio(service, _resolve(app, get_portfolio))
        except RemoteFailure as exc:
            logger.warning("starting with an empty portfolio, sync failed: %s", exc)
    yield
    await service.aclose()
    logger.info("backend client closed")


app = FastAPI(
    title="Accord API",
    version="0.1.0",
    description="Organization lifecycle and agreement validity for the internship portal.",
    lifespan=lifespan,
)

# --- CORS ----------------------------------------------------------
origins = [
    "http://localhost:5173",    # Vite dev server default port
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# ---------- request bodies ----------
class TransitionIn(BaseModel):
    action: Action
    agreementExpiry: Optional[date] = None
    noExpiry: bool = False
    observation: Optional[str] = None
    adminId: Optional[str] = None


def _lookup(pm: Portfolio, org_id: str) -> Organization:
    org = pm.find(org_id)
    if org is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


def _actions(org: Organization) -> List[Dict[str, Any]]:
    return [
        {"action": t.action.value, "target": t.target.value, "requiresExpiry": t.requires_expiry}
        for t in available_actions(org.status)
    ]


def _describe(org: Organization, expiring_days: int) -> Dict[str, Any]:
    validity = evaluate(org, threshold_days=expiring_days)
    info = agreement_status_info(org)
    data = org.to_dict()
    data["validity"] = {
        "canOperate": validity.can_operate,
        "agreementStatus": validity.agreement_status.value,
        "daysUntilExpiry": validity.days_until_expiry,
        "expiringSoon": validity.expiring_soon,
        "reason": validity.reason,
        "label": info.label,
        "description": info.description,
    }
    return data


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "Accord API is alive"}


# ---------- GET /organizations ----------
@app.get("/organizations")
def list_organizations(
    status: Optional[List[Status]] = Query(None, description="Filter by one or more statuses"),
    search: Optional[str] = Query(None, min_length=1, description="Name or email substring"),
    agreement: Optional[AgreementStatus] = Query(None, description="Filter by agreement state"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    pm: Portfolio = Depends(get_portfolio),
    cfg=Depends(get_settings),
):
    result = pm.page(page, limit, statuses=status, search=search, agreement=agreement)
    return {
        "data": [_describe(o, cfg.expiring_soon_days) for o in result.items],
        "page": result.page,
        "limit": result.limit,
        "total": result.total,
        "totalPages": result.total_pages,
    }


# ---------- GET /organizations/{org_id} ----------
@app.get("/organizations/{org_id}")
def get_organization(org_id: str, pm: Portfolio = Depends(get_portfolio), cfg=Depends(get_settings)):
    org = _lookup(pm, org_id)
    data = _describe(org, cfg.expiring_soon_days)
    data["actions"] = _actions(org)
    return data


# ---------- GET /organizations/{org_id}/actions ----------
@app.get("/organizations/{org_id}/actions")
def get_actions(org_id: str, pm: Portfolio = Depends(get_portfolio)):
    return _actions(_lookup(pm, org_id))


# ---------- POST /organizations/{org_id}/transitions ----------
@app.post("/organizations/{org_id}/transitions")
async def transition_organization(
    org_id: str,
    body: TransitionIn,
    pm: Portfolio = Depends(get_portfolio),
    coordinator: MutationCoordinator = Depends(get_coordinator),
):
    """
    Run one lifecycle action.

    * 200 – committed; body is the organization as confirmed by the backend
    * 409 – another change on this organization is still in flight
    * 422 – action not available from the current status, or expiry in the past
    * 428 – the action needs an agreement expiry (or ``noExpiry: true``)
    * 502 – the backend refused or failed; the local record was restored
    """
    org = _lookup(pm, org_id)
    expiry = body.agreementExpiry
    # while busy the stored status is the optimistic one; execute answers 409
    transition = None if coordinator.is_busy(org_id) else find_transition(org.status, body.action)
    if transition is not None:
        if transition.requires_expiry:
            try:
                expiry = validate_expiry_input(expiry)
            except InvalidExpiryInput as exc:
                raise HTTPException(status_code=422, detail=str(exc))
        else:
            expiry = None

    request = TransitionRequest(
        organization_id=org_id,
        action=body.action,
        agreement_expiry=expiry,
        expiry_decided=body.noExpiry,
        observation=body.observation,
        actor_id=body.adminId,
    )
    try:
        result = await coordinator.execute(request)
    except RemoteFailure as exc:
        logger.error("transition %s on %s failed: %s", body.action, org_id, exc)
        raise HTTPException(status_code=502, detail=exc.message)

    if isinstance(result, Committed):
        return result.organization.to_dict()
    if isinstance(result, AlreadyInProgress):
        raise HTTPException(status_code=409, detail=result.message)
    if isinstance(result, MissingRequiredInput):
        raise HTTPException(status_code=428, detail={"message": result.message, "required": result.field})
    raise HTTPException(status_code=422, detail=result.message)


# ---------- POST /organizations/sync ----------
@app.post("/organizations/sync")
async def sync_organizations(
    pm: Portfolio = Depends(get_portfolio),
    service: HttpStatusService = Depends(get_status_service),
):
    """Reload the portfolio and its counters from the backend."""
    try:
        loaded = await sync_portfolio(service, pm)
    except RemoteFailure as exc:
        logger.error("portfolio sync failed: %s", exc)
        raise HTTPException(status_code=502, detail=exc.message)
    return {"loaded": loaded, "stats": pm.stats}


# ---------- stats ----------
@app.get("/stats")
def stats_snapshot(pm: Portfolio = Depends(get_portfolio)):
    return pm.stats


@app.post("/stats/refresh")
async def refresh_stats(
    pm: Portfolio = Depends(get_portfolio),
    service: HttpStatusService = Depends(get_status_service),
):
    """Replace the local counters with the backend's numbers."""
    try:
        stats = await service.fetch_stats()
    except RemoteFailure as exc:
        logger.error("stats refresh failed: %s", exc)
        raise HTTPException(status_code=502, detail=exc.message)
    return pm.load_stats(stats)
