"""Auto-recycle control endpoints."""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_service
from api.models import RecycleResponse, ToggleResponse
from api.routes.status import recycle_response
from service import TreasuryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recycle"])


@router.post("/toggle-auto-recycle", response_model=ToggleResponse)
async def toggle_auto_recycle(service: TreasuryService = Depends(get_service)):
    """Flip the auto-recycle feature flag."""
    return ToggleResponse(autoRecycleEnabled=service.recycler.toggle())


@router.post("/recycle-now", response_model=RecycleResponse)
async def recycle_now(service: TreasuryService = Depends(get_service)):
    """Evaluate auto-recycle immediately."""
    outcome = await service.recycle()
    return recycle_response(outcome, service.recycler.enabled)
