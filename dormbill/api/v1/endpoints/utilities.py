"""
Room utility (meter reading) routes. Admin only.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from dormbill.api import deps
from dormbill.core.security import CurrentUser
from dormbill.schemas.billing import UtilityCreate, UtilityResponse, UtilityUpdate
from dormbill.schemas.common import SuccessResponse
from dormbill.services.billing import UtilityService

router = APIRouter(prefix="/utilities", tags=["Utilities"])


@router.post("", response_model=SuccessResponse[UtilityResponse], status_code=status.HTTP_201_CREATED)
def record_utility(
    payload: UtilityCreate,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: UtilityService = Depends(deps.get_utility_service),
):
    utility = service.record_utility(
        room_id=payload.room_id,
        month=payload.record_month,
        water=payload.water,
        electricity=payload.electricity,
        rates=payload.rates,
        tenant_id=payload.tenant_id,
        notes=payload.notes,
    )
    return SuccessResponse.create("Utility recorded successfully", UtilityResponse.model_validate(utility))


@router.get("", response_model=SuccessResponse[List[UtilityResponse]])
def list_utilities(
    room_id: Optional[str] = None,
    month: Optional[date] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: UtilityService = Depends(deps.get_utility_service),
):
    utilities = service.list_utilities(room_id=room_id, month=month, skip=skip, limit=limit)
    return SuccessResponse.create("OK", [UtilityResponse.model_validate(utility) for utility in utilities])


@router.get("/{utility_id}", response_model=SuccessResponse[UtilityResponse])
def get_utility(
    utility_id: str,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: UtilityService = Depends(deps.get_utility_service),
):
    return SuccessResponse.create("OK", UtilityResponse.model_validate(service.get_utility(utility_id)))


@router.put("/{utility_id}", response_model=SuccessResponse[UtilityResponse])
def update_utility(
    utility_id: str,
    payload: UtilityUpdate,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: UtilityService = Depends(deps.get_utility_service),
):
    utility = service.update_utility(utility_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse.create("Utility updated successfully", UtilityResponse.model_validate(utility))


@router.delete("/{utility_id}", response_model=SuccessResponse[UtilityResponse])
def delete_utility(
    utility_id: str,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    service: UtilityService = Depends(deps.get_utility_service),
):
    utility = service.delete_utility(utility_id)
    return SuccessResponse.create("Utility deleted successfully", UtilityResponse.model_validate(utility))
