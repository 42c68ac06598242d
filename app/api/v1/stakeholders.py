from typing import List
from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_current_principal, get_stakeholder_service
from app.services.stakeholder import StakeholderService
from app.models.stakeholder import StakeholderAuthorize, StakeholderRead, StakeholderStatus

router = APIRouter()


@router.get(
    "/",
    response_model=List[StakeholderRead],
    summary="List Stakeholders",
    description="Every currently authorized principal with its role, the admin included."
)
def list_stakeholders(
    service: StakeholderService = Depends(get_stakeholder_service)
):
    return service.list_stakeholders()


@router.post(
    "/",
    response_model=StakeholderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Authorize Stakeholder",
    description="Admin only. Grants a principal the right to register and advance products."
)
def authorize_stakeholder(
    payload: StakeholderAuthorize,
    caller: str = Depends(get_current_principal),
    service: StakeholderService = Depends(get_stakeholder_service)
):
    return service.authorize(caller, payload.principal, payload.role)


@router.get(
    "/{principal}",
    response_model=StakeholderStatus,
    summary="Check Authorization",
    description="Public lookup. Unknown principals are reported as not authorized."
)
def get_stakeholder_status(
    principal: str,
    service: StakeholderService = Depends(get_stakeholder_service)
):
    return service.get_status(principal)


@router.delete(
    "/{principal}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke Stakeholder",
    description="Admin only. The admin itself can never be revoked."
)
def revoke_stakeholder(
    principal: str,
    caller: str = Depends(get_current_principal),
    service: StakeholderService = Depends(get_stakeholder_service)
):
    service.revoke(caller, principal)
