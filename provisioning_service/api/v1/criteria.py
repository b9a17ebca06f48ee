"""/v1/provisioningcriteria - provisioning criteria endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from provisioning_service.api.dependencies import get_criteria_service
from provisioning_service.api.v1.schemas import CommandResultResponse, CriteriaResponse
from provisioning_service.services.criteria_service import CriteriaService
from provisioning_service.services.payloads import CriteriaCreatePayload, CriteriaUpdatePayload

router = APIRouter()


@router.post("/provisioningcriteria", response_model=CommandResultResponse)
def create_criteria(
    payload: CriteriaCreatePayload,
    service: CriteriaService = Depends(get_criteria_service),
):
    """Create a criteria with its age bands and loan products"""
    result = service.create(payload.model_dump(exclude_unset=True))
    return CommandResultResponse.from_result(result)


@router.get("/provisioningcriteria", response_model=List[CriteriaResponse])
def list_criteria(service: CriteriaService = Depends(get_criteria_service)):
    return [CriteriaResponse.from_domain(c) for c in service.retrieve_all()]


@router.get("/provisioningcriteria/{criteria_id}", response_model=CriteriaResponse)
def get_criteria(criteria_id: int, service: CriteriaService = Depends(get_criteria_service)):
    return CriteriaResponse.from_domain(service.retrieve(criteria_id))


@router.put("/provisioningcriteria/{criteria_id}", response_model=CommandResultResponse)
def update_criteria(
    criteria_id: int,
    payload: CriteriaUpdatePayload,
    service: CriteriaService = Depends(get_criteria_service),
):
    """
    Update name, products and/or age bands.

    Only fields present in the body are compared; the response lists what changed.
    """
    result = service.update(criteria_id, payload.model_dump(exclude_unset=True))
    return CommandResultResponse.from_result(result)


@router.delete("/provisioningcriteria/{criteria_id}", response_model=CommandResultResponse)
def delete_criteria(criteria_id: int, service: CriteriaService = Depends(get_criteria_service)):
    """Delete a criteria that no provisioning entry references"""
    result = service.delete(criteria_id)
    return CommandResultResponse.from_result(result)
