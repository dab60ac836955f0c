from fastapi import APIRouter, Query, Response, status

from petdoc.api.deps import ConsultationStoreDep, CurrentUser
from petdoc.models import Consultation
from petdoc.schemas.consultation import (
    ConsultationCreate,
    ConsultationListResponse,
    ConsultationResponse,
)

router = APIRouter()


@router.get("", response_model=ConsultationListResponse)
async def list_consultations(
    current_user: CurrentUser,
    store: ConsultationStoreDep,
    pet_id: int | None = Query(None, description="Only consultations for this pet"),
) -> ConsultationListResponse:
    """Past consultations, newest first."""
    consultations = await store.list(current_user.id, pet_id)
    return ConsultationListResponse(
        consultations=[ConsultationResponse.model_validate(c) for c in consultations],
        total=len(consultations),
    )


@router.post("", response_model=ConsultationResponse, status_code=status.HTTP_201_CREATED)
async def create_consultation(
    consultation_in: ConsultationCreate,
    current_user: CurrentUser,
    store: ConsultationStoreDep,
) -> Consultation:
    return await store.create(current_user.id, consultation_in)


@router.get("/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(
    consultation_id: int,
    current_user: CurrentUser,
    store: ConsultationStoreDep,
) -> Consultation:
    return await store.get(current_user.id, consultation_id)


@router.delete("/{consultation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_consultation(
    consultation_id: int,
    current_user: CurrentUser,
    store: ConsultationStoreDep,
) -> Response:
    """Permanent; confirmation is the client's job."""
    await store.delete(current_user.id, consultation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
