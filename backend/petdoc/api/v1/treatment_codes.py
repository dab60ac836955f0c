from fastapi import APIRouter, Query

from petdoc.api.deps import RequestLanguage
from petdoc.schemas.triage import TreatmentCodeListResponse, TreatmentCodeResponse
from petdoc.services.treatment_codes import search_treatment_codes
from petdoc.services.triage_config import get_triage_config

router = APIRouter()


@router.get("", response_model=TreatmentCodeListResponse)
async def list_treatment_codes(
    language: RequestLanguage,
    q: str | None = Query(None, description="Search code, name or category"),
) -> TreatmentCodeListResponse:
    """The closed treatment vocabulary with localized names and cost bands."""
    codes = search_treatment_codes(get_triage_config().treatment_codes, q)
    return TreatmentCodeListResponse(
        codes=[TreatmentCodeResponse(**item.to_display(language)) for item in codes],
        total=len(codes),
    )
