from fastapi import APIRouter

from petdoc.api.v1 import (
    users,
    pets,
    consultations,
    recovery,
    triage,
    ai_vet,
    treatment_codes,
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(pets.router, prefix="/pets", tags=["pets"])
api_router.include_router(consultations.router, prefix="/consultations", tags=["consultations"])
api_router.include_router(recovery.router, prefix="/recovery", tags=["recovery"])
api_router.include_router(triage.router, prefix="/triage", tags=["triage"])
api_router.include_router(ai_vet.router, tags=["ai-vet"])
api_router.include_router(treatment_codes.router, prefix="/treatment-codes", tags=["treatment-codes"])
