"""
Consultation Store - past triage consultations, scoped to their owner.

Consultations are immutable once written: list, get, create and delete only.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from petdoc.errors import NotFoundError
from petdoc.models import Consultation, Pet
from petdoc.schemas.consultation import ConsultationCreate

logger = logging.getLogger(__name__)


class ConsultationStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, user_id: int, pet_id: int | None = None) -> list[Consultation]:
        """Newest first."""
        query = select(Consultation).where(Consultation.user_id == user_id)
        if pet_id is not None:
            query = query.where(Consultation.pet_id == pet_id)
        query = query.order_by(Consultation.created_at.desc(), Consultation.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, user_id: int, consultation_id: int) -> Consultation:
        result = await self.db.execute(
            select(Consultation).where(
                Consultation.id == consultation_id,
                Consultation.user_id == user_id,
            )
        )
        consultation = result.scalar_one_or_none()
        if consultation is None:
            raise NotFoundError(f"consultation {consultation_id}")
        return consultation

    async def create(self, user_id: int, data: ConsultationCreate) -> Consultation:
        await get_owned_pet(self.db, user_id, data.pet_id)

        consultation = Consultation(
            user_id=user_id,
            pet_id=data.pet_id,
            main_symptom=data.main_symptom.value,
            duration=data.duration.value,
            severity=data.severity.value,
            additional_symptoms=[code.value for code in data.additional_symptoms],
            additional_notes=data.additional_notes,
            urgency_level=data.urgency_level,
            summary=data.summary,
            full_response=data.full_response,
        )
        self.db.add(consultation)
        await self.db.commit()
        await self.db.refresh(consultation)

        logger.info(
            "Consultation created",
            extra={"consultation_id": consultation.id, "pet_id": data.pet_id, "user_id": user_id},
        )
        return consultation

    async def delete(self, user_id: int, consultation_id: int) -> None:
        consultation = await self.get(user_id, consultation_id)
        await self.db.delete(consultation)
        await self.db.commit()
        logger.info("Consultation deleted", extra={"consultation_id": consultation_id, "user_id": user_id})


async def get_owned_pet(db: AsyncSession, user_id: int, pet_id: int) -> Pet:
    result = await db.execute(select(Pet).where(Pet.id == pet_id, Pet.user_id == user_id))
    pet = result.scalar_one_or_none()
    if pet is None:
        raise NotFoundError(f"pet {pet_id}")
    return pet
