from fastapi import APIRouter, status
from sqlalchemy import select

from petdoc.api.deps import CurrentUser, DbSession
from petdoc.models import Pet
from petdoc.schemas.pet import PetCreate, PetResponse
from petdoc.services.consultations import get_owned_pet

router = APIRouter()


@router.post("", response_model=PetResponse, status_code=status.HTTP_201_CREATED)
async def create_pet(
    pet_in: PetCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Pet:
    pet = Pet(
        user_id=current_user.id,
        name=pet_in.name,
        species=pet_in.species.value,
        birthdate=pet_in.birthdate,
        weight=pet_in.weight,
    )
    db.add(pet)
    await db.commit()
    await db.refresh(pet)
    return pet


@router.get("", response_model=list[PetResponse])
async def list_pets(
    current_user: CurrentUser,
    db: DbSession,
) -> list[Pet]:
    result = await db.execute(
        select(Pet).where(Pet.user_id == current_user.id).order_by(Pet.created_at)
    )
    return list(result.scalars().all())


@router.get("/{pet_id}", response_model=PetResponse)
async def get_pet(
    pet_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> Pet:
    return await get_owned_pet(db, current_user.id, pet_id)
