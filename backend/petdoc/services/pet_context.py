"""Selected-pet context passed along with every triage call."""
from dataclasses import dataclass
from datetime import date

from petdoc.schemas.chat import PetInfo
from petdoc.schemas.enums import Language, Species
from petdoc.services.labels import SPECIES_LABELS, label_for


def age_bucket(birthdate: date | None, today: date, language: Language) -> str | None:
    """Whole years ("3 years" / "3岁"), or whole months under a year."""
    if birthdate is None:
        return None

    months = (today.year - birthdate.year) * 12 + (today.month - birthdate.month)
    if today.day < birthdate.day:
        months -= 1
    months = max(months, 0)

    years = months // 12
    if years > 0:
        return f"{years}岁" if language == Language.ZH else f"{years} years"
    return f"{months}个月" if language == Language.ZH else f"{months} months"


@dataclass
class PetContext:
    pet_id: int
    name: str
    species: Species
    birthdate: date | None = None
    weight: float | None = None

    @classmethod
    def from_model(cls, pet) -> "PetContext":
        return cls(
            pet_id=pet.id,
            name=pet.name,
            species=Species(pet.species),
            birthdate=pet.birthdate,
            weight=pet.weight,
        )

    def to_pet_info(self, language: Language, today: date) -> PetInfo:
        return PetInfo(
            name=self.name,
            species=label_for(SPECIES_LABELS, self.species, language),
            age=age_bucket(self.birthdate, today, language),
            weight=self.weight,
        )
