# SQLAlchemy Models
from petdoc.models.user import User
from petdoc.models.pet import Pet
from petdoc.models.consultation import Consultation
from petdoc.models.recovery_plan import RecoveryPlan
from petdoc.models.recovery_checkin import RecoveryCheckin

__all__ = [
    "User",
    "Pet",
    "Consultation",
    "RecoveryPlan",
    "RecoveryCheckin",
]
