from blooddb.models.blood_request import BloodRequest
from blooddb.models.donor import Donor
from blooddb.models.user import User, UserSession

__all__ = [
    "User",
    "UserSession",
    "Donor",
    "BloodRequest",
]
