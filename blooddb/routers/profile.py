from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from blooddb.database import get_db
from blooddb.errors import ConflictError, NotFoundOrUnauthorizedError, ValidationError
from blooddb.models.blood_request import BloodRequest
from blooddb.models.donor import Donor
from blooddb.routers.deps import get_credential_store, get_current_identity
from blooddb.schemas.user import ProfileUpdateRequest
from blooddb.services.auth import to_user_response
from blooddb.services.credentials import CredentialStore
from blooddb.services.sessions import Identity
from blooddb.services.validation import PROFILE_RULES, validate_fields

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("")
def get_profile(
    db: Session = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
    identity: Identity = Depends(get_current_identity),
):
    user = store.get_by_id(identity.user_id)
    if not user:
        raise NotFoundOrUnauthorizedError("User not found")

    donors = db.query(func.count(Donor.donor_id)).filter(Donor.user_id == user.user_id).scalar() or 0
    requests = db.query(func.count(BloodRequest.req_id)).filter(BloodRequest.user_id == user.user_id).scalar() or 0
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {
            "user": to_user_response(user).model_dump(mode="json"),
            "stats": {"donors": donors, "requests": requests},
        },
    }


@router.put("")
def update_profile(
    payload: ProfileUpdateRequest,
    store: CredentialStore = Depends(get_credential_store),
    identity: Identity = Depends(get_current_identity),
):
    values = {k: v.strip() for k, v in payload.model_dump().items()}
    violations = validate_fields(values, PROFILE_RULES)
    if violations:
        raise ValidationError(violations)

    user = store.get_by_id(identity.user_id)
    if not user:
        raise NotFoundOrUnauthorizedError("User not found")
    if store.email_taken_by_other(values["email"], user.user_id):
        raise ConflictError("Email already in use")

    user = store.update_profile(user, full_name=values["full_name"], email=values["email"], phone=values["phone"])
    return {
        "statusCode": 200,
        "message": "Profile updated successfully!",
        "data": to_user_response(user).model_dump(mode="json"),
    }
