from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from blooddb.database import get_db
from blooddb.errors import NotFoundOrUnauthorizedError, ValidationError
from blooddb.models.blood_request import BloodRequest
from blooddb.routers.deps import get_current_identity
from blooddb.schemas.donor import BloodRequestPayload
from blooddb.services.sessions import Identity
from blooddb.services.validation import BLOOD_REQUEST_RULES, validate_fields

router = APIRouter(prefix="/api/requests", tags=["requests"])
public_router = APIRouter(tags=["requests"])


def _request_dict(blood_request: BloodRequest, include_owner: bool = True) -> dict:
    data = {
        "req_id": blood_request.req_id,
        "name": blood_request.name,
        "blood_group": blood_request.blood_group,
        "city": blood_request.city,
        "reason": blood_request.reason,
        "phone": blood_request.phone,
        "status": blood_request.status,
        "created_at": blood_request.created_at.isoformat() if blood_request.created_at else None,
    }
    if include_owner:
        data["user_id"] = blood_request.user_id
    return data


def _validated(payload: BloodRequestPayload) -> dict:
    values = {k: v.strip() if isinstance(v, str) else v for k, v in payload.model_dump().items()}
    violations = validate_fields(values, BLOOD_REQUEST_RULES)
    if violations:
        raise ValidationError(violations)
    if not values.get("status"):
        values.pop("status", None)
    return values


def _owned_request(db: Session, req_id: int, identity: Identity) -> BloodRequest:
    blood_request = (
        db.query(BloodRequest)
        .filter(BloodRequest.req_id == req_id, BloodRequest.user_id == identity.user_id)
        .first()
    )
    if not blood_request:
        raise NotFoundOrUnauthorizedError("Request not found")
    return blood_request


@router.post("", status_code=201)
def create_request(
    payload: BloodRequestPayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    blood_request = BloodRequest(user_id=identity.user_id, **_validated(payload))
    db.add(blood_request)
    db.commit()
    db.refresh(blood_request)
    return {
        "statusCode": 201,
        "message": "Blood request submitted successfully!",
        "data": {"req_id": blood_request.req_id},
    }


@router.get("/my")
def my_requests(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    rows = (
        db.query(BloodRequest)
        .filter(BloodRequest.user_id == identity.user_id)
        .order_by(BloodRequest.req_id.desc())
        .all()
    )
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"count": len(rows), "requests": [_request_dict(r) for r in rows]},
    }


@router.get("/{req_id}")
def get_request(req_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    blood_request = _owned_request(db, req_id, identity)
    return {"statusCode": 200, "message": "Success", "data": _request_dict(blood_request)}


@router.put("/{req_id}")
def update_request(
    req_id: int,
    payload: BloodRequestPayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    blood_request = _owned_request(db, req_id, identity)
    for field, value in _validated(payload).items():
        setattr(blood_request, field, value)
    db.commit()
    db.refresh(blood_request)
    return {"statusCode": 200, "message": "Request updated successfully!", "data": _request_dict(blood_request)}


@router.delete("/{req_id}")
def delete_request(req_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    blood_request = _owned_request(db, req_id, identity)
    db.delete(blood_request)
    db.commit()
    return {"statusCode": 200, "message": "Request deleted successfully!", "data": None}


@public_router.get("/get-requests")
def all_requests(db: Session = Depends(get_db)):
    rows = db.query(BloodRequest).order_by(BloodRequest.req_id.desc()).all()
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"count": len(rows), "requests": [_request_dict(r, include_owner=False) for r in rows]},
    }
