from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from blooddb.database import get_db
from blooddb.errors import NotFoundOrUnauthorizedError, ValidationError
from blooddb.models.donor import Donor
from blooddb.routers.deps import get_current_identity
from blooddb.schemas.donor import DonorPayload
from blooddb.services.sessions import Identity
from blooddb.services.validation import DONOR_RULES, validate_fields

router = APIRouter(prefix="/api/donors", tags=["donors"])
public_router = APIRouter(tags=["search"])


def _donor_dict(donor: Donor, include_owner: bool = True) -> dict:
    data = {
        "donor_id": donor.donor_id,
        "name": donor.name,
        "age": donor.age,
        "gender": donor.gender,
        "blood_group": donor.blood_group,
        "city": donor.city,
        "phone": donor.phone,
        "created_at": donor.created_at.isoformat() if donor.created_at else None,
    }
    if include_owner:
        data["user_id"] = donor.user_id
    return data


def _validated(payload: DonorPayload) -> dict:
    values = payload.model_dump()
    values["name"] = values["name"].strip()
    values["city"] = values["city"].strip()
    values["phone"] = values["phone"].strip()
    violations = validate_fields(values, DONOR_RULES)
    if violations:
        raise ValidationError(violations)
    return values


def _owned_donor(db: Session, donor_id: int, identity: Identity) -> Donor:
    donor = db.query(Donor).filter(Donor.donor_id == donor_id, Donor.user_id == identity.user_id).first()
    if not donor:
        raise NotFoundOrUnauthorizedError("Donor not found")
    return donor


@router.post("", status_code=201)
def create_donor(
    payload: DonorPayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    donor = Donor(user_id=identity.user_id, **_validated(payload))
    db.add(donor)
    db.commit()
    db.refresh(donor)
    return {
        "statusCode": 201,
        "message": "Donor registered successfully!",
        "data": {"donor_id": donor.donor_id},
    }


@router.get("/my")
def my_donors(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    rows = (
        db.query(Donor)
        .filter(Donor.user_id == identity.user_id)
        .order_by(Donor.created_at.desc(), Donor.donor_id.desc())
        .all()
    )
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"count": len(rows), "donors": [_donor_dict(d) for d in rows]},
    }


@router.get("/{donor_id}")
def get_donor(donor_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    donor = _owned_donor(db, donor_id, identity)
    return {"statusCode": 200, "message": "Success", "data": _donor_dict(donor)}


@router.put("/{donor_id}")
def update_donor(
    donor_id: int,
    payload: DonorPayload,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    donor = _owned_donor(db, donor_id, identity)
    for field, value in _validated(payload).items():
        setattr(donor, field, value)
    db.commit()
    db.refresh(donor)
    return {"statusCode": 200, "message": "Donor updated successfully!", "data": _donor_dict(donor)}


@router.delete("/{donor_id}")
def delete_donor(donor_id: int, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    donor = _owned_donor(db, donor_id, identity)
    db.delete(donor)
    db.commit()
    return {"statusCode": 200, "message": "Donor deleted successfully!", "data": None}


@public_router.get("/search-donors")
def search_donors(
    blood_group: str | None = Query(default=None),
    city: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = db.query(Donor)
    if blood_group:
        query = query.filter(Donor.blood_group == blood_group)
    if city:
        query = query.filter(Donor.city.ilike(f"%{city.strip()}%"))
    rows = query.order_by(Donor.created_at.desc(), Donor.donor_id.desc()).all()
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"count": len(rows), "donors": [_donor_dict(d, include_owner=False) for d in rows]},
    }
