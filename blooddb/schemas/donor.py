from pydantic import BaseModel, Field


class DonorPayload(BaseModel):
    """Donor fields a user may set. Ownership always comes from the session."""
    name: str = Field(description="Donor full name")
    age: int = Field(description="Donor age in years")
    gender: str
    blood_group: str
    city: str
    phone: str


class BloodRequestPayload(BaseModel):
    """Blood request fields a user may set. Ownership always comes from the session."""
    name: str = Field(description="Patient or requester name")
    blood_group: str
    city: str
    reason: str
    phone: str
    status: str | None = Field(default=None, description="Pending, Fulfilled or Cancelled")
