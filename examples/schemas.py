from pydantic import BaseModel
from typing import Optional
import datetime
from enum import Enum


class StatusEnum(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# -------------------
# Address Schemas
# -------------------

class AddressResponse(BaseModel):
    id: int
    description: str

    class Config:
        from_attributes = True


# -------------------
# Person Schemas
# -------------------

class PersonResponse(BaseModel):
    id: int
    full_name: str
    email: str
    age: Optional[int] = None
    status: StatusEnum
    created_at: datetime.datetime
    address: Optional[AddressResponse]

    class Config:
        from_attributes = True
