from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: EmailStr
    mobileNumber: str = Field(..., min_length=1)
    address: Optional[str] = None


class UserUpdate(BaseModel):
    firstName: Optional[str] = Field(None, min_length=1)
    lastName: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    mobileNumber: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


# Wire name -> column name
USER_COLUMNS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "mobileNumber": "mobile_number",
    "address": "address",
}


class UserResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    email: str
    mobileNumber: str
    address: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            mobileNumber=user.mobile_number,
            address=user.address,
            createdAt=user.created_at,
            updatedAt=user.updated_at,
        )


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse
