from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


class EmergencyContact(BaseModel):
    name: str | None = None
    phone: str | None = None
    relationship: str | None = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str = ""
    date_of_birth: date | None = None
    blood_group: str | None = None
    allergies: list[str] = []
    chronic_conditions: list[str] = []
    emergency_contact: EmergencyContact | None = None

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters.")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Sparse patch: only the fields present in the request body are applied."""

    full_name: str | None = None
    date_of_birth: date | None = None
    blood_group: str | None = None
    allergies: list[str] | None = None
    chronic_conditions: list[str] | None = None
    emergency_contact: EmergencyContact | None = None
    gemini_api_key: str | None = None


class UserResponse(BaseModel):
    """Profile as returned to its owner. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    date_of_birth: date | None = None
    blood_group: str | None = None
    allergies: list[str] = []
    chronic_conditions: list[str] = []
    emergency_contact: EmergencyContact | None = None
    gemini_api_key: str | None = None


class AuthResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileResponse(BaseModel):
    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserResponse
