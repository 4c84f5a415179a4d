from datetime import date, datetime

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)  # case-sensitive as stored
    hashed_password: str
    full_name: str = ""
    date_of_birth: date | None = None
    blood_group: str | None = None
    allergies: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    chronic_conditions: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    emergency_contact: dict | None = Field(default=None, sa_column=Column(JSON))  # name / phone / relationship
    gemini_api_key: str | None = None  # user's own third-party key, returned to the owner only
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
