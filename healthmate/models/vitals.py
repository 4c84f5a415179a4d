from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Vitals(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    vital_date: datetime = Field(index=True, sa_type=DateTime)
    # Every metric is independently optional
    blood_pressure_systolic: int | None = None
    blood_pressure_diastolic: int | None = None
    blood_sugar: float | None = None
    weight: float | None = None
    temperature: float | None = None
    heart_rate: int | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
