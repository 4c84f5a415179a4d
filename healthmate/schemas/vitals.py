from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from healthmate.schemas.common import naive_utc


class VitalsCreate(BaseModel):
    vital_date: datetime
    blood_pressure_systolic: int | None = Field(default=None, ge=0, le=300)
    blood_pressure_diastolic: int | None = Field(default=None, ge=0, le=300)
    blood_sugar: float | None = Field(default=None, ge=0, le=1000)
    weight: float | None = Field(default=None, ge=0, le=1000)
    temperature: float | None = Field(default=None, ge=30, le=45)
    heart_rate: int | None = Field(default=None, ge=30, le=300)
    notes: str | None = None

    @field_validator("vital_date")
    @classmethod
    def vital_date_utc(cls, v: datetime | None) -> datetime | None:
        return naive_utc(v)


class VitalsUpdate(BaseModel):
    """Sparse patch; an explicit null clears that metric."""

    vital_date: datetime | None = None
    blood_pressure_systolic: int | None = Field(default=None, ge=0, le=300)
    blood_pressure_diastolic: int | None = Field(default=None, ge=0, le=300)
    blood_sugar: float | None = Field(default=None, ge=0, le=1000)
    weight: float | None = Field(default=None, ge=0, le=1000)
    temperature: float | None = Field(default=None, ge=30, le=45)
    heart_rate: int | None = Field(default=None, ge=30, le=300)
    notes: str | None = None

    @field_validator("vital_date")
    @classmethod
    def vital_date_utc(cls, v: datetime | None) -> datetime | None:
        return naive_utc(v)


class VitalsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vital_date: datetime
    blood_pressure_systolic: int | None = None
    blood_pressure_diastolic: int | None = None
    blood_sugar: float | None = None
    weight: float | None = None
    temperature: float | None = None
    heart_rate: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class VitalsCreateResponse(BaseModel):
    message: str
    vitals: VitalsOut


class VitalResponse(BaseModel):
    vital: VitalsOut


class VitalUpdateResponse(BaseModel):
    message: str
    vital: VitalsOut


class VitalsListResponse(BaseModel):
    vitals: list[VitalsOut]
    total: int
    total_pages: int
    current_page: int


class BloodPressureAverage(BaseModel):
    systolic: int = 0
    diastolic: int = 0


class BloodPressurePoint(BaseModel):
    date: datetime
    systolic: int
    diastolic: int | None = None


class TrendPoint(BaseModel):
    date: datetime
    value: float


class VitalsTrends(BaseModel):
    blood_pressure: list[BloodPressurePoint] = []
    blood_sugar: list[TrendPoint] = []
    weight: list[TrendPoint] = []
    temperature: list[TrendPoint] = []
    heart_rate: list[TrendPoint] = []


class VitalsStats(BaseModel):
    total_records: int = 0
    average_blood_pressure: BloodPressureAverage = Field(default_factory=BloodPressureAverage)
    average_blood_sugar: int = 0
    average_weight: int = 0
    average_temperature: float = 0
    average_heart_rate: int = 0
    trends: VitalsTrends = Field(default_factory=VitalsTrends)


class VitalsStatsResponse(BaseModel):
    stats: VitalsStats
