from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


class ReportType(str, Enum):
    lab_test = "lab_test"
    prescription = "prescription"
    xray = "xray"
    scan = "scan"
    ultrasound = "ultrasound"
    other = "other"


class HealthReport(SQLModel, table=True):
    __tablename__ = "health_reports"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    title: str
    report_type: ReportType = Field(index=True)
    report_date: datetime = Field(sa_type=DateTime)
    file_url: str  # e.g. "/uploads/reports/report-1700000000000-123456789.pdf"
    file_type: str
    file_size: int = 0
    extracted_text: str | None = None
    # Filled in by the analyze step; null while the report is only "uploaded"
    ai_summary: str | None = None
    ai_summary_urdu: str | None = None
    key_findings: dict | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
