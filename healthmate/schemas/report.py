from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from healthmate.models import ReportType
from healthmate.schemas.common import naive_utc


class ReportListItem(BaseModel):
    """List view: everything except the (potentially large) extracted text."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    report_type: ReportType
    report_date: datetime
    file_url: str
    file_type: str
    file_size: int
    ai_summary: str | None = None
    ai_summary_urdu: str | None = None
    key_findings: dict | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def download_url(self) -> str:
        """Owner-only download route; the stored file is never served publicly."""
        return f"/api/reports/{self.id}/file"


class ReportOut(ReportListItem):
    extracted_text: str | None = None


class ReportUpdate(BaseModel):
    title: str | None = None
    report_type: ReportType | None = None
    report_date: datetime | None = None

    @field_validator("report_date")
    @classmethod
    def report_date_utc(cls, v: datetime | None) -> datetime | None:
        return naive_utc(v)


class ReportResponse(BaseModel):
    report: ReportOut


class ReportSavedResponse(BaseModel):
    message: str
    report: ReportOut


class ReportListResponse(BaseModel):
    reports: list[ReportListItem]
    total: int
    total_pages: int
    current_page: int


class ReportAnalysis(BaseModel):
    """Structured contract the language model must answer with."""

    summary: str
    summary_second_language: str = ""
    key_findings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class AnalysisOut(BaseModel):
    summary: str
    summary_urdu: str | None = None
    key_findings: dict


class AnalyzeReportResponse(BaseModel):
    message: str
    analysis: AnalysisOut
