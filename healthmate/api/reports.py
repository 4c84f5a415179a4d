import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from healthmate.api.deps import Pagination, apply_patch, get_current_user, get_pagination, sparse_patch
from healthmate.core.config import settings
from healthmate.core.database import get_db
from healthmate.models import HealthReport, ReportType, User
from healthmate.schemas import MessageResponse
from healthmate.schemas.common import naive_utc, total_pages
from healthmate.schemas.report import (
    ReportListItem,
    ReportListResponse,
    ReportOut,
    ReportResponse,
    ReportSavedResponse,
    ReportUpdate,
)
from healthmate.services.pdf_extract import extract_text_from_pdf
from healthmate.services.storage import ALLOWED_REPORT_TYPES, delete_report_file, path_for_url, save_report_file

router = APIRouter(prefix="/api/reports", tags=["reports"])
log = logging.getLogger(__name__)

BLANK_TITLE = "Report title cannot be empty"


def get_owned_report(db: Session, report_id: int, user_id: int) -> HealthReport:
    stmt = select(HealthReport).where(HealthReport.id == report_id, HealthReport.user_id == user_id)
    report = db.exec(stmt).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.post("/upload", response_model=ReportSavedResponse, status_code=status.HTTP_201_CREATED)
async def upload_report(
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1),
    report_type: ReportType = Form(...),
    report_date: datetime = Form(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Multipart upload: 'file' (PDF/JPEG/PNG, max 10 MB), 'title', 'report_type', 'report_date'."""
    title = title.strip()
    if not title:
        raise HTTPException(status_code=400, detail=BLANK_TITLE)
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_REPORT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Invalid file type. Only PDF and image files are allowed.",
        )
    content = await file.read()
    if len(content) > settings.upload_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.upload_max_mb}MB.",
        )
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    extracted_text = None
    if content_type == "application/pdf":
        extracted_text = extract_text_from_pdf(content)
        if extracted_text is None:
            log.info("report upload: no text extracted from %s", file.filename)

    file_url = save_report_file(content, content_type)
    report = HealthReport(
        user_id=user.id,
        title=title,
        report_type=report_type,
        report_date=naive_utc(report_date),
        file_url=file_url,
        file_type=content_type,
        file_size=len(content),
        extracted_text=extracted_text,
    )
    db.add(report)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        delete_report_file(file_url)
        raise
    db.refresh(report)
    log.info("report upload: id=%s user=%s size=%s type=%s", report.id, user.id, len(content), content_type)
    return ReportSavedResponse(message="Report uploaded successfully", report=ReportOut.model_validate(report))


@router.get("", response_model=ReportListResponse)
def list_reports(
    report_type: ReportType | None = None,
    paging: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    conditions = [HealthReport.user_id == user.id]
    if report_type is not None:
        conditions.append(HealthReport.report_type == report_type)
    stmt = (
        select(HealthReport)
        .where(*conditions)
        .order_by(HealthReport.created_at.desc(), HealthReport.id.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    )
    reports = list(db.exec(stmt).all())
    total = db.exec(select(func.count()).select_from(HealthReport).where(*conditions)).one()
    return ReportListResponse(
        reports=[ReportListItem.model_validate(r) for r in reports],
        total=total,
        total_pages=total_pages(total, paging.limit),
        current_page=paging.page,
    )


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReportResponse(report=ReportOut.model_validate(get_owned_report(db, report_id, user.id)))


@router.put("/{report_id}", response_model=ReportSavedResponse)
def update_report(
    body: ReportUpdate,
    report_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    patch = sparse_patch(body, non_nullable=("title", "report_type", "report_date"))
    if "title" in patch:
        patch["title"] = patch["title"].strip()
        if not patch["title"]:
            raise HTTPException(status_code=400, detail=BLANK_TITLE)
    report = get_owned_report(db, report_id, user.id)
    apply_patch(report, patch)
    db.add(report)
    db.commit()
    db.refresh(report)
    return ReportSavedResponse(message="Report updated successfully", report=ReportOut.model_validate(report))


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(
    report_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    report = get_owned_report(db, report_id, user.id)
    file_url = report.file_url
    db.delete(report)
    db.commit()
    if file_url:
        delete_report_file(file_url)
    return MessageResponse(message="Report deleted successfully")


@router.get("/{report_id}/file")
def download_report_file(
    report_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Streams the stored upload back to its owner."""
    report = get_owned_report(db, report_id, user.id)
    path = path_for_url(report.file_url)
    if path is None or not path.is_file():
        log.warning("report %s: stored file missing (%s)", report.id, report.file_url)
        raise HTTPException(status_code=404, detail="Report file not found")
    return FileResponse(path, media_type=report.file_type, filename=path.name)
