from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlmodel import Session, func, select

from healthmate.api.deps import Pagination, apply_patch, get_current_user, get_pagination, sparse_patch
from healthmate.core.database import get_db
from healthmate.models import User, Vitals
from healthmate.schemas import MessageResponse
from healthmate.schemas.common import naive_utc, total_pages
from healthmate.schemas.vitals import (
    VitalResponse,
    VitalsCreate,
    VitalsCreateResponse,
    VitalsListResponse,
    VitalsOut,
    VitalsStatsResponse,
    VitalsUpdate,
    VitalUpdateResponse,
)
from healthmate.services.vitals_stats import DEFAULT_WINDOW_DAYS, compute_vitals_stats, load_window

router = APIRouter(prefix="/api/vitals", tags=["vitals"])

MAX_WINDOW_DAYS = 3650


def _get_owned_vital(db: Session, vital_id: int, user_id: int) -> Vitals:
    stmt = select(Vitals).where(Vitals.id == vital_id, Vitals.user_id == user_id)
    vital = db.exec(stmt).first()
    if not vital:
        raise HTTPException(status_code=404, detail="Vital record not found")
    return vital


@router.post("", response_model=VitalsCreateResponse, status_code=status.HTTP_201_CREATED)
def add_vitals(
    body: VitalsCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    vitals = Vitals(user_id=user.id, **body.model_dump())
    db.add(vitals)
    db.commit()
    db.refresh(vitals)
    return VitalsCreateResponse(message="Vitals added successfully", vitals=VitalsOut.model_validate(vitals))


@router.get("", response_model=VitalsListResponse)
def list_vitals(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    paging: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    conditions = [Vitals.user_id == user.id]
    if start_date is not None:
        conditions.append(Vitals.vital_date >= naive_utc(start_date))
    if end_date is not None:
        conditions.append(Vitals.vital_date <= naive_utc(end_date))
    stmt = (
        select(Vitals)
        .where(*conditions)
        .order_by(Vitals.vital_date.desc(), Vitals.id.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    )
    rows = list(db.exec(stmt).all())
    total = db.exec(select(func.count()).select_from(Vitals).where(*conditions)).one()
    return VitalsListResponse(
        vitals=[VitalsOut.model_validate(v) for v in rows],
        total=total,
        total_pages=total_pages(total, paging.limit),
        current_page=paging.page,
    )


# Declared before /{vital_id} so "stats" is not taken for an id
@router.get("/stats", response_model=VitalsStatsResponse)
def vitals_stats(
    days: int = Query(DEFAULT_WINDOW_DAYS, ge=1, le=MAX_WINDOW_DAYS),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Averages and trends over the last `days` days (default 30)."""
    return VitalsStatsResponse(stats=compute_vitals_stats(load_window(db, user.id, days)))


@router.get("/{vital_id}", response_model=VitalResponse)
def get_vital(
    vital_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return VitalResponse(vital=VitalsOut.model_validate(_get_owned_vital(db, vital_id, user.id)))


@router.put("/{vital_id}", response_model=VitalUpdateResponse)
def update_vital(
    body: VitalsUpdate,
    vital_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    patch = sparse_patch(body, non_nullable=("vital_date",))
    vital = _get_owned_vital(db, vital_id, user.id)
    apply_patch(vital, patch)
    db.add(vital)
    db.commit()
    db.refresh(vital)
    return VitalUpdateResponse(message="Vitals updated successfully", vital=VitalsOut.model_validate(vital))


@router.delete("/{vital_id}", response_model=MessageResponse)
def delete_vital(
    vital_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    vital = _get_owned_vital(db, vital_id, user.id)
    db.delete(vital)
    db.commit()
    return MessageResponse(message="Vitals deleted successfully")
