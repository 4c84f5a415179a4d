import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from healthmate.api.deps import apply_patch, get_current_user, sparse_patch
from healthmate.core.database import get_db
from healthmate.core.security import create_access_token, hash_password, verify_password
from healthmate.models import User
from healthmate.schemas import (
    AuthResponse,
    ProfileResponse,
    ProfileUpdateResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])
log = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    if db.exec(select(User).where(User.email == body.email)).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")
    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name.strip(),
        date_of_birth=body.date_of_birth,
        blood_group=body.blood_group,
        allergies=body.allergies,
        chronic_conditions=body.chronic_conditions,
        emergency_contact=body.emergency_contact.model_dump() if body.emergency_contact else None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.rollback()
        raise HTTPException(status_code=400, detail="User already exists with this email")
    db.refresh(user)
    log.info("User registered: id=%s", user.id)
    return AuthResponse(
        message="User created successfully",
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    user = db.exec(select(User).where(User.email == body.email)).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: User = Depends(get_current_user)):
    return ProfileResponse(user=UserResponse.model_validate(user))


@router.put("/profile", response_model=ProfileUpdateResponse)
def update_profile(
    body: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Profile update; only the fields present in the body change."""
    patch = sparse_patch(body, non_nullable=("full_name", "allergies", "chronic_conditions"))
    if "full_name" in patch:
        patch["full_name"] = patch["full_name"].strip() or user.full_name
    apply_patch(user, patch)
    db.add(user)
    db.commit()
    db.refresh(user)
    return ProfileUpdateResponse(message="Profile updated successfully", user=UserResponse.model_validate(user))
