from .auth import (
    AuthResponse,
    ProfileResponse,
    ProfileUpdateResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from .common import MessageResponse

__all__ = [
    "AuthResponse",
    "MessageResponse",
    "ProfileResponse",
    "ProfileUpdateResponse",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserUpdate",
]
