"""
Authentication API endpoints.

Role-tagged signup and login issuing bearer tokens.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field, EmailStr
from sqlalchemy.orm import Session

from venturematch.core.database import get_db
from venturematch.users.auth import AuthService
from venturematch.api.v1.deps import get_current_user, require_anon_key

router = APIRouter(prefix="/auth", tags=["auth"])


# Request/Response Models


class SignupRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="Password (min 8 characters)")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: str = Field(..., description="founder or investor")


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


# Endpoints


@router.post("/signup", dependencies=[Depends(require_anon_key)])
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """Register a founder or investor account."""
    try:
        return AuthService(db).signup(
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/login", dependencies=[Depends(require_anon_key)])
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Login and receive access token plus the role's landing page."""
    try:
        return AuthService(db).login(email=request.email, password=request.password)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/me")
def get_current_user_profile(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get current user's profile."""
    user = AuthService(db).get_user(current_user["user_id"])
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
