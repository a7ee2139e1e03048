from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from ..authorization import TOKEN_COOKIE
from ..config import Settings
from ..dependencies import get_current_user, get_db, get_settings
from ..models.models import Role, User
from ..schemas.user import UserCreate, UserLogin, UserRecord, Token
from ..utils.security import (
    get_password_hash,
    verify_password,
    create_access_token,
)

router = APIRouter(prefix="", tags=["Authentication"])


def role_for(email: str, settings: Settings) -> str:
    allowed = {e.strip().lower() for e in settings.evaluator_emails}
    return Role.EVALUATOR if email.strip().lower() in allowed else Role.DEVELOPER


@router.post("/register", response_model=UserRecord, status_code=201)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Register a new account, evaluators come from the configured allowlist"""
    if db.query(User).filter(User.email == user.email).first():
        raise HTTPException(
            status_code=400, detail="Email already registered"
        )

    db_user = User(
        email=user.email,
        full_name=user.full_name,
        password_hash=get_password_hash(user.password),
        role=role_for(user.email, settings),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    return db_user


@router.post("/login", response_model=Token)
def login(
    user_credentials: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Authenticate user and return access token, also set as a cookie for page navigation"""
    user = db.query(User).filter(User.email == user_credentials.email).first()

    if not user or not verify_password(
        user_credentials.password, user.password_hash
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    access_token = create_access_token(data={"sub": user.id}, settings=settings)

    response = JSONResponse(
        {"access_token": access_token, "token_type": "bearer"}
    )
    response.set_cookie(
        TOKEN_COOKIE,
        access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return response


@router.get("/me", response_model=UserRecord)
def me(current_user: UserRecord = Depends(get_current_user)):
    return current_user
