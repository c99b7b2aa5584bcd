import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import schemas, crud
from ..core import security
from ..core.config import Settings
from ..core.dependencies import get_settings, get_mailer
from ..database import get_db
from ..utils import Mailer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=schemas.Message)
def register_user(
        user_in: schemas.UserCreate,
        db: Session = Depends(get_db),
        mailer: Mailer = Depends(get_mailer)
):
    if crud.get_user_by_email(db, email=user_in.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    verify_token = security.issue_opaque_token()
    try:
        new_user = crud.signup(db, user=user_in, verify_token=verify_token)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")
    logger.info("Registered user %s", new_user.id)

    mailer.send_verification_email(new_user.email, new_user.name, verify_token)
    return {"message": "Account created successfully! Please check your email to verify your account."}


@router.get("/verify-email", response_model=schemas.Message)
def verify_email(token: str = "", db: Session = Depends(get_db)):
    # An empty token would match every verified user (verify_token IS NULL).
    if not token or not crud.consume_verify_token(db, token):
        raise HTTPException(status_code=400, detail="Invalid token")

    logger.info("Email verified")
    return {"message": "Email verified successfully! You can now log in."}


@router.post("/login", response_model=schemas.Token)
def login_for_access_token(
        data: schemas.Login,
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings)
):
    user = crud.get_user_by_email(db, email=data.email)
    if not user:
        raise HTTPException(status_code=400, detail="User not found")

    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before logging in."
        )

    if not security.verify_password(data.password, user.password):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    logger.info("Login: user %s", user.id)
    return {"token": security.issue_session_token(user.id, settings)}


@router.post("/forgot-password", response_model=schemas.Message)
def forgot_password(
        data: schemas.ForgotPassword,
        db: Session = Depends(get_db),
        mailer: Mailer = Depends(get_mailer)
):
    user = crud.get_user_by_email(db, email=data.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    reset_token = security.issue_opaque_token()
    expires_at = security.utcnow() + security.RESET_TOKEN_LIFETIME
    crud.set_reset_token(db, user, reset_token, expires_at)
    logger.info("Password reset requested for user %s", user.id)

    mailer.send_password_reset_email(user.email, reset_token)
    return {"message": "Password reset email sent"}


@router.post("/reset-password", response_model=schemas.Message)
def reset_password(data: schemas.ResetPassword, db: Session = Depends(get_db)):
    invalid = HTTPException(status_code=400, detail="Invalid or expired token")
    if not data.token:
        raise invalid

    user = crud.get_user_by_reset_token(db, data.token, now=security.utcnow())
    if not user:
        raise invalid

    password_hash = security.get_password_hash(data.new_password)
    if not crud.consume_reset_token(db, user.id, data.token, password_hash, now=security.utcnow()):
        raise invalid

    logger.info("Password reset for user %s", user.id)
    return {"message": "Password reset successful"}
