# app/crud.py
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from . import models, schemas
from .core.security import get_password_hash


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def signup(db: Session, user: schemas.UserCreate, verify_token: str):
    password = get_password_hash(user.password)
    db_user = models.User(
        name=user.name,
        email=user.email,
        password=password,
        is_verified=False,
        verify_token=verify_token,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def consume_verify_token(db: Session, token: str) -> bool:
    """Mark the owner of ``token`` verified; False if no unverified user holds it."""
    updated = (
        db.query(models.User)
        .filter(models.User.verify_token == token)
        .update({"is_verified": True, "verify_token": None}, synchronize_session=False)
    )
    db.commit()
    return updated == 1


def set_reset_token(db: Session, user: models.User, token: str, expires_at: datetime):
    user.reset_token = token
    user.reset_token_expiry = expires_at
    db.commit()
    return user


def get_user_by_reset_token(db: Session, token: str, now: datetime):
    return (
        db.query(models.User)
        .filter(models.User.reset_token == token, models.User.reset_token_expiry > now)
        .first()
    )


def consume_reset_token(db: Session, user_id: int, token: str, password_hash: str, now: datetime) -> bool:
    updated = (
        db.query(models.User)
        .filter(
            models.User.id == user_id,
            models.User.reset_token == token,
            models.User.reset_token_expiry > now,
        )
        .update(
            {"password": password_hash, "reset_token": None, "reset_token_expiry": None},
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def update_password(db: Session, user: models.User, password: str):
    user.password = get_password_hash(password)
    db.commit()
    return user


def update_account(db: Session, user: models.User, name: Optional[str] = None, email: Optional[str] = None):
    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    db.commit()
    db.refresh(user)
    return user


def create_image(db: Session, user_id: int, filename: str, file_url: str,
                 file_type: Optional[str] = None, dimensions: Optional[str] = None):
    db_image = models.Image(
        user_id=user_id,
        filename=filename,
        file_url=file_url,
        file_type=file_type,
        dimensions=dimensions,
    )
    db.add(db_image)
    db.commit()
    db.refresh(db_image)
    return db_image


def get_user_images(db: Session, user_id: int):
    return (
        db.query(models.Image)
        .filter(models.Image.user_id == user_id)
        .order_by(models.Image.created_at.desc(), models.Image.id.desc())
        .all()
    )


def get_user_image(db: Session, user_id: int, image_id: int):
    return (
        db.query(models.Image)
        .filter(models.Image.id == image_id, models.Image.user_id == user_id)
        .first()
    )


def rename_image(db: Session, image: models.Image, filename: str, file_url: str):
    image.filename = filename
    image.file_url = file_url
    db.commit()
    db.refresh(image)
    return image


def delete_image(db: Session, image: models.Image):
    db.delete(image)
    db.commit()
