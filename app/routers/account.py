import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import schemas, crud
from ..core import security
from ..core.dependencies import get_current_user_id
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: int):
    user = crud.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/account", response_model=schemas.AccountResponse)
def read_account(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"user": _get_user_or_404(db, user_id)}


@router.put("/account", response_model=schemas.AccountUpdated)
def update_account(
        data: schemas.AccountUpdate,
        user_id: int = Depends(get_current_user_id),
        db: Session = Depends(get_db)
):
    user = _get_user_or_404(db, user_id)

    if data.email is not None and data.email != user.email:
        if crud.get_user_by_email(db, email=data.email):
            raise HTTPException(status_code=400, detail="Email already registered")

    try:
        user = crud.update_account(db, user, name=data.name, email=data.email)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    return {"message": "Account updated successfully", "user": user}


@router.put("/account/password", response_model=schemas.Message)
def change_password(
        data: schemas.ChangePassword,
        user_id: int = Depends(get_current_user_id),
        db: Session = Depends(get_db)
):
    user = _get_user_or_404(db, user_id)

    if not security.verify_password(data.current, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    crud.update_password(db, user, data.new_password)
    logger.info("Password changed for user %s", user.id)
    return {"message": "Password changed successfully"}
