import logging
import os
import re
import secrets
import shutil
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.orm import Session

from .. import schemas, crud
from ..core.config import Settings
from ..core.dependencies import get_current_user_id, get_settings
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

_EXTENSION = re.compile(r"\.[^/.]+$")


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _file_url(settings: Settings, filename: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/uploads/{filename}"


def _store_upload(upload_dir: str, original_name: str, source) -> str:
    """Write an upload under a fresh name; never replaces an existing file."""
    filename = f"{_timestamp_ms()}-{original_name}"
    while True:
        try:
            with open(os.path.join(upload_dir, filename), "xb") as out:
                shutil.copyfileobj(source, out)
            return filename
        except FileExistsError:
            filename = f"{_timestamp_ms()}-{secrets.token_hex(4)}-{original_name}"


def _get_image_or_404(db: Session, user_id: int, image_id: int):
    image = crud.get_user_image(db, user_id=user_id, image_id=image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.post("/upload", response_model=schemas.ImageResponse)
def upload_image(
        image: UploadFile = File(...),
        file_type: Optional[str] = Form(None),
        dimensions: Optional[str] = Form(None),
        user_id: int = Depends(get_current_user_id),
        settings: Settings = Depends(get_settings),
        db: Session = Depends(get_db)
):
    if not image.content_type or not image.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File is not an image")

    original_name = os.path.basename(image.filename or "") or "image"
    filename = _store_upload(settings.UPLOAD_DIR, original_name, image.file)

    db_image = crud.create_image(
        db,
        user_id=user_id,
        filename=filename,
        file_url=_file_url(settings, filename),
        file_type=file_type,
        dimensions=dimensions,
    )
    logger.info("User %s uploaded image %s", user_id, db_image.id)
    return {"message": "Image saved!", "image": db_image}


@router.get("/my-images", response_model=schemas.ImageList)
def list_images(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"images": crud.get_user_images(db, user_id=user_id)}


@router.put("/images/{image_id}", response_model=schemas.ImageResponse)
def rename_image(
        image_id: int,
        data: schemas.RenameImage,
        user_id: int = Depends(get_current_user_id),
        settings: Settings = Depends(get_settings),
        db: Session = Depends(get_db)
):
    image = _get_image_or_404(db, user_id, image_id)

    ext = os.path.splitext(image.filename)[1]
    safe_name = _EXTENSION.sub("", os.path.basename(data.new_filename.strip()))
    if not safe_name:
        raise HTTPException(status_code=400, detail="Invalid filename")
    final_filename = safe_name + ext

    old_path = os.path.join(settings.UPLOAD_DIR, image.filename)
    new_path = os.path.join(settings.UPLOAD_DIR, final_filename)
    if os.path.exists(new_path):
        raise HTTPException(status_code=400, detail="A file with that name already exists")

    os.rename(old_path, new_path)
    image = crud.rename_image(db, image, final_filename, _file_url(settings, final_filename))
    return {"message": "File renamed successfully!", "image": image}


@router.delete("/images/{image_id}", response_model=schemas.Message)
def delete_image(
        image_id: int,
        user_id: int = Depends(get_current_user_id),
        settings: Settings = Depends(get_settings),
        db: Session = Depends(get_db)
):
    image = _get_image_or_404(db, user_id, image_id)
    path = os.path.join(settings.UPLOAD_DIR, image.filename)

    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    crud.delete_image(db, image)

    logger.info("User %s deleted image %s", user_id, image_id)
    return {"message": "Image deleted successfully!"}
