from fastapi import APIRouter, Depends, HTTPException

from .. import schemas
from ..core.dependencies import get_mailer
from ..utils import Mailer

router = APIRouter()


@router.post("/contact", response_model=schemas.Message)
def send_contact_message(data: schemas.ContactMessage, mailer: Mailer = Depends(get_mailer)):
    fields = (data.c_name, data.c_email, data.c_message)
    if not all(value and value.strip() for value in fields):
        raise HTTPException(status_code=400, detail="All fields are required")

    mailer.send_contact_message(data.c_name, data.c_email, data.c_message)
    return {"message": "Message sent successfully!"}
