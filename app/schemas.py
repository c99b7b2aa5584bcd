from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def email_must_look_valid(cls, value: str) -> str:
        # Stored exactly as given; lookups are case-sensitive.
        local, _, domain = value.partition("@")
        if not local or not domain:
            raise ValueError("Invalid email address")
        return value


class Login(BaseModel):
    email: str
    password: str


class ForgotPassword(BaseModel):
    email: str


class ResetPassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    new_password: str = Field(alias="newPass", min_length=1)


class ChangePassword(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current: str
    new_password: str = Field(alias="newPass", min_length=1)


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class RenameImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_filename: str = Field(alias="newFilename")


class ContactMessage(BaseModel):
    c_name: Optional[str] = None
    c_email: Optional[str] = None
    c_message: Optional[str] = None


class Message(BaseModel):
    message: str


class Token(BaseModel):
    token: str


class User(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(BaseModel):
    user: User


class AccountUpdated(Message):
    user: User


class Image(BaseModel):
    id: int
    filename: str
    file_url: str = Field(serialization_alias="fileUrl")
    file_type: Optional[str] = Field(default=None, serialization_alias="fileType")
    dimensions: Optional[str] = None
    created_at: datetime = Field(serialization_alias="createdAt")
    user_id: int = Field(serialization_alias="userId")

    model_config = ConfigDict(from_attributes=True)


class ImageResponse(Message):
    image: Image


class ImageList(BaseModel):
    images: List[Image]
