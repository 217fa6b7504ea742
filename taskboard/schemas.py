"""
Pydantic schemas for the task board API.

Request fields are optional so that presence checks happen in the services
and surface as ``{"error": ...}`` with a 400, like every other failure.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CarouselImagePayload(BaseModel):
    imgurl: Optional[str] = None
    maker: Optional[str] = None


class CarouselImageResponse(BaseModel):
    id: int
    imgurl: str
    maker: str


class RegisterPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    firstname: str
    lastname: str


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse


class LoginPayload(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    firstname: str


class ProfileResponse(BaseModel):
    firstname: str
    email: str


class TaskCreatePayload(BaseModel):
    task: Optional[str] = None
    type: Optional[str] = None
    timeofentry: Optional[datetime] = None
    completestatus: Optional[bool] = None
    remindertime: Optional[datetime] = None
    currentstatus: Optional[bool] = None

    @field_validator("timeofentry", "remindertime", mode="before")
    @classmethod
    def _blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TaskStatusPayload(BaseModel):
    completestatus: Optional[bool] = None
    currentstatus: Optional[bool] = None


class TaskEditPayload(BaseModel):
    editedtask: Optional[str] = None
    editedtype: Optional[str] = None


class TaskResponse(BaseModel):
    id: int
    user_id: int
    task: str
    type: str
    timeofentry: datetime
    remindertime: datetime
    completestatus: bool
    currentstatus: bool
