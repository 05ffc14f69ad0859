"""Pydantic schemas for registration and login."""

from tasktimer.schemas.task import CamelModel


class Credentials(CamelModel):
    username: str = ""
    password: str = ""


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user_id: str
