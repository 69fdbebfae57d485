"""Account domain schemas"""

from typing import Optional

from pydantic import BaseModel


class SignupRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EmailLoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class GoogleAuthRequest(BaseModel):
    accessToken: Optional[str] = None


class AuthResponse(BaseModel):
    email: str
    sessionId: str


class MeResponse(BaseModel):
    email: str
