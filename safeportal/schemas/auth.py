from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from uuid import UUID
from safeportal.models.user import AppRole

class SignupRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None

class Token(BaseModel):
    access_token: str
    token_type: str
    user_id: UUID

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None

class MeResponse(BaseModel):
    id: UUID
    email: EmailStr
    roles: List[AppRole]
    is_admin: bool
