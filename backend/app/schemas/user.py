from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Literal


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("Invalid email address")
    return value


class UserRegister(BaseModel):
    email: str = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _normalize_email(v)


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _normalize_email(v)


class ProviderSignIn(BaseModel):
    """Profile from a Google/GitHub sign-in the frontend has already verified."""

    email: str = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    provider: Literal["google", "github"]
    provider_account_id: Optional[str] = Field(None, alias="providerAccountId")
    profile_picture: Optional[str] = Field(None, alias="image")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return _normalize_email(v)

    class Config:
        populate_by_name = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    profile_picture: Optional[str] = Field(None, max_length=1024)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    is_active: Optional[bool] = None


class User(BaseModel):
    id: int
    email: str
    name: str
    profile_picture: Optional[str] = None
    auth_provider: str
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserList(BaseModel):
    items: List[User]
    total: int
    page: int
    limit: int


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: User
