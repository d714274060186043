from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr

from smarthive.schemas.base import CamelModel


class TokenClaims(BaseModel):
    """Verified payload of a session token."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    id: Optional[int] = None
    email: Optional[str] = None
    role: str = "user"
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    admin_id: Optional[int] = None
    iat: Optional[int] = None
    exp: int

    @property
    def user_id(self) -> Optional[int]:
        if self.id is not None:
            return self.id
        return int(self.sub) if self.sub.isdigit() else None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class LoginIn(BaseModel):
    # Optional so that missing fields get the login-specific message
    email: Optional[str] = None
    password: Optional[str] = None


class LoginUser(CamelModel):
    id: int
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: str
    role: str
    has_approved_purchase: bool
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class LoginResult(CamelModel):
    token: str
    user: LoginUser


# Email verification
class SendCodeIn(CamelModel):
    email: EmailStr
    firstname: Optional[str] = None


class VerifyCodeIn(CamelModel):
    email: EmailStr
    code: str
