from pydantic import EmailStr, Field, SecretStr

from pixelshelf.schemas.common import CamelModel


class RegisterIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: SecretStr = Field(..., min_length=8)
    username: str | None = Field(None, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")


class LoginIn(CamelModel):
    email: EmailStr
    password: SecretStr


class TokenOut(CamelModel):
    token: str
    token_type: str = "bearer"
