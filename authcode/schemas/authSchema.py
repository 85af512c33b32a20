from typing import Optional

from pydantic import BaseModel, field_validator


class SendCodeRequest(BaseModel):
    email: Optional[str] = None


class VerifyCodeRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None
    role: Optional[str] = None
    ref: Optional[str] = None

    @field_validator("code", "ref", mode="before")
    @classmethod
    def numbers_as_text(cls, value):
        # clients often post the code as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class SendCodeResponse(BaseModel):
    ok: bool = True
    message: str
    code_dev: Optional[str] = None
    expires_at: Optional[int] = None


class VerifyCodeResponse(BaseModel):
    ok: bool = True
    user_id: str
    role_set: str
    token: str


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
