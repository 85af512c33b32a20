from typing import Any, Dict, Optional

from pydantic import BaseModel


class LoginCode(BaseModel):
    """A hashed six digit code stored in the login codes collection."""

    id: Optional[str] = None
    email: str
    code_hash: str
    role: str
    ref: Optional[str] = None
    expires_at: int  # epoch millis

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "LoginCode":
        return cls(
            id=document.get("$id"),
            email=document["email"],
            code_hash=document["code_hash"],
            role=document.get("role") or "",
            ref=document.get("ref"),
            expires_at=int(document["expires_at"]),
        )

    def to_data(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "code_hash": self.code_hash,
            "role": self.role,
            "ref": self.ref,
            "expires_at": self.expires_at,
        }

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def __repr__(self):
        return f"<LoginCode {self.email} expires_at={self.expires_at}>"
