import json
from typing import Any, Dict, Optional

from pydantic import BaseModel

from authcode.constants.constants import ProfileRole


def empty_roles() -> Dict[str, bool]:
    """All known role flags, cleared."""
    return {role.value: False for role in ProfileRole}


def dump_roles(roles: Dict[str, bool]) -> str:
    # stored without whitespace
    return json.dumps(roles, separators=(",", ":"))


def load_roles(raw: Optional[str]) -> Dict[str, bool]:
    """Parse a stored roles string, unreadable values yield cleared flags."""
    roles = empty_roles()
    if not raw:
        return roles
    try:
        stored = json.loads(raw)
    except ValueError:
        return roles
    if isinstance(stored, dict):
        roles.update({key: bool(value) for key, value in stored.items()})
    return roles


class UserProfile(BaseModel):
    """Role flags and referral metadata for an Appwrite user."""

    id: Optional[str] = None
    user_id: str
    email: str
    roles: str
    ref: Optional[str] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=document.get("$id"),
            user_id=document["user_id"],
            email=document.get("email") or "",
            roles=document.get("roles") or dump_roles(empty_roles()),
            ref=document.get("ref"),
        )

    @property
    def roles_map(self) -> Dict[str, bool]:
        return load_roles(self.roles)

    def __repr__(self):
        return f"<UserProfile {self.user_id} {self.email}>"
