from pydantic import BaseModel, Field
from typing import Optional


class Identity(BaseModel):
    """Authenticated user resolved from a bearer token."""
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    role: str = Field(default="student")

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        # Tokens are either {"user": {"_id", "name", "role"}} or flat {"id", "role"}
        user = claims.get("user") if isinstance(claims.get("user"), dict) else claims
        user_id = user.get("_id") or user.get("id") or user.get("sub")
        return cls(
            id=str(user_id) if user_id is not None else "",
            name=user.get("name"),
            role=user.get("role") or "student",
        )
