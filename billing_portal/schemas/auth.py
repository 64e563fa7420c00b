from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """The signed-in employee as reported by ``GET /auth/user``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = ""
    email: str = ""
    picture_url: Optional[str] = Field(default=None, alias="picture")

    @property
    def initials(self) -> str:
        parts = (self.name or "").split()
        if not parts:
            return "U"
        if len(parts) == 1:
            return parts[0][0].upper()
        return (parts[0][0] + parts[-1][0]).upper()
