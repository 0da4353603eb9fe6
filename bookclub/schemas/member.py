from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MemberCreate(BaseModel):
    name: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class MemberOut(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True, frozen=True)
