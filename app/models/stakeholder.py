from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class StakeholderAuthorize(SQLModel):
    principal: str = Field(
        schema_extra={"examples": ["did:example:farm-co-op-17"]},
        description="Identity to authorize, as carried in its bearer token."
    )
    role: str = Field(
        schema_extra={"examples": ["Farmer"]},
        description="Free-text role label."
    )


class StakeholderRead(SQLModel):
    principal: str
    role: str
    created_at: datetime


class StakeholderStatus(SQLModel):
    """Authorization lookup result. Unknown principals are simply unauthorized."""
    principal: str
    is_authorized: bool
    is_admin: bool = False
    role: Optional[str] = None
