"""Revoked token database table model."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class RevokedTokenTable(SQLModel, table=True):
    """Denylist of access tokens invalidated by logout.

    Rows only need to outlive the token itself; expired rows are purged
    on startup.
    """

    __tablename__ = "revoked_tokens"

    jti: str = Field(primary_key=True, max_length=64)
    expires_at: datetime = Field(sa_type=sa.DateTime(timezone=True), index=True)
