"""Revoked token repository."""

from datetime import datetime

from sqlalchemy import delete
from sqlmodel import Session, func, select

from src.catalog.entities.core._base import utcnow

from .table import RevokedTokenTable


class RevokedTokenRepository:
    """Data-access layer for the JWT denylist."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def revoke(self, jti: str, expires_at: datetime) -> None:
        if self._session.get(RevokedTokenTable, jti) is not None:
            return
        self._session.add(RevokedTokenTable(jti=jti, expires_at=expires_at))
        self._session.flush()

    def is_revoked(self, jti: str) -> bool:
        statement = select(RevokedTokenTable.jti).where(RevokedTokenTable.jti == jti)
        return self._session.exec(statement).first() is not None

    def count(self) -> int:
        statement = select(func.count()).select_from(RevokedTokenTable)
        return self._session.exec(statement).one()

    def purge_expired(self, now: datetime | None = None) -> int:
        statement = delete(RevokedTokenTable).where(
            RevokedTokenTable.expires_at < (now or utcnow())
        )
        result = self._session.exec(statement)
        return result.rowcount or 0
