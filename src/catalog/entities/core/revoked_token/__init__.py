"""Revoked token (JWT denylist) entity module."""

from .repository import RevokedTokenRepository
from .table import RevokedTokenTable

__all__ = ["RevokedTokenRepository", "RevokedTokenTable"]
