"""User database table model."""

from sqlmodel import Field

from src.catalog.core.security import Role
from src.catalog.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    This represents how the User entity is stored in the database.
    It's separate from the domain entity to maintain clean architecture
    while keeping related code together.
    """

    __tablename__ = "users"

    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str
    role: Role = Field(default=Role.USER)
