"""User domain entity."""

from typing import Any

from pydantic import Field

from src.catalog.core.security import Role
from src.catalog.entities.core._base import Entity


class User(Entity):
    """User entity representing an account that can call the API.

    Users only exist to authenticate requests and to carry the role that
    gates mutating product endpoints.
    """

    email: str = Field(description="Unique, lower-cased email address")
    password_hash: str = Field(description="passlib hash of the user's password", repr=False)
    role: Role = Field(default=Role.USER, description="Authorization role")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __eq__(self, other: Any) -> bool:
        """Compare users by business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.email == other.email
            and self.role == other.role
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((self.id, self.email, self.role))
