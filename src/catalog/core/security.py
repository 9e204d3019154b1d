"""Roles, capabilities and password hashing."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol

from passlib.context import CryptContext


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


class Capability(StrEnum):
    PRODUCTS_READ = "products:read"
    PRODUCTS_WRITE = "products:write"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.USER: frozenset({Capability.PRODUCTS_READ}),
    Role.ADMIN: frozenset({Capability.PRODUCTS_READ, Capability.PRODUCTS_WRITE}),
}


class HasRole(Protocol):
    role: Role


def has_role(subject: HasRole | None, *roles: Role) -> bool:
    """Return True when ``subject`` holds any of ``roles``."""
    if subject is None:
        return False
    return subject.role in roles


def has_capability(subject: HasRole | None, capability: Capability) -> bool:
    if subject is None:
        return False
    return capability in ROLE_CAPABILITIES.get(subject.role, frozenset())


_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash; malformed hashes never match."""
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        return False
