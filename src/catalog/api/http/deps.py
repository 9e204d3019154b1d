"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Query, Request
from loguru import logger
from sqlmodel import Session

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.errors import ForbiddenError, UnauthenticatedError
from src.catalog.core.pagination import PageParams, resolve_page_params
from src.catalog.core.security import Capability, Role, has_capability, has_role
from src.catalog.core.services import JwtService, ProductService
from src.catalog.core.services.cache import CacheStore
from src.catalog.core.services.jwt import TokenClaims, TokenError
from src.catalog.entities.core.revoked_token import RevokedTokenRepository
from src.catalog.entities.core.user import User, UserRepository
from src.catalog.runtime.config.config_data import ConfigData


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_app_config(request: Request) -> ConfigData:
    """Configuration of the app serving this request."""
    return request.app.state.config


def get_db_session(request: Request) -> Iterator[Session]:
    """Get a database session scoped to the request."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_cache(request: Request) -> CacheStore:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.cache


def get_jwt_service(request: Request) -> JwtService:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.jwt_service


def bearer_token(request: Request) -> str | None:
    """Token from an ``Authorization: Bearer`` header, if any."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_token_claims(
    request: Request,
    db: Session = Depends(get_db_session),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> TokenClaims:
    """Verify the bearer token and reject revoked ones."""
    token = bearer_token(request)
    if token is None:
        raise UnauthenticatedError("Missing Bearer token")

    try:
        claims = jwt_service.verify(token)
    except TokenError as e:
        logger.info("Rejected bearer token: {}", e)
        raise UnauthenticatedError("Invalid or expired token") from e

    if RevokedTokenRepository(db).is_revoked(claims.jti):
        raise UnauthenticatedError("Token has been revoked")

    request.state.claims = claims
    return claims


def get_current_user(
    request: Request,
    claims: TokenClaims = Depends(get_token_claims),
    db: Session = Depends(get_db_session),
) -> User:
    """Authenticate the request using a Bearer token."""
    user = UserRepository(db).get(claims.sub)
    if user is None:
        raise UnauthenticatedError("Unknown user")

    request.state.uid = user.id
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not has_role(user, Role.ADMIN):
        raise ForbiddenError("Admin access required")
    return user


def require_role(*roles: Role):
    """Create a dependency that admits only users holding one of ``roles``."""
    required = " or ".join(str(role) for role in roles)

    async def dep(user: User = Depends(get_current_user)) -> User:
        if not has_role(user, *roles):
            raise ForbiddenError(f"Required role: {required}")
        return user

    return dep


def require_capability(capability: Capability):
    """Create a dependency that admits only users whose role grants ``capability``."""

    async def dep(user: User = Depends(get_current_user)) -> User:
        if not has_capability(user, capability):
            raise ForbiddenError(f"Missing capability: {capability}")
        return user

    return dep


def get_product_service(
    request: Request,
    db: Session = Depends(get_db_session),
    cache: CacheStore = Depends(get_cache),
) -> ProductService:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return ProductService(
        db,
        cache,
        environment=app_deps.config.app.environment,
        notifier=app_deps.product_notifier,
    )


def get_page_params(
    page: str | None = Query(default=None),
    per_page: str | None = Query(default=None),
) -> PageParams:
    """Page query parameters; junk values are clamped rather than rejected."""
    return resolve_page_params(page, per_page)
