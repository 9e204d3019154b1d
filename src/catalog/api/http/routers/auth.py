"""Sign-up, login and logout endpoints issuing JWT bearer tokens."""

from typing import Any

from fastapi import APIRouter, Depends, Response
from loguru import logger
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.catalog.api.http.deps import (
    get_db_session,
    get_jwt_service,
    get_token_claims,
)
from src.catalog.api.http.errors import (
    BadRequestError,
    UnauthenticatedError,
    ValidationFailedError,
)
from src.catalog.core.security import Role, hash_password, verify_password
from src.catalog.core.services import JwtService
from src.catalog.core.services.jwt import TokenClaims
from src.catalog.entities.core.revoked_token import RevokedTokenRepository
from src.catalog.entities.core.user import User, UserRepository

router = APIRouter(tags=["auth"])

PASSWORD_MIN_LENGTH = 6
_email_adapter = TypeAdapter(EmailStr)


class SignupParams(BaseModel):
    email: str | None = None
    password: str | None = None
    password_confirmation: str | None = None


class LoginParams(BaseModel):
    email: str | None = None
    password: str | None = None


class SignupEnvelope(BaseModel):
    user: SignupParams | None = None


class LoginEnvelope(BaseModel):
    user: LoginParams | None = None


def _user_data(user: User) -> dict[str, Any]:
    return {"id": user.id, "email": user.email, "role": str(user.role)}


def _is_valid_email(email: str) -> bool:
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def validate_signup(params: SignupParams, repository: UserRepository) -> list[str]:
    errors: list[str] = []
    email = (params.email or "").strip().lower()
    if not email:
        errors.append("Email can't be blank")
    elif not _is_valid_email(email):
        errors.append("Email is invalid")
    elif repository.exists_by_email(email):
        errors.append("Email has already been taken")

    password = params.password or ""
    if not password:
        errors.append("Password can't be blank")
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.append(
            f"Password is too short (minimum is {PASSWORD_MIN_LENGTH} characters)"
        )
    if params.password_confirmation is not None and params.password_confirmation != password:
        errors.append("Password confirmation doesn't match Password")
    return errors


@router.post("/signup")
def signup(
    payload: SignupEnvelope,
    session: Session = Depends(get_db_session),
) -> dict[str, Any]:
    """Register a new account with the ``user`` role."""
    if payload.user is None:
        raise BadRequestError("param is missing or the value is empty: user")

    repository = UserRepository(session)
    errors = validate_signup(payload.user, repository)
    if errors:
        raise ValidationFailedError(errors, "User couldn't be created successfully")

    try:
        user = repository.create(
            User(
                email=payload.user.email or "",
                password_hash=hash_password(payload.user.password or ""),
                role=Role.USER,
            )
        )
        session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same address
        session.rollback()
        raise ValidationFailedError(
            ["Email has already been taken"], "User couldn't be created successfully"
        ) from e

    logger.info("User signed up", user_id=user.id)
    return {"message": "Signed up successfully.", "data": _user_data(user)}


@router.post("/login")
def login(
    payload: LoginEnvelope,
    response: Response,
    session: Session = Depends(get_db_session),
    jwt_service: JwtService = Depends(get_jwt_service),
) -> dict[str, Any]:
    """Exchange credentials for a bearer token returned in the Authorization header."""
    params = payload.user or LoginParams()
    user = UserRepository(session).get_by_email(params.email or "")
    if user is None or not verify_password(params.password or "", user.password_hash):
        logger.warning("Login failed", email=(params.email or "").strip().lower())
        raise UnauthenticatedError("Invalid email or password.")

    issued = jwt_service.issue(user.id, role=str(user.role))
    response.headers["Authorization"] = f"Bearer {issued.token}"
    logger.info("Login succeeded", user_id=user.id)
    return {"message": "Logged in successfully.", "data": _user_data(user)}


@router.delete("/logout")
def logout(
    claims: TokenClaims = Depends(get_token_claims),
    session: Session = Depends(get_db_session),
) -> dict[str, str]:
    """Revoke the presented token."""
    RevokedTokenRepository(session).revoke(claims.jti, claims.expires_at)
    session.commit()
    logger.info("Token revoked", user_id=claims.sub, jti=claims.jti)
    return {"message": "Logged out successfully."}
