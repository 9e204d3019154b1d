"""Core services exports."""

# Database
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# JWT
from .jwt.jwt_service import JwtService

# Domain
from .product_service import ProductCreationResult, ProductService

# Redis
from .redis_service import RedisService

__all__ = [
    "DbManageService",
    "DbSessionService",
    "JwtService",
    "ProductCreationResult",
    "ProductService",
    "RedisService",
]
