from .jwt_service import IssuedToken, JwtService, TokenClaims, TokenError

__all__ = ["IssuedToken", "JwtService", "TokenClaims", "TokenError"]
