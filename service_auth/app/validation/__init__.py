"""
Session-token validation: decoding, signature verification, claim checks.
"""

from .token_validator import (
    TokenPayload,
    TokenValidationResult,
    TokenValidator,
    decode_token,
    is_expired,
)

__all__ = [
    "TokenPayload",
    "TokenValidationResult",
    "TokenValidator",
    "decode_token",
    "is_expired",
]
