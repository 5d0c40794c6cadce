"""Signed bearer credentials (HS256 JWT)"""

import time
import uuid
from dataclasses import dataclass
from typing import Dict, Optional
import jwt
from stuvendor.domain.exceptions import InvalidCredential

ALGO = "HS256"


@dataclass
class TokenClaims:
    """Verified claims carried by an access token"""

    subject_id: uuid.UUID
    role: Optional[str]
    expires_at: int


class TokenCodec:
    """Mints and verifies access tokens against a shared secret"""

    def __init__(self, secret: str, issuer: str, ttl_seconds: int = 3600):
        self.secret = secret
        self.issuer = issuer
        self.ttl_seconds = ttl_seconds

    def mint(self, account_id: uuid.UUID, role: str, claims: Optional[Dict] = None) -> str:
        now = int(time.time())
        payload = {
            "iss": self.issuer,
            "sub": str(account_id),
            "role": role,
            "iat": now,
            "exp": now + self.ttl_seconds,
            **(claims or {}),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGO)

    def decode(self, token: Optional[str]) -> TokenClaims:
        """
        Verify signature, expiry and issuer.

        Raises:
            InvalidCredential: Token absent, malformed, expired, or missing its subject
        """
        if not token:
            raise InvalidCredential("Access denied. No token provided")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGO],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "iss", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidCredential("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidCredential(f"Invalid token: {e}") from e

        try:
            subject_id = uuid.UUID(str(payload["sub"]))
        except ValueError as e:
            raise InvalidCredential("Token subject is not a valid account id") from e

        return TokenClaims(subject_id=subject_id, role=payload.get("role"), expires_at=payload["exp"])


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
