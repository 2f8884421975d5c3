"""Token signing and password storage.

`TokenCodec` issues and verifies the bearer tokens sent in the
`accesstoken` header. Tokens identify the user by email and carry an
issue time and expiry; they never contain the password. The signing
secret is handed to the codec when it is built.

`PasswordHasher` applies the configured password scheme through
passlib. The default `plaintext` scheme stores and compares passwords
verbatim.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from .errors import InvalidToken


class TokenCodec:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 24 * 60):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=expire_minutes)

    def issue(self, email: str, now: Optional[datetime] = None) -> str:
        """Sign a token asserting `email`, valid for the configured lifetime."""
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": email,
            "email": email,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> dict:
        """Decode `token` and return its claims.

        Raises `InvalidToken` if the token is missing, malformed, signed
        with another secret, expired, or lacks the email claim.
        """
        if not token:
            raise InvalidToken("missing token")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken("invalid token") from exc
        if not claims.get("email"):
            raise InvalidToken("invalid token payload")
        return claims


class PasswordHasher:
    def __init__(self, scheme: str = "plaintext"):
        self.scheme = scheme
        self._ctx = CryptContext(schemes=[scheme], deprecated="auto")

    def hash(self, password: str) -> str:
        return self._ctx.hash(password)

    def verify(self, password: str, stored: str) -> bool:
        try:
            return self._ctx.verify(password, stored)
        except ValueError:
            # stored value was written under a different scheme
            return False
