"""
Auth helpers: JWT issue/verify and the bearer-token gate used by protected routes.
Tokens are stateless (no revocation list); logout is the client dropping its token.
"""

from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from .errors import Forbidden, Unauthenticated

ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


class InvalidToken(Exception):
    """Malformed, tampered, expired or subject-less token; callers cannot tell which."""


def _is_canonical(token: str) -> bool:
    """True if every segment is the exact base64url encoding of its bytes.
    Lenient decoding ignores the padding bits of a final character, so two strings can carry one signature."""
    segments = token.split(".")
    if len(segments) != 3:
        return False
    for segment in segments:
        try:
            raw = segment.encode("ascii")
            if base64url_encode(base64url_decode(raw)) != raw:
                return False
        except ValueError:
            return False
    return True


class TokenService:
    def __init__(self, secret: str, expire_days: int = 30):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.expire_days = expire_days

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": str(user_id), "iat": now, "exp": now + timedelta(days=self.expire_days)}
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str:
        if not _is_canonical(token):
            raise InvalidToken()
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JWTError:
            raise InvalidToken()
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidToken()
        return user_id


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Resolve the caller's user id from the Authorization header. 401 if absent, 403 if invalid."""
    if not credentials or not credentials.credentials:
        raise Unauthenticated()
    try:
        return tokens.verify(credentials.credentials)
    except InvalidToken:
        raise Forbidden()
