# storefront/core/tokens.py
import binascii
import time
from datetime import timedelta
from typing import Any, Callable

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from storefront.core.errors import InvalidToken


def _is_canonical(token: str) -> bool:
    """
    True if every segment is the exact base64url encoding of its bytes.

    Lenient decoders ignore the spare bits of the last character, so two
    different strings can decode to the same signature.
    """
    segments = token.split(".")
    if len(segments) != 3:
        return False
    try:
        for segment in segments:
            raw = segment.encode("ascii")
            if base64url_encode(base64url_decode(raw)) != raw:
                return False
    except (UnicodeError, binascii.Error, ValueError):
        return False
    return True


class TokenService:
    """
    Issue and verify signed, time-limited bearer tokens (JWT).

    Claims:
      - sub: subject (user id as string)
      - iat: issued-at, seconds since epoch
      - exp: expiry, seconds since epoch

    Verification is a pure function of (token, clock, secret): there is no
    store lookup and therefore no revocation before `exp` short of rotating
    the secret.

    Clock policy:
      - the verifier's own clock is used, no leeway
      - a token is invalid from the instant now >= exp
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Token signing secret cannot be empty")
        if default_ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")

        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self._clock = clock

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r}, default_ttl={self.default_ttl!r})"

    def issue(self, subject_id: str, ttl: timedelta | None = None) -> str:
        """Return a compact JWT for `subject_id`, valid for `ttl` (default TTL if None)."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")

        issued_at = int(self._clock())
        claims = {
            "sub": str(subject_id),
            "iat": issued_at,
            "exp": issued_at + int(ttl.total_seconds()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Return the subject of a valid token.

        Raises:
            InvalidToken: bad signature, malformed token, missing claims,
              or expired.
        """
        if not isinstance(token, str) or not token:
            raise InvalidToken()
        if not _is_canonical(token):
            raise InvalidToken()

        try:
            # Expiry is checked below against our own clock with no leeway.
            claims: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError:
            raise InvalidToken() from None

        subject = claims.get("sub")
        expires_at = claims.get("exp")

        if not isinstance(subject, str) or not subject:
            raise InvalidToken()
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise InvalidToken()
        if self._clock() >= expires_at:
            raise InvalidToken()

        return subject
