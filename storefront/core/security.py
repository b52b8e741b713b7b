# storefront/core/security.py
import bcrypt

from storefront.core.errors import CryptoUnavailable, ValidationError
from storefront.core.timeouts import call_with_timeout

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """
    One-way salted password hashing (bcrypt).

    - hash():   random salt per call, cost = 2**rounds
    - verify(): re-hashes with the salt embedded in the digest and compares
                in constant time (bcrypt.checkpw)
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, plaintext: str, timeout: float | None = None) -> str:
        """
        Hash a password.

        Raises:
            ValidationError: password longer than 72 bytes.
            CryptoUnavailable: OS random source could not produce a salt.
            Timeout: hashing exceeded `timeout` seconds.
        """
        password = plaintext.encode("utf-8")
        if len(password) > MAX_PASSWORD_BYTES:
            raise ValidationError("Password is too long")

        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
        except (NotImplementedError, OSError) as exc:
            raise CryptoUnavailable() from exc

        digest = call_with_timeout(bcrypt.hashpw, password, salt, timeout=timeout)
        return digest.decode("ascii")

    def verify(self, plaintext: str, digest: str, timeout: float | None = None) -> bool:
        """
        Check a password against a stored digest.

        Returns False for a wrong password and for any malformed digest.
        """
        try:
            password = plaintext.encode("utf-8")
            hashed = digest.encode("ascii")
        except (AttributeError, UnicodeError):
            return False

        if len(password) > MAX_PASSWORD_BYTES:
            return False

        try:
            return call_with_timeout(bcrypt.checkpw, password, hashed, timeout=timeout)
        except (ValueError, TypeError):
            return False
