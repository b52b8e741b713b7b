# storefront/services/user_service.py
import uuid

from storefront.core.errors import (
    DuplicateRecord,
    EmailAlreadyRegistered,
    InvalidCredentials,
    UserNotFound,
)
from storefront.core.security import PasswordHasher
from storefront.core.tokens import TokenService
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.auth import LoginRequest, TokenRead
from storefront.schemas.user import UserCreate


class UserService:
    """
    Business logic for users and login.

    Responsibilities:
      - registration (unique email, hashed password)
      - credential check (lookup by email + hash verify)
      - token issuance after a successful login
    """

    def __init__(
        self,
        repo: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        hash_timeout: float | None = None,
    ):
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens
        self.hash_timeout = hash_timeout
        self._dummy_hash: str | None = None

    # ----- Registration -----

    def register(self, payload: UserCreate) -> User:
        """
        Create a user account.

        Raises:
            EmailAlreadyRegistered: the email is taken (checked up front and
              again by the store's unique constraint).
        """
        email = payload.email.lower()
        if self.repo.get_by_email(email) is not None:
            raise EmailAlreadyRegistered()

        user = User(
            name=payload.name,
            email=email,
            password_hash=self.hasher.hash(payload.password, timeout=self.hash_timeout),
        )
        try:
            return self.repo.create(user)
        except DuplicateRecord:
            raise EmailAlreadyRegistered() from None

    # ----- Login -----

    def authenticate(self, email: str, password: str) -> User:
        """
        Return the user owning these credentials.

        Raises:
            InvalidCredentials: unknown email or wrong password (same error
              for both).
        """
        user = self.repo.get_by_email(email.lower())
        if user is None:
            # Spend the same hashing cost as a real check.
            self.hasher.verify(password, self._get_dummy_hash(), timeout=self.hash_timeout)
            raise InvalidCredentials()

        if not self.hasher.verify(password, user.password_hash, timeout=self.hash_timeout):
            raise InvalidCredentials()
        return user

    def login(self, payload: LoginRequest) -> TokenRead:
        user = self.authenticate(payload.email, payload.password)
        token = self.tokens.issue(str(user.id))
        return TokenRead(
            token=token,
            expires_in=int(self.tokens.default_ttl.total_seconds()),
        )

    # ----- Profile -----

    def get_user(self, user_id: uuid.UUID) -> User:
        """
        Raises:
            UserNotFound: token subject has no account (e.g. deleted store).
        """
        user = self.repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(uuid.uuid4().hex)
        return self._dummy_hash
