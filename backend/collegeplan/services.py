"""Business logic services used by HTTP controllers.

Services coordinate repositories with the token codec and password
policy. Controllers stay thin: they translate HTTP input into service
calls and service results into responses.
"""

import logging
from typing import Optional, Tuple

from sqlmodel import Session

from . import models, repositories
from .errors import InvalidToken, NotFound, Unauthorized
from .projections import UserProfile
from .schemas import RegisterIn
from .security import PasswordHasher, TokenCodec

logger = logging.getLogger("collegeplan.auth")


class AuthService:
    """Account registration, login and token-to-user resolution."""
    def __init__(self, session: Session, codec: TokenCodec, hasher: PasswordHasher):
        self.session = session
        self.codec = codec
        self.hasher = hasher
        self.user_repo = repositories.UserRepository(session)

    def register(self, payload: RegisterIn) -> models.User:
        """Create a user and link their interested majors.

        Raises `Conflict` when the email or username is taken.
        """
        fields = payload.model_dump(exclude={"confirm_password", "interested_majors", "password"})
        user = models.User(**fields, password=self.hasher.hash(payload.password))
        created = self.user_repo.create(user, payload.interested_majors)
        logger.info("user_registered id=%s", created.id)
        return created

    def authenticate(self, email: str, password: str) -> Optional[Tuple[UserProfile, str]]:
        """Verify credentials and return the profile plus a signed token.

        Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_email(email)
        if not user or not self.hasher.verify(password, user.password):
            logger.info("login_failed")
            return None
        profile = self.user_repo.profile_by_email(email)
        return profile, self.codec.issue(user.email)

    def resolve_user(self, token: Optional[str]) -> models.User:
        """Return the user a token was issued for.

        Raises `Unauthorized` for a missing or invalid token and
        `NotFound` when the token is valid but the user is gone.
        """
        try:
            claims = self.codec.verify(token)
        except InvalidToken as exc:
            raise Unauthorized() from exc
        user = self.user_repo.get_by_email(claims["email"])
        if not user:
            raise NotFound("User not found")
        return user

    def delete_account(self, token: Optional[str]) -> None:
        user = self.resolve_user(token)
        if not self.user_repo.delete_by_email(user.email):
            raise NotFound("User not found")
        logger.info("account_deleted id=%s", user.id)
