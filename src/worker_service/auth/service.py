import logging

from worker_service.auth.users import MemoryUserRepository, User, UserNotFound, verify_password

logger = logging.getLogger(__name__)


class AuthenticationError(ValueError):
    pass


class AuthenticationService:
    def __init__(self, repository: MemoryUserRepository):
        self.repository = repository

    def authenticate(self, username: str, password: str) -> User:
        """Check a username and password against the repository.

        Raises:
            AuthenticationError: If the user is unknown or the password does not match
        """
        try:
            user = self.repository.find_by_username(username)
        except UserNotFound as e:
            raise AuthenticationError(str(e)) from e

        if not verify_password(user, password):
            raise AuthenticationError(f"Invalid password for user {username}")

        return user
