import pytest

from worker_service.auth.service import AuthenticationError, AuthenticationService
from worker_service.auth.users import (
    MemoryUserRepository,
    UserNotFound,
    create_user,
    hash_password,
    verify_password,
)


def test_hash_is_salted():
    salt1, digest1 = hash_password("secret")
    salt2, digest2 = hash_password("secret")

    assert salt1 != salt2
    assert digest1 != digest2


def test_hash_with_same_salt_is_stable():
    salt, digest = hash_password("secret")
    assert hash_password("secret", salt) == (salt, digest)


def test_verify_password():
    user = create_user("user1", "secret")

    assert verify_password(user, "secret")
    assert not verify_password(user, "Secret")


def test_repository_lookup():
    repository = MemoryUserRepository.from_credentials({"user1": "pw"})

    assert repository.find_by_username("user1").username == "user1"
    with pytest.raises(UserNotFound):
        repository.find_by_username("user3")


class TestAuthenticationService:

    @pytest.fixture
    def service(self):
        return AuthenticationService(MemoryUserRepository.from_credentials({"user1": "pw1"}))

    def test_valid_credentials(self, service):
        assert service.authenticate("user1", "pw1").username == "user1"

    def test_wrong_password(self, service):
        with pytest.raises(AuthenticationError, match="Invalid password"):
            service.authenticate("user1", "wrong")

    def test_unknown_user(self, service):
        with pytest.raises(AuthenticationError, match="Cannot find user"):
            service.authenticate("nobody", "pw1")
