import uuid

import pytest

from account_ledger.core.errors import (
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
)
from account_ledger.models.account import Statistic

pytestmark = pytest.mark.unit

TEST_PASSWORD = "SecurePass123!"


def test_register_artem_gets_defaults(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)

    assert account.rating == 1500
    assert account.coins == 100
    assert account.statistic == Statistic(0, 0, 0)
    assert account.password_salt
    assert account.password_hash != TEST_PASSWORD


def test_register_generates_unique_salts(service):
    first = service.register("artem", "artem@example.com", TEST_PASSWORD)
    second = service.register("bob", "bob@example.com", TEST_PASSWORD)
    assert first.password_salt != second.password_salt
    assert first.password_hash != second.password_hash


@pytest.mark.parametrize("username", ["", "ab", "has space", "x" * 33, "semi;colon"])
def test_register_rejects_bad_usernames(service, username):
    with pytest.raises(InvalidInputError):
        service.register(username, "someone@example.com", TEST_PASSWORD)


def test_register_rejects_bad_email(service):
    with pytest.raises(InvalidInputError):
        service.register("artem", "not-an-email", TEST_PASSWORD)


def test_register_rejects_empty_password(service):
    with pytest.raises(InvalidInputError):
        service.register("artem", "artem@example.com", "")
    with pytest.raises(NotFoundError):
        service.get_by_username("artem")


def test_register_duplicate_username(service):
    service.register("artem", "artem@example.com", TEST_PASSWORD)
    with pytest.raises(DuplicateUsernameError):
        service.register("artem", "other@example.com", TEST_PASSWORD)


def test_get_account_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_account(uuid.uuid4())
    with pytest.raises(NotFoundError):
        service.get_by_username("ghost")


def test_authenticate(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)

    assert service.authenticate("artem", TEST_PASSWORD).id == account.id
    assert service.authenticate("artem", "wrong-password") is None
    assert service.authenticate("ghost", TEST_PASSWORD) is None


def test_authenticate_disabled_account(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)
    service.deactivate(account.id)
    assert service.authenticate("artem", TEST_PASSWORD) is None


def test_change_password_rotates_salt(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)
    old_salt = account.password_salt

    service.change_password(account.id, TEST_PASSWORD, "BrandNewPass1")

    assert service.get_account(account.id).password_salt != old_salt
    assert service.authenticate("artem", "BrandNewPass1") is not None
    assert service.authenticate("artem", TEST_PASSWORD) is None


def test_change_password_requires_current_password(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)
    with pytest.raises(InvalidInputError):
        service.change_password(account.id, "wrong-password", "BrandNewPass1")
    assert service.authenticate("artem", TEST_PASSWORD) is not None


def test_rename_validates_username(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)
    with pytest.raises(InvalidInputError):
        service.rename(account.id, "no spaces allowed")
    assert service.rename(account.id, "artem_the_great").username == "artem_the_great"


def test_leaderboard_rejects_bad_paging(service):
    with pytest.raises(InvalidInputError):
        service.leaderboard(limit=0)
    with pytest.raises(InvalidInputError):
        service.leaderboard(limit=-1)
    with pytest.raises(InvalidInputError):
        service.leaderboard(offset=-1)


def test_history_rejects_zero_limit(service):
    account = service.register("artem", "artem@example.com", TEST_PASSWORD)
    with pytest.raises(InvalidInputError):
        service.history(account.id, limit=0)
    assert service.history(account.id) == []
