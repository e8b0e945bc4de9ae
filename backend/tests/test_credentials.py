import pytest

from account_ledger.core.errors import InvalidInputError
from account_ledger.services.credentials import (
    generate_salt,
    hash_password,
    verify_password,
)

pytestmark = pytest.mark.unit

ITERATIONS = 1_000


def test_generate_salt_is_hex_of_requested_length():
    salt = generate_salt(32)
    assert len(salt) == 64
    int(salt, 16)  # valid hex


def test_generate_salt_is_unique():
    salts = {generate_salt(32) for _ in range(200)}
    assert len(salts) == 200


def test_hash_is_deterministic():
    salt = generate_salt(16)
    assert hash_password("hunter22", salt, ITERATIONS) == hash_password(
        "hunter22", salt, ITERATIONS
    )


def test_hash_depends_on_salt():
    first = hash_password("hunter22", generate_salt(16), ITERATIONS)
    second = hash_password("hunter22", generate_salt(16), ITERATIONS)
    assert first != second


def test_hash_does_not_contain_password():
    hashed = hash_password("hunter22", generate_salt(16), ITERATIONS)
    assert "hunter22" not in hashed


def test_hash_rejects_empty_password():
    with pytest.raises(InvalidInputError):
        hash_password("", generate_salt(16), ITERATIONS)


def test_hash_rejects_empty_salt():
    """The legacy seed record carried an empty salt; that is not a valid mode."""
    with pytest.raises(InvalidInputError):
        hash_password("hunter22", "", ITERATIONS)


def test_hash_rejects_unencodable_password():
    # A lone surrogate cannot be encoded as UTF-8
    with pytest.raises(InvalidInputError):
        hash_password("\ud800", generate_salt(16), ITERATIONS)


def test_verify_accepts_matching_password():
    salt = generate_salt(16)
    hashed = hash_password("correct horse", salt, ITERATIONS)
    assert verify_password("correct horse", salt, hashed, ITERATIONS) is True


def test_verify_rejects_wrong_password():
    salt = generate_salt(16)
    hashed = hash_password("correct horse", salt, ITERATIONS)
    assert verify_password("battery staple", salt, hashed, ITERATIONS) is False


def test_verify_rejects_wrong_salt():
    salt = generate_salt(16)
    hashed = hash_password("correct horse", salt, ITERATIONS)
    assert verify_password("correct horse", generate_salt(16), hashed, ITERATIONS) is False


@pytest.mark.parametrize(
    "password, salt, expected_hash",
    [
        ("pw", "abcd", "short"),
        ("pw", "abcd", ""),
        ("", "abcd", "00" * 32),
        ("pw", "", "00" * 32),
        ("pw", "abcd", "ü" * 64),
        ("pw", "abcd", None),
        (None, "abcd", "00" * 32),
        ("\ud800", "abcd", "00" * 32),
        ("pw", "\udfff", "00" * 32),
        ("pw", "abcd", "\ud800" * 64),
    ],
)
def test_verify_never_raises(password, salt, expected_hash):
    assert verify_password(password, salt, expected_hash, ITERATIONS) is False


def test_verify_legacy_seed_record_fails():
    # Plaintext-ish hash and empty salt, as in the old seed record
    assert verify_password("755", "", "755", ITERATIONS) is False
