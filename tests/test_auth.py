"""
Tests for delete-password hashing and the PasswordAuthenticator.
"""

import pytest

from database.auth import (
    DEFAULT_DELETE_PASSWORD, PasswordAuthenticator, hash_password, verify_password
)
from database.persistence import PASSWORD_KEY


pytestmark = pytest.mark.integration


def test_hash_is_salted():
    first = hash_password("Francimicrob")
    second = hash_password("Francimicrob")
    assert first['salt'] != second['salt']
    assert first['hash'] != second['hash']
    assert len(first['hash']) == 128  # 64-byte key, hex encoded


def test_hash_with_known_salt_is_stable():
    assert hash_password("pw", "00ff")['hash'] == hash_password("pw", "00ff")['hash']


def test_verify_password():
    record = hash_password("correct")
    assert verify_password("correct", record)
    assert not verify_password("wrong", record)


def test_default_password_installed_on_first_use(gateway):
    auth = PasswordAuthenticator(gateway)
    assert gateway.get_value(PASSWORD_KEY) is None

    assert auth.authenticate(DEFAULT_DELETE_PASSWORD)

    record = gateway.get_value(PASSWORD_KEY)
    assert set(record) == {'salt', 'hash'}
    assert DEFAULT_DELETE_PASSWORD not in str(record)


def test_wrong_or_missing_password(gateway):
    auth = PasswordAuthenticator(gateway)
    assert not auth.authenticate("nope")
    assert not auth.authenticate(None)


def test_change_password(gateway):
    auth = PasswordAuthenticator(gateway, default_password="start")

    result = auth.change_password("start", "newpass")

    assert result == {'success': True}
    assert auth.authenticate("newpass")
    assert not auth.authenticate("start")


@pytest.mark.parametrize("old,new,code", [
    ("bad", "newpass", "AuthFailed"),
    ("start", "ab", "InvalidPassword"),
])
def test_change_password_rejected(gateway, old, new, code):
    auth = PasswordAuthenticator(gateway, default_password="start")

    result = auth.change_password(old, new)

    assert result['success'] is False
    assert result['code'] == code
    assert auth.authenticate("start")
