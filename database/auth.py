"""
Delete-password handling.

The password guarding bulk deletion is stored as a salted PBKDF2 hash under
the 'deletePassword' store key. On first use a default password is installed.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DELETE_PASSWORD = "Francimicrob"
MIN_PASSWORD_LENGTH = 3

PBKDF2_ITERATIONS = 10000
KEY_LENGTH = 64


def hash_password(password: str, salt: Optional[str] = None) -> Dict[str, str]:
    """Hash ``password`` with a new (or the given) hex salt."""
    if salt is None:
        salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        'sha512', password.encode('utf-8'), salt.encode('utf-8'), PBKDF2_ITERATIONS, KEY_LENGTH
    )
    return {'salt': salt, 'hash': digest.hex()}


def verify_password(password: str, record: Dict[str, str]) -> bool:
    computed = hash_password(password, record['salt'])['hash']
    return hmac.compare_digest(computed, record['hash'])


class PasswordAuthenticator:
    """
    Checks and changes the delete password kept in the application store.

    Args:
        gateway: Any object with ``get_value(key)`` / ``set_value(key, value)``,
            normally the ``PersistenceGateway``.
    """

    KEY = "deletePassword"

    def __init__(self, gateway, default_password: str = DEFAULT_DELETE_PASSWORD):
        self.gateway = gateway
        self.default_password = default_password

    def _record(self) -> Dict[str, str]:
        record = self.gateway.get_value(self.KEY)
        if not record:
            logger.info("No delete password set, installing the default one")
            record = hash_password(self.default_password)
            self.gateway.set_value(self.KEY, record)
        return record

    def authenticate(self, password: str) -> bool:
        if password is None:
            return False
        return verify_password(password, self._record())

    def change_password(self, old_password: str, new_password: str) -> Dict[str, object]:
        """
        Replace the password after checking the current one.

        Returns:
            Dict with success status and, on failure, an error message.
        """
        if not self.authenticate(old_password):
            return {'success': False, 'error': 'Current password is incorrect', 'code': 'AuthFailed'}
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return {'success': False,
                    'error': f'New password must be at least {MIN_PASSWORD_LENGTH} characters',
                    'code': 'InvalidPassword'}

        self.gateway.set_value(self.KEY, hash_password(new_password))
        logger.info("Delete password changed")
        return {'success': True}
