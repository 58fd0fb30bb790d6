from __future__ import annotations
"""Secret key lookup for the store credentials."""
import os

import keyring
from keyring.errors import KeyringError

SECRET_ENV_VAR = "S3_INDEX_SECRET_KEY"


class KeychainStore:
    """Encapsulates OS keychain access for secrets."""

    def __init__(self, service_name: str = "s3-index"):
        self._service_name = service_name

    def get_secret(self, access_key: str) -> str:
        if not access_key:
            return ""
        try:
            return keyring.get_password(self._service_name, access_key) or ""
        except KeyringError:
            return ""

    def set_secret(self, access_key: str, secret_key: str) -> None:
        if not access_key:
            return
        if not secret_key:
            self.delete_secret(access_key)
            return
        keyring.set_password(self._service_name, access_key, secret_key)

    def delete_secret(self, access_key: str) -> None:
        if not access_key:
            return
        try:
            keyring.delete_password(self._service_name, access_key)
        except KeyringError:
            return


def resolve_secret_key(
    access_key: str | None,
    *,
    environ: dict[str, str] | None = None,
    keychain: KeychainStore | None = None,
) -> str | None:
    """Find the secret for ``access_key``.

    The environment wins over the keychain. ``None`` means no explicit
    credentials, leaving boto3's default provider chain in charge.
    """

    environ = os.environ if environ is None else environ
    secret = environ.get(SECRET_ENV_VAR, "")
    if secret:
        return secret
    if not access_key:
        return None
    keychain = keychain or KeychainStore()
    return keychain.get_secret(access_key) or None
