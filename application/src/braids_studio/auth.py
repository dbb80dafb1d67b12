"""Admin login gate: a persisted 'true' flag, checked against a swappable credential verifier."""

from __future__ import annotations

import os
from typing import Protocol

from .store import AUTH_KEY, KeyValueStore

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin"
INVALID_CREDENTIALS_MESSAGE = "Credenciais incorretas. Use admin / admin."


class CredentialVerifier(Protocol):
    def verify(self, username: str, password: str) -> bool: ...


class StaticCredentials:
    """One fixed username/password pair (ADMIN_USERNAME / ADMIN_PASSWORD, default admin/admin)."""

    def __init__(self, username: str | None = None, password: str | None = None):
        self.username = username if username is not None else os.environ.get("ADMIN_USERNAME", DEFAULT_USERNAME)
        self.password = password if password is not None else os.environ.get("ADMIN_PASSWORD", DEFAULT_PASSWORD)

    def verify(self, username: str, password: str) -> bool:
        return username == self.username and password == self.password


class AuthGate:
    """Anonymous until login() succeeds; back to anonymous on logout(). No expiry."""

    def __init__(self, store: KeyValueStore, verifier: CredentialVerifier | None = None):
        self.store = store
        self.verifier = verifier or StaticCredentials()

    def is_authenticated(self) -> bool:
        return self.store.get(AUTH_KEY) == "true"

    def login(self, username: str, password: str) -> bool:
        if not self.verifier.verify(username, password):
            return False
        self.store.set(AUTH_KEY, "true")
        return True

    def logout(self) -> None:
        self.store.remove(AUTH_KEY)
