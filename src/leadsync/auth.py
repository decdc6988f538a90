"""Authenticated identity as seen by the sync engine.

Sign-in and session management live outside the engine; it only needs to ask
"is someone signed in, and who" before each step.
"""

import logging
from typing import Optional, Protocol


logger = logging.getLogger(__name__)


class AuthSession(Protocol):
    """What the engine needs from the host's authentication layer."""

    @property
    def is_authenticated(self) -> bool: ...

    @property
    def principal_id(self) -> Optional[str]: ...

    @property
    def token(self) -> Optional[str]: ...


class StaticAuthSession:
    """Auth session holding a caller-supplied principal and bearer token."""

    def __init__(self, principal_id: Optional[str] = None, token: Optional[str] = None):
        self._principal_id = principal_id
        self._token = token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._principal_id)

    @property
    def principal_id(self) -> Optional[str]:
        return self._principal_id

    @property
    def token(self) -> Optional[str]:
        return self._token

    def sign_in(self, principal_id: str, token: Optional[str] = None):
        self._principal_id = principal_id
        self._token = token
        logger.info(f"Signed in as {principal_id}")

    def sign_out(self):
        logger.info(f"Signed out {self._principal_id}")
        self._principal_id = None
        self._token = None
