"""
VaultSession: the unlocked state of one account.

A session is created by a successful login and owned by the VaultStore that
performed it. The master password is kept only here, because each seal and
open re-derives the key from it with a fresh salt; the stored login hash
cannot be turned back into a key.

Security Note:
    The password lives in process memory until ``invalidate()``. Python
    strings are immutable, so clearing drops the reference and nothing
    more. This is an accepted limitation.
"""
import uuid
from typing import Optional
from datetime import datetime, timezone

from .exceptions import VaultLocked


class VaultSession:
    """Unlocked-account handle. Never serialized."""

    __slots__ = ('_id_', '_email', '_password', '_created', '_logon_time')

    def __init__(
        self,
        email: str,
        password: str,
        id: Optional[str] = None
    ) -> None:
        self._id_ = id or uuid.uuid4().hex
        self._email = email
        self._password: Optional[str] = password
        self._logon_time = datetime.now(timezone.utc)
        self._created = int(self._logon_time.timestamp())

    def __repr__(self) -> str:
        return (
            f'<Vault-Session [email:{self._email}, active:{self.active}, '
            f'created:{self._created}]>'
        )

    def __getstate__(self):
        raise TypeError("VaultSession cannot be serialized")

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def email(self) -> str:
        return self._email

    @property
    def created(self) -> int:
        return self._created

    @property
    def logon_time(self) -> datetime:
        return self._logon_time

    @property
    def active(self) -> bool:
        return self._password is not None

    @property
    def key_material(self) -> str:
        """The master password for key derivation. Raises if invalidated."""
        if self._password is None:
            raise VaultLocked()
        return self._password

    def rotate(self, password: str) -> None:
        """Swap key material after a master password change."""
        if self._password is None:
            raise VaultLocked()
        self._password = password

    def invalidate(self) -> None:
        """Drop key material; the session can no longer seal or open."""
        self._password = None
