"""
SecureVault exceptions.

Every error raised by the vault derives from ``VaultError`` so callers can
catch the whole family at a context boundary.

Security Note:
    Authentication errors carry deliberately generic messages. A caller must
    not be able to tell "wrong password" from "corrupted vault", or
    "unknown account" from "bad password".
"""
from typing import Optional

_GENERIC_LOGIN_FAILURE = "Invalid email or password"


class VaultError(Exception):
    """Base class for all vault errors."""


# ---------------------------------------------------------------------------
# Validation (user-correctable)
# ---------------------------------------------------------------------------

class ValidationError(VaultError):
    """Input rejected before any state change."""


class MissingField(ValidationError):
    """A required field was empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' is required")


class DuplicatePlatform(ValidationError):
    """An entry for this platform already exists (case-insensitive)."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"An entry for platform '{platform}' already exists")


class WeakPassword(ValidationError):
    """Master password below the configured minimum length."""

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(
            f"Master password must be at least {min_length} characters long"
        )


# ---------------------------------------------------------------------------
# Cryptography
# ---------------------------------------------------------------------------

class AuthenticationFailure(VaultError):
    """Envelope could not be opened: wrong password or tampered data."""

    def __init__(self, message: str = "Wrong password or corrupted vault"):
        super().__init__(message)


class CryptoFault(VaultError):
    """Cryptographic primitive unavailable or misused. Not retryable."""


# ---------------------------------------------------------------------------
# Accounts and sessions
# ---------------------------------------------------------------------------

class AuthError(VaultError):
    """Login or registration failure."""


class UserNotFound(AuthError):
    def __init__(self, email: Optional[str] = None):
        self.email = email
        super().__init__(_GENERIC_LOGIN_FAILURE)


class InvalidCredentials(AuthError):
    def __init__(self, email: Optional[str] = None):
        self.email = email
        super().__init__(_GENERIC_LOGIN_FAILURE)


class AccountExists(AuthError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account for '{email}' already exists")


class VaultLocked(VaultError):
    """Operation requires an unlocked session."""

    def __init__(self, message: str = "Vault is locked"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Entries, storage, protocol
# ---------------------------------------------------------------------------

class EntryNotFound(VaultError):
    """No entry with this id in the unlocked vault."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry '{entry_id}' not found")


class StorageError(VaultError):
    """Blob store read or write failed."""


class ProtocolError(VaultError):
    """A cross-context message failed validation."""
