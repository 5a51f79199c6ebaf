"""SecureVault.

Local-only credential vault: entries are sealed under a key derived from
the master password, and the unlocked state is mirrored to cooperating
contexts through a SyncCoordinator for autofill.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    ValidationError,
    MissingField,
    DuplicatePlatform,
    WeakPassword,
    AuthenticationFailure,
    CryptoFault,
    AuthError,
    UserNotFound,
    InvalidCredentials,
    AccountExists,
    VaultLocked,
    EntryNotFound,
    StorageError,
    ProtocolError,
)
from .models import VaultRecord, UserAccount
from .session import VaultSession
from .storage import BlobStore, MemoryBlobStore, FileBlobStore
from .matcher import match_domain
from .sync import SyncCoordinator, Subscription
from .vault import VaultStore, VaultConfig, create_blob_store

__all__ = (
    "__version__",
    "VaultError",
    "ValidationError",
    "MissingField",
    "DuplicatePlatform",
    "WeakPassword",
    "AuthenticationFailure",
    "CryptoFault",
    "AuthError",
    "UserNotFound",
    "InvalidCredentials",
    "AccountExists",
    "VaultLocked",
    "EntryNotFound",
    "StorageError",
    "ProtocolError",
    "VaultRecord",
    "UserAccount",
    "VaultSession",
    "BlobStore",
    "MemoryBlobStore",
    "FileBlobStore",
    "match_domain",
    "SyncCoordinator",
    "Subscription",
    "VaultStore",
    "VaultConfig",
    "create_blob_store",
)
