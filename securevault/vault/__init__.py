"""Vault: master-password envelopes and the unlocked entry store.

Security Note (Threat Model):
    Entries are decrypted in process memory while an account is unlocked,
    and the master password is held there to re-derive keys for each seal.
    A memory dump of the process during a session exposes both. This is an
    accepted limitation; nothing sensitive is ever written unencrypted.
"""

from .store import VaultStore
from .rekey import rekey_entries
from .config import VaultConfig, create_blob_store

__all__ = [
    "VaultStore",
    "rekey_entries",
    "VaultConfig",
    "create_blob_store",
]
