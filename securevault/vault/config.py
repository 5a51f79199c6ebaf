"""
Vault Configuration: validated settings loaded from the environment.

Reads:
    SECUREVAULT_KDF_ITERATIONS = <int, PBKDF2 iteration count>
    SECUREVAULT_MIN_PASSWORD_LENGTH = <int>
    SECUREVAULT_STORAGE_PATH = <path to the JSON blob file>

Security Note:
    There is no setting that carries a password or key. Lowering
    ``kdf_iterations`` below the default weakens brute-force resistance and
    is meant for tests only.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..storage import BlobStore, FileBlobStore, MemoryBlobStore
from .crypto import DEFAULT_ITERATIONS

logger = logging.getLogger("securevault.vault")

_ENV_PREFIX = "SECUREVAULT_"


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    kdf_iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1000)
    min_password_length: int = Field(default=8, ge=1)
    storage_path: Optional[str] = Field(default=None)

    @field_validator("storage_path")
    @classmethod
    def validate_storage_path(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank paths; treat them as a configuration error."""
        if v is not None and not v.strip():
            raise ValueError("storage_path cannot be blank")
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Unset variables fall back to the field defaults.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {}
        iterations = os.environ.get(f"{_ENV_PREFIX}KDF_ITERATIONS")
        if iterations is not None:
            values["kdf_iterations"] = iterations
        min_length = os.environ.get(f"{_ENV_PREFIX}MIN_PASSWORD_LENGTH")
        if min_length is not None:
            values["min_password_length"] = min_length
        storage_path = os.environ.get(f"{_ENV_PREFIX}STORAGE_PATH")
        if storage_path is not None:
            values["storage_path"] = storage_path
        config = cls(**values)
        logger.debug(
            "Loaded vault config: iterations=%d min_password_length=%d storage=%s",
            config.kdf_iterations, config.min_password_length,
            config.storage_path or "memory",
        )
        return config


def create_blob_store(config: VaultConfig) -> BlobStore:
    """Return the blob store selected by ``config``.

    A file-backed store when ``storage_path`` is set, otherwise an
    in-memory store that lives as long as the process.
    """
    if config.storage_path:
        return FileBlobStore(config.storage_path)
    return MemoryBlobStore()
