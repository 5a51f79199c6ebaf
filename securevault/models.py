"""
Vault data model: accounts and credential records.

Records only ever leave memory inside a sealed envelope; the JSON helpers
here produce the plaintext that is handed to the crypto layer.
"""
import uuid
from typing import Any, Optional
from datetime import datetime, timezone

import orjson
from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return uuid.uuid4().hex


def normalize_platform(platform: str) -> str:
    """Display form of a platform name: first letter upper, rest lower.

    ``"gitHUB"`` becomes ``"Github"``.
    """
    platform = platform.strip()
    return platform[:1].upper() + platform[1:].lower()


class VaultRecord(BaseModel):
    """A single credential entry. Immutable; edits produce a copy."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    platform: str
    username: str
    secret: str = Field(repr=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def same_platform(self, platform: str) -> bool:
        """Case-insensitive comparison against the display form of ``platform``."""
        return self.platform.casefold() == normalize_platform(platform).casefold()


class UserAccount(BaseModel):
    """A registered vault owner. ``password_hash`` is a hash envelope."""

    email: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def dump_records(records: list[VaultRecord]) -> bytes:
    """Serialize records to the UTF-8 JSON array that gets sealed."""
    return orjson.dumps([r.model_dump(mode="json") for r in records])


def load_records(data: bytes) -> list[VaultRecord]:
    """Parse a decrypted JSON array back into records.

    Raises:
        ValueError: If the payload is not a JSON array of records.
    """
    parsed: Any = orjson.loads(data)
    if not isinstance(parsed, list):
        raise ValueError("Entry payload must be a JSON array")
    return [VaultRecord.model_validate(item) for item in parsed]


def dump_accounts(accounts: dict[str, UserAccount]) -> bytes:
    return orjson.dumps(
        {email: acc.model_dump(mode="json") for email, acc in accounts.items()}
    )


def load_accounts(data: Optional[bytes]) -> dict[str, UserAccount]:
    if not data:
        return {}
    parsed = orjson.loads(data)
    return {
        email: UserAccount.model_validate(item) for email, item in parsed.items()
    }
