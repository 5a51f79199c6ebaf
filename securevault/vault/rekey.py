"""
Vault Rekey: re-encryption of an account's entry envelope when the master
password changes.

The old envelope is opened with the old password and a brand-new envelope
(fresh salt and IV) is sealed under the new password. Nothing is written
unless the old envelope opens, so a wrong old password leaves storage
untouched.

Security Note:
    Plaintext exists in memory only during re-encryption.
    Never log plaintext, passwords, or envelopes.
"""
import logging
from typing import Union

from ..storage import BlobStore, entries_key
from ..models import load_records
from .crypto import DEFAULT_ITERATIONS, aopen_envelope, aseal

logger = logging.getLogger("securevault.vault")


async def reseal_envelope(
    stored: Union[str, bytes],
    old_password: str,
    new_password: str,
    iterations: int = DEFAULT_ITERATIONS,
) -> tuple[bytes, int]:
    """Open ``stored`` with the old password and seal it under the new one.

    Nothing is written; returns the new envelope and the record count.

    Raises:
        AuthenticationFailure: If ``stored`` does not open with
            ``old_password``.
    """
    plaintext = await aopen_envelope(stored, old_password, iterations)
    count = len(load_records(plaintext))
    envelope = await aseal(plaintext, new_password, iterations)
    return envelope.encode("ascii"), count


async def rekey_entries(
    blob_store: BlobStore,
    email: str,
    old_password: str,
    new_password: str,
    iterations: int = DEFAULT_ITERATIONS,
) -> dict:
    """Re-seal the stored entry list of ``email`` under ``new_password``.

    Args:
        blob_store: Store holding the ``entries_<email>`` envelope.
        email: Account whose envelope is rekeyed.
        old_password: Password the envelope is currently sealed with.
        new_password: Password to seal with.
        iterations: PBKDF2 iteration count for both passwords.

    Returns:
        Stats dict with keys: entries, rekeyed.

    Raises:
        AuthenticationFailure: If the envelope does not open with
            ``old_password``.
    """
    key = entries_key(email)
    stats = {"entries": 0, "rekeyed": False}

    stored = await blob_store.get(key)
    if stored is None:
        logger.debug("Rekey: no entry envelope for %s", email)
        return stats

    envelope, stats["entries"] = await reseal_envelope(
        stored, old_password, new_password, iterations,
    )
    await blob_store.set(key, envelope)
    stats["rekeyed"] = True

    logger.info("Rekey complete for %s: %s", email, stats)
    return stats
