"""
Vault Crypto Core: Key derivation, sealing/opening of envelopes, and
master-password hashing.

Envelope format (base64 of):
- Entry lists:     [salt 16B][iv 12B][AES-256-GCM ciphertext + tag 16B]
- Password hashes: [salt 16B][PBKDF2 digest 32B]

Both derive from the master password with PBKDF2-HMAC-SHA256; the hash path
takes raw derived bits and never doubles as an encryption key.

Security Note:
    Never log plaintext, passwords, envelopes, or derived keys.
    Salts and IVs are fresh random bytes for every seal; an envelope is
    never updated in place.
"""
import os
import hmac
import base64
import asyncio
import binascii
import logging
from typing import Union

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import AuthenticationFailure, CryptoFault

logger = logging.getLogger("securevault.vault")

SALT_SIZE = 16  # 128-bit salt
IV_SIZE = 12  # 96-bit GCM nonce
KEY_LENGTH = 32  # AES-256
TAG_SIZE = 16  # GCM tag
DEFAULT_ITERATIONS = 100000

Secret = Union[str, bytes]


def _to_bytes(value: Secret) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(envelope: Union[str, bytes]) -> bytes:
    """Decode an envelope string; raises ``binascii.Error``/``ValueError``."""
    if isinstance(envelope, str):
        envelope = envelope.encode("ascii")
    return base64.b64decode(envelope, validate=True)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    password: Secret,
    salt: bytes,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive a 32-byte key from a password using PBKDF2-HMAC-SHA256.

    Every call runs the full iteration count; results are never cached.

    Args:
        password: Master password.
        salt: 16 random bytes.
        iterations: PBKDF2 iteration count.

    Returns:
        32-byte derived key.

    Raises:
        CryptoFault: If the salt or iteration count is invalid, or the
            primitive is unavailable.
    """
    if len(salt) != SALT_SIZE:
        raise CryptoFault(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if iterations < 1:
        raise CryptoFault("iterations must be a positive integer")
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(_to_bytes(password))
    except UnsupportedAlgorithm as err:
        raise CryptoFault(f"PBKDF2-HMAC-SHA256 unavailable: {err}") from err


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def seal(
    plaintext: Secret,
    password: Secret,
    iterations: int = DEFAULT_ITERATIONS,
) -> str:
    """Encrypt plaintext under a password into a new envelope.

    Format: base64([salt 16B][iv 12B][ciphertext + tag])

    Args:
        plaintext: Data to encrypt (str is UTF-8 encoded).
        password: Master password.
        iterations: PBKDF2 iteration count.

    Returns:
        Base64 envelope string.

    Raises:
        CryptoFault: If encryption cannot be performed.
    """
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_key(password, salt, iterations)
    try:
        ct = AESGCM(key).encrypt(iv, _to_bytes(plaintext), None)
    except (UnsupportedAlgorithm, OverflowError, ValueError) as err:
        raise CryptoFault(f"AES-GCM encryption failed: {err}") from err
    return _b64encode(salt + iv + ct)


def open_envelope(
    envelope: Union[str, bytes],
    password: Secret,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Decrypt an envelope produced by :func:`seal`.

    Args:
        envelope: Base64 envelope string.
        password: Master password.
        iterations: PBKDF2 iteration count used when sealing.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        AuthenticationFailure: On a wrong password or on any tampered,
            truncated or malformed envelope. The causes are not
            distinguished.
    """
    try:
        data = _b64decode(envelope)
    except (binascii.Error, ValueError, TypeError) as err:
        raise AuthenticationFailure() from err
    if len(data) < SALT_SIZE + IV_SIZE + TAG_SIZE:
        raise AuthenticationFailure()
    salt = data[:SALT_SIZE]
    iv = data[SALT_SIZE:SALT_SIZE + IV_SIZE]
    ct = data[SALT_SIZE + IV_SIZE:]
    key = derive_key(password, salt, iterations)
    try:
        return AESGCM(key).decrypt(iv, ct, None)
    except InvalidTag as err:
        raise AuthenticationFailure() from err


def open_text(
    envelope: Union[str, bytes],
    password: Secret,
    iterations: int = DEFAULT_ITERATIONS,
) -> str:
    """Like :func:`open_envelope` but returns the plaintext as text."""
    plaintext = open_envelope(envelope, password, iterations)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise AuthenticationFailure() from err


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(
    password: Secret,
    salt: bytes | None = None,
    iterations: int = DEFAULT_ITERATIONS,
) -> str:
    """Hash a master password for login verification.

    Format: base64([salt 16B][digest 32B])

    Args:
        password: Master password.
        salt: Optional 16-byte salt; a random one is generated if omitted.
        iterations: PBKDF2 iteration count.

    Returns:
        Base64 hash envelope.
    """
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    digest = derive_key(password, salt, iterations)
    return _b64encode(salt + digest)


def verify_password(
    password: Secret,
    stored: str,
    iterations: int = DEFAULT_ITERATIONS,
) -> bool:
    """Check a password against a stored hash envelope.

    Never raises: malformed input or a derivation fault yields ``False``.
    """
    try:
        data = _b64decode(stored)
        if len(data) != SALT_SIZE + KEY_LENGTH:
            return False
        salt, expected = data[:SALT_SIZE], data[SALT_SIZE:]
        computed = derive_key(password, salt, iterations)
    except Exception as err:  # pylint: disable=W0703
        logger.debug("Password verification fault: %s", type(err).__name__)
        return False
    return hmac.compare_digest(computed, expected)


# ---------------------------------------------------------------------------
# Async wrappers (primitive runs in a worker thread)
# ---------------------------------------------------------------------------

async def aseal(
    plaintext: Secret, password: Secret, iterations: int = DEFAULT_ITERATIONS
) -> str:
    return await asyncio.to_thread(seal, plaintext, password, iterations)


async def aopen_envelope(
    envelope: Union[str, bytes], password: Secret, iterations: int = DEFAULT_ITERATIONS
) -> bytes:
    return await asyncio.to_thread(open_envelope, envelope, password, iterations)


async def ahash_password(
    password: Secret, salt: bytes | None = None, iterations: int = DEFAULT_ITERATIONS
) -> str:
    return await asyncio.to_thread(hash_password, password, salt, iterations)


async def averify_password(
    password: Secret, stored: str, iterations: int = DEFAULT_ITERATIONS
) -> bool:
    return await asyncio.to_thread(verify_password, password, stored, iterations)
