"""
VaultStore: Owner of the unlocked account and its decrypted entries.

Provides the public API of the vault:
- ``register(email, password)``: create an account (hash envelope only)
- ``login(email, password)`` / ``logout()``: open and close the session
- ``load_entries()`` / ``save_entries()``: open / seal the entry envelope
- ``add_entry`` / ``edit_entry`` / ``delete_entry``: mutate and persist
- ``change_password(old, new)``: rekey the envelope and rotate the hash

Every change is published to the SyncCoordinator (when one is attached) so
that listening contexts refresh their caches.

Mutations are serialized by one ``asyncio.Lock``: two concurrent saves would
otherwise race on last-writer-wins and silently drop a change.

Security Note:
    Never log passwords, secrets, or envelopes. Only log emails, entry ids,
    counts and operation names. Decrypted entries exist in process memory
    while the session is unlocked.
"""
import asyncio
import logging
from typing import Optional

import orjson

from ..exceptions import (
    AccountExists,
    AuthenticationFailure,
    DuplicatePlatform,
    EntryNotFound,
    InvalidCredentials,
    MissingField,
    UserNotFound,
    VaultLocked,
    WeakPassword,
)
from ..models import (
    UserAccount,
    VaultRecord,
    dump_accounts,
    dump_records,
    load_accounts,
    load_records,
    normalize_platform,
    utcnow,
)
from ..protocol import EntriesChangedEvent, LoginEvent, LogoutEvent
from ..session import VaultSession
from ..storage import BlobStore, CURRENT_USER_KEY, USERS_KEY, entries_key
from ..sync import SyncCoordinator
from .config import VaultConfig
from .crypto import aopen_envelope, aseal, ahash_password, averify_password
from .rekey import reseal_envelope

logger = logging.getLogger("securevault.vault")


class VaultStore:
    """Encrypted credential vault for one unlocked account at a time.

    Entries are decrypted once at login and kept in memory; every mutation
    seals the full list into a new envelope before the in-memory list is
    replaced, so a failed write leaves both memory and storage unchanged.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        coordinator: Optional[SyncCoordinator] = None,
        config: Optional[VaultConfig] = None,
    ):
        self._blobs = blob_store
        self._coordinator = coordinator
        self._config = config or VaultConfig()
        self._session: Optional[VaultSession] = None
        self._entries: list[VaultRecord] = []
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        email = self._session.email if self._session else None
        return f'<VaultStore [account:{email}, entries:{len(self._entries)}]>'

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def session(self) -> Optional[VaultSession]:
        return self._session

    @property
    def is_unlocked(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def entries(self) -> list[VaultRecord]:
        """Copy of the decrypted entry list of the unlocked account."""
        self._require_session()
        return list(self._entries)

    @property
    def _iterations(self) -> int:
        return self._config.kdf_iterations

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_session(self) -> VaultSession:
        if self._session is None or not self._session.active:
            raise VaultLocked()
        return self._session

    async def _publish(self, event) -> None:
        if self._coordinator is not None:
            await self._coordinator.publish(event)

    async def _get_accounts(self) -> dict[str, UserAccount]:
        return load_accounts(await self._blobs.get(USERS_KEY))

    async def _put_accounts(self, accounts: dict[str, UserAccount]) -> None:
        await self._blobs.set(USERS_KEY, dump_accounts(accounts))

    def _validate_password(self, password: str) -> None:
        if not password:
            raise MissingField("password")
        if len(password) < self._config.min_password_length:
            raise WeakPassword(self._config.min_password_length)

    @staticmethod
    def _validate_entry(platform: str, username: str, secret: str) -> tuple[str, str]:
        platform = (platform or "").strip()
        username = (username or "").strip()
        if not platform:
            raise MissingField("platform")
        if not username:
            raise MissingField("username")
        if not secret:
            raise MissingField("secret")
        return platform, username

    def _index_of(self, entry_id: str) -> int:
        for idx, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return idx
        logger.warning(
            "Entry not found: account=%s id=%s", self._session.email, entry_id,
        )
        raise EntryNotFound(entry_id)

    def _check_duplicate(self, platform: str, exclude_id: Optional[str] = None) -> None:
        for entry in self._entries:
            if entry.id != exclude_id and entry.same_platform(platform):
                raise DuplicatePlatform(platform)

    async def _commit(self, entries: list[VaultRecord]) -> EntriesChangedEvent:
        """Seal ``entries``, write the envelope, then adopt them in memory.

        Returns the event to publish once the lock is released.
        """
        session = self._require_session()
        envelope = await aseal(
            dump_records(entries), session.key_material, self._iterations,
        )
        await self._blobs.set(entries_key(session.email), envelope.encode("ascii"))
        self._entries = list(entries)
        logger.debug(
            "Vault saved: account=%s entries=%d", session.email, len(entries),
        )
        return EntriesChangedEvent(entries=list(entries))

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> UserAccount:
        """Create a new account. Does not log in.

        Raises:
            MissingField: If email or password is empty.
            WeakPassword: If the password is shorter than configured.
            AccountExists: If the email is already registered.
        """
        email = (email or "").strip()
        if not email:
            raise MissingField("email")
        self._validate_password(password)
        async with self._lock:
            accounts = await self._get_accounts()
            if email in accounts:
                raise AccountExists(email)
            password_hash = await ahash_password(
                password, iterations=self._iterations,
            )
            account = UserAccount(email=email, password_hash=password_hash)
            accounts[email] = account
            await self._put_accounts(accounts)
        logger.info("Vault account registered: %s", email)
        return account

    async def remembered_user(self) -> Optional[str]:
        """Email of the last logged-in account, for pre-filling a login form.

        This never unlocks anything.
        """
        raw = await self._blobs.get(CURRENT_USER_KEY)
        if not raw:
            return None
        try:
            marker = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("Ignoring unreadable currentUser marker")
            return None
        email = marker.get("email") if isinstance(marker, dict) else None
        return email if isinstance(email, str) else None

    async def login(self, email: str, password: str) -> VaultSession:
        """Verify the master password and unlock the account.

        Any session for a different account is logged out first.

        Raises:
            UserNotFound: If no account exists for ``email``.
            InvalidCredentials: If the password does not verify.
        """
        email = (email or "").strip()
        async with self._lock:
            accounts = await self._get_accounts()
            account = accounts.get(email)
            if account is None:
                logger.info("Vault login failed: unknown account")
                raise UserNotFound(email)
            if not await averify_password(
                password, account.password_hash, self._iterations,
            ):
                logger.info("Vault login failed: account=%s", email)
                raise InvalidCredentials(email)

            session = VaultSession(email=email, password=password)
            entries = await self._read_entries(session)
            await self._blobs.set(CURRENT_USER_KEY, orjson.dumps({"email": email}))

            # commit point: nothing below touches storage
            logout_event = None
            if self._session is not None:
                if self._session.email != email:
                    logger.info("Vault locked: account=%s", self._session.email)
                    logout_event = LogoutEvent()
                self._session.invalidate()
            self._session = session
            self._entries = entries

        logger.info(
            "Vault unlocked: account=%s entries=%d", email, len(self._entries),
        )
        if logout_event is not None:
            await self._publish(logout_event)
        await self._publish(LoginEvent(email=email))
        await self._publish(EntriesChangedEvent(entries=list(self._entries)))
        return self._session

    async def change_password(self, old_password: str, new_password: str) -> dict:
        """Re-seal the vault under a new master password.

        The new envelope and hash are computed before anything is written.
        If the account write fails, the previous envelope is put back so the
        old password keeps opening the vault.

        Returns:
            Stats dict with keys: entries, rekeyed.

        Raises:
            VaultLocked: If no session is active.
            InvalidCredentials: If ``old_password`` does not verify.
            WeakPassword: If ``new_password`` is too short.
            AuthenticationFailure: If the stored envelope cannot be opened.
        """
        self._validate_password(new_password)
        async with self._lock:
            session = self._require_session()
            accounts = await self._get_accounts()
            account = accounts.get(session.email)
            if account is None or not await averify_password(
                old_password, account.password_hash, self._iterations,
            ):
                raise InvalidCredentials(session.email)
            key = entries_key(session.email)
            stored = await self._blobs.get(key)
            stats = {"entries": 0, "rekeyed": False}
            envelope = None
            if stored is not None:
                envelope, stats["entries"] = await reseal_envelope(
                    stored, old_password, new_password, self._iterations,
                )
            accounts[session.email] = account.model_copy(update={
                "password_hash": await ahash_password(
                    new_password, iterations=self._iterations,
                ),
            })

            if envelope is not None:
                await self._blobs.set(key, envelope)
                stats["rekeyed"] = True
            try:
                await self._put_accounts(accounts)
            except Exception:
                if envelope is not None:
                    logger.error(
                        "Password change failed for %s; restoring previous envelope",
                        session.email,
                    )
                    await self._blobs.set(key, stored)
                raise
            session.rotate(new_password)
        logger.info("Master password changed: account=%s", session.email)
        return stats

    async def logout(self) -> None:
        """Drop the session and decrypted entries. Storage is untouched."""
        async with self._lock:
            event = await self._logout_locked()
        if event is not None:
            await self._publish(event)

    async def _logout_locked(self) -> Optional[LogoutEvent]:
        if self._session is None:
            return None
        email = self._session.email
        self._session.invalidate()
        self._session = None
        self._entries = []
        await self._blobs.delete(CURRENT_USER_KEY)
        logger.info("Vault locked: account=%s", email)
        return LogoutEvent()

    # ------------------------------------------------------------------
    # Envelope load / save
    # ------------------------------------------------------------------

    async def load_entries(self) -> list[VaultRecord]:
        """Decrypt the stored entry list of the unlocked account.

        A missing envelope yields an empty list. An envelope that does not
        open resets the list to empty instead of failing. The reloaded list
        is published like any other change.
        """
        async with self._lock:
            session = self._require_session()
            self._entries = await self._read_entries(session)
            entries = list(self._entries)
        await self._publish(EntriesChangedEvent(entries=entries))
        return entries

    async def _read_entries(self, session: VaultSession) -> list[VaultRecord]:
        stored = await self._blobs.get(entries_key(session.email))
        if stored is None:
            return []
        try:
            plaintext = await aopen_envelope(
                stored, session.key_material, self._iterations,
            )
            return load_records(plaintext)
        except AuthenticationFailure:
            logger.warning(
                "Entry envelope for %s did not open; starting with an empty list",
                session.email,
            )
        except ValueError as err:
            logger.warning(
                "Entry payload for %s is unreadable (%s); starting with an empty list",
                session.email, type(err).__name__,
            )
        return []

    async def save_entries(self) -> None:
        """Seal the current entry list into a new envelope."""
        async with self._lock:
            event = await self._commit(list(self._entries))
        await self._publish(event)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: str) -> VaultRecord:
        self._require_session()
        return self._entries[self._index_of(entry_id)]

    async def add_entry(self, platform: str, username: str, secret: str) -> VaultRecord:
        """Add and persist a credential.

        Raises:
            MissingField: If any field is empty.
            DuplicatePlatform: If the platform exists (case-insensitive).
            VaultLocked: If no session is active.
        """
        platform, username = self._validate_entry(platform, username, secret)
        async with self._lock:
            self._require_session()
            self._check_duplicate(platform)
            record = VaultRecord(
                platform=normalize_platform(platform),
                username=username,
                secret=secret,
            )
            event = await self._commit(self._entries + [record])
        await self._publish(event)
        logger.debug("Entry added: id=%s", record.id)
        return record

    async def edit_entry(
        self,
        entry_id: str,
        platform: str,
        username: str,
        secret: str,
    ) -> VaultRecord:
        """Replace the fields of an entry and persist.

        Raises:
            EntryNotFound: If ``entry_id`` is unknown.
            MissingField / DuplicatePlatform: As for ``add_entry``.
        """
        platform, username = self._validate_entry(platform, username, secret)
        async with self._lock:
            self._require_session()
            idx = self._index_of(entry_id)
            self._check_duplicate(platform, exclude_id=entry_id)
            updated = self._entries[idx].model_copy(update={
                "platform": normalize_platform(platform),
                "username": username,
                "secret": secret,
                "updated_at": utcnow(),
            })
            entries = list(self._entries)
            entries[idx] = updated
            event = await self._commit(entries)
        await self._publish(event)
        logger.debug("Entry updated: id=%s", entry_id)
        return updated

    async def delete_entry(self, entry_id: str) -> None:
        """Remove an entry and persist.

        Raises:
            EntryNotFound: If ``entry_id`` is unknown.
        """
        async with self._lock:
            self._require_session()
            idx = self._index_of(entry_id)
            entries = self._entries[:idx] + self._entries[idx + 1:]
            event = await self._commit(entries)
        await self._publish(event)
        logger.debug("Entry deleted: id=%s", entry_id)
